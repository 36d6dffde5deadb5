"""Writing CFG and security-flow artifacts into the hidden results directory."""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from loguru import logger

from .analysis.cfg import SimpleCfg
from .analysis.security_flow import SecurityFlow
from .processing.parallel_processor import RESULTS_DIR_NAME

CFG_SUFFIX = ".cfg.json"
SECURITY_FLOW_FILE = "security-flow.json"
INDEX_FILE = "security-flow.index.txt"


class ResultsWriter:
    """Mirrors per-file CFGs and the repository flow under ``<root>/<results_dir>``.

    Each artifact is written independently: a failure is logged and the
    remaining artifacts are still written.
    """

    def __init__(self, root: Path, results_dir_name: str = RESULTS_DIR_NAME):
        self.root = Path(root)
        self.results_root = self.root / results_dir_name

    def prepare(self) -> bool:
        """Create the results directory; returns False if it cannot be created."""
        try:
            self.results_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create results dir {self.results_root}: {e}")
            return False
        return True

    def cfg_output_path(self, file_path: str | Path) -> Path:
        """Mirror path for a source file, with its extension replaced by ``.cfg.json``."""
        src_path = Path(file_path)
        try:
            rel = src_path.relative_to(self.root)
        except ValueError:
            rel = Path(src_path.name)
        out_path = self.results_root / rel
        return out_path.with_name(f"{out_path.stem}{CFG_SUFFIX}")

    def write_file_cfgs(self, all_cfgs: Mapping[str, Mapping[str, SimpleCfg]]) -> list[Path]:
        written = []
        for file_path, cfgs in all_cfgs.items():
            out_path = self.cfg_output_path(file_path)
            payload = {name: cfg.to_dict() for name, cfg in cfgs.items()}
            if self._write_json(out_path, payload):
                logger.info(f"Wrote CFGs for {file_path} to {out_path}")
                written.append(out_path)
        return written

    def write_security_flow(self, flow: SecurityFlow) -> list[Path]:
        out_path = self.results_root / SECURITY_FLOW_FILE
        if not self._write_json(out_path, flow.to_dict()):
            return []
        idx = flow.index
        logger.info(
            f"Wrote {out_path} (functions: {idx.functions}, edges: {idx.edges}, "
            f"boundary_crossings: {idx.boundary_crossings}, pii_edges: {idx.pii_edges})"
        )
        return [out_path]

    def write_index(self, flow: SecurityFlow) -> list[Path]:
        out_path = self.results_root / INDEX_FILE
        try:
            out_path.write_text(flow.to_index_text() + "\n", encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write {out_path}: {e}")
            return []
        return [out_path]

    def write_all(
        self, all_cfgs: Mapping[str, Mapping[str, SimpleCfg]], flow: SecurityFlow
    ) -> list[Path]:
        written = self.write_file_cfgs(all_cfgs)
        written.extend(self.write_security_flow(flow))
        written.extend(self.write_index(flow))
        return written

    @staticmethod
    def _write_json(out_path: Path, payload: Any) -> bool:
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            with out_path.open("w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write JSON to {out_path}: {e}")
            return False
        return True
