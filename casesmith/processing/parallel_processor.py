"""Parallel per-file CFG extraction with a bounded worker pool."""

import multiprocessing as mp
import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger
from tqdm import tqdm

from ..analysis.cfg import SimpleCfg
from ..analysis.extractor import extract_cfgs_from_file
from ..parser_loader import LANGUAGE_EXTENSIONS

RESULTS_DIR_NAME = ".casesmithresults"

DEFAULT_IGNORE_DIRS: frozenset[str] = frozenset(
    {".git", "node_modules", RESULTS_DIR_NAME, "dist", "build", "target"}
)

EXECUTORS = ("process", "thread")


@dataclass
class FileTask:
    """Represents a file to be processed."""

    file_path: Path
    language: str
    relative_path: str


@dataclass
class FileResult:
    """Result from processing a single file."""

    file_path: Path
    relative_path: str
    cfgs: dict[str, SimpleCfg] = field(default_factory=dict)
    error: str | None = None


class ParallelProcessor:
    """Discovers source files under a root and extracts their CFGs in parallel.

    Workers share nothing; each reads and parses its own file. Results are only
    returned once every submitted file has finished.
    """

    def __init__(
        self,
        root: Path,
        max_workers: int | None = None,
        executor: str = "process",
        extensions: dict[str, str] | None = None,
        ignore_dirs: set[str] | frozenset[str] | None = None,
        show_progress: bool = False,
    ):
        if executor not in EXECUTORS:
            raise ValueError(f"Unknown executor '{executor}', expected one of {EXECUTORS}")

        self.root = Path(root)
        self.executor = executor
        self.extensions = {
            ext.lower(): lang for ext, lang in (extensions or LANGUAGE_EXTENSIONS).items()
        }
        self.ignore_dirs = {d.lower() for d in (ignore_dirs or DEFAULT_IGNORE_DIRS)}
        self.show_progress = show_progress

        if max_workers is None:
            # Use 80% of CPU cores for CPU-bound parsing
            self.max_workers = max(1, int(mp.cpu_count() * 0.8))
        else:
            self.max_workers = max(1, max_workers)

        logger.info(f"Initialized ParallelProcessor with {self.max_workers} {executor} workers")

    def collect_files(self) -> list[FileTask]:
        """Collect all files to be processed, skipping ignored directories."""
        files = []
        for root_str, dirs, filenames in os.walk(self.root, topdown=True):
            dirs[:] = [d for d in dirs if d.lower() not in self.ignore_dirs]
            root = Path(root_str)

            for filename in filenames:
                language = self.extensions.get(Path(filename).suffix.lower())
                if language is None:
                    continue
                filepath = root / filename
                files.append(
                    FileTask(
                        file_path=filepath,
                        language=language,
                        relative_path=filepath.relative_to(self.root).as_posix(),
                    )
                )

        files.sort(key=lambda task: task.relative_path)
        logger.info(f"Collected {len(files)} files for processing under {self.root}")
        return files

    def run(self) -> dict[str, dict[str, SimpleCfg]]:
        """Collect and process every source file under the root."""
        return self.process_files(self.collect_files())

    def process_files(self, files: list[FileTask]) -> dict[str, dict[str, SimpleCfg]]:
        """Process files in parallel and join the results into ``{file path: {name: cfg}}``."""
        all_cfgs: dict[str, dict[str, SimpleCfg]] = {}
        if not files:
            logger.warning(f"No source files found under {self.root}")
            return all_cfgs

        logger.info(
            f"Starting parallel processing of {len(files)} files with {self.max_workers} workers"
        )

        with self._create_executor() as executor:
            future_to_task = {
                executor.submit(
                    self._extract_file_worker,
                    task.file_path,
                    task.relative_path,
                    task.language,
                ): task
                for task in files
            }

            with tqdm(
                total=len(files), desc="Extracting CFGs", disable=not self.show_progress
            ) as pbar:
                for future in as_completed(future_to_task):
                    task = future_to_task[future]
                    pbar.update(1)
                    try:
                        result = future.result()
                    except Exception as e:
                        logger.error(f"Worker failed while extracting CFGs from {task.file_path}: {e}")
                        continue

                    if result.error:
                        logger.error(f"Error processing {result.file_path}: {result.error}")
                        continue
                    all_cfgs[str(result.file_path)] = result.cfgs

        failed = len(files) - len(all_cfgs)
        logger.info(f"Extracted CFGs from {len(all_cfgs)} files ({failed} skipped)")
        return all_cfgs

    def _create_executor(self) -> Executor:
        if self.executor == "thread":
            return ThreadPoolExecutor(max_workers=self.max_workers)
        return ProcessPoolExecutor(max_workers=self.max_workers)

    @staticmethod
    def _extract_file_worker(file_path: Path, relative_path: str, language: str) -> FileResult:
        """Worker function to extract CFGs from a single file (may run in a separate process)."""
        try:
            cfgs = extract_cfgs_from_file(file_path, language)
        except (OSError, UnicodeDecodeError) as e:
            return FileResult(file_path=file_path, relative_path=relative_path, error=str(e))
        logger.debug(f"Extracted {len(cfgs)} functions from {relative_path}")
        return FileResult(file_path=file_path, relative_path=relative_path, cfgs=cfgs)
