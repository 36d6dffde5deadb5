"""Repository-level security flow built from per-file CFGs."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from .cfg import SimpleCfg
from .tags import USER_ENTRY_MARKER, EdgeKind

SENSITIVE_TERMS: tuple[str, ...] = ("pii", "ssn", "passport", "password", "token", "secret")

# First matching prefix on either endpoint decides the kind
_TAG_PREFIX_KINDS: tuple[tuple[str, EdgeKind], ...] = (
    ("NET:", EdgeKind.NET),
    ("DB:", EdgeKind.DB),
    ("AUTH:", EdgeKind.AUTH),
    ("CRYPTO:", EdgeKind.CRYPTO),
    ("SECRET:", EdgeKind.SECRET),
    ("LOG:", EdgeKind.LOG),
)


@dataclass
class SecIndex:
    """Aggregate counts for a security flow."""

    functions: int = 0
    edges: int = 0
    boundary_crossings: int = 0
    pii_edges: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "functions": self.functions,
            "edges": self.edges,
            "boundary_crossings": self.boundary_crossings,
            "pii_edges": self.pii_edges,
        }


@dataclass
class SecEdge:
    """One distinct CFG edge with its derived kind."""

    func: str
    src: str
    dst: str
    kind: EdgeKind
    sensitive: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "func": self.func,
            "src": self.src,
            "dst": self.dst,
            "kind": self.kind.value,
            "sensitive": self.sensitive,
        }


@dataclass
class SecurityFlow:
    """Repository-wide report: an index plus a flat list of edges."""

    index: SecIndex = field(default_factory=SecIndex)
    edges: list[SecEdge] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index.to_dict(),
            "edges": [edge.to_dict() for edge in self.edges],
        }

    def to_index_text(self) -> str:
        return "\n".join(f"{name}: {value}" for name, value in self.index.to_dict().items())


def derive_edge_kind(src: str, dst: str) -> EdgeKind:
    """Re-derive an edge's kind from its endpoint labels."""
    for prefix, kind in _TAG_PREFIX_KINDS:
        if src.startswith(prefix) or dst.startswith(prefix):
            return kind
        if kind is EdgeKind.AUTH and (USER_ENTRY_MARKER in src or USER_ENTRY_MARKER in dst):
            return kind
    if src.startswith("Loop") or src == dst:
        return EdgeKind.LOOP
    if dst.startswith("Return"):
        return EdgeKind.RETURN
    if src.startswith("If") or dst.startswith("If"):
        return EdgeKind.BRANCH
    return EdgeKind.OTHER


def is_sensitive(src: str, dst: str) -> bool:
    """True if either label mentions personal or secret data."""
    text = f"{src} {dst}".lower()
    return any(term in text for term in SENSITIVE_TERMS)


def to_security_flow(all_cfgs: Mapping[str, Mapping[str, SimpleCfg]]) -> SecurityFlow:
    """Convert all per-file CFGs into one deduplicated repository-level flow.

    Edges are keyed by (function, kind, source label, destination label); only
    the first occurrence of a key is kept, across all files. Files are visited
    in sorted path order so the result does not depend on map ordering.
    """
    flow = SecurityFlow()
    seen: set[tuple[str, EdgeKind, str, str]] = set()

    for file_path in sorted(all_cfgs):
        funcs = all_cfgs[file_path]
        flow.index.functions += len(funcs)
        for func, cfg in funcs.items():
            for si, di in cfg.edges:
                src = cfg.nodes[si]
                dst = cfg.nodes[di]
                kind = derive_edge_kind(src, dst)

                signature = (func, kind, src, dst)
                if signature in seen:
                    continue
                seen.add(signature)

                sensitive = is_sensitive(src, dst)
                if kind is EdgeKind.NET:
                    flow.index.boundary_crossings += 1
                if sensitive:
                    flow.index.pii_edges += 1
                flow.edges.append(SecEdge(func, src, dst, kind, sensitive))

    flow.index.edges = len(flow.edges)
    logger.debug(
        f"Security flow: {flow.index.functions} functions, {flow.index.edges} edges "
        f"from {len(all_cfgs)} files"
    )
    return flow
