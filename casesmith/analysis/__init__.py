"""Analysis modules: call tagging, CFG construction, entity extraction and flow aggregation."""

from .cfg import SimpleCfg, build_structured_cfg, dedupe_cfg_edges
from .extractor import (
    EntityExtractor,
    FunctionEntity,
    extract_cfgs_from_code,
    extract_cfgs_from_file,
    extract_cfgs_from_tree,
)
from .security_flow import (
    SecEdge,
    SecIndex,
    SecurityFlow,
    derive_edge_kind,
    is_sensitive,
    to_security_flow,
)
from .tags import EdgeKind, classify_call, is_secretish

__all__ = [
    "EdgeKind",
    "EntityExtractor",
    "FunctionEntity",
    "SecEdge",
    "SecIndex",
    "SecurityFlow",
    "SimpleCfg",
    "build_structured_cfg",
    "classify_call",
    "dedupe_cfg_edges",
    "derive_edge_kind",
    "extract_cfgs_from_code",
    "extract_cfgs_from_file",
    "extract_cfgs_from_tree",
    "is_secretish",
    "is_sensitive",
    "to_security_flow",
]
