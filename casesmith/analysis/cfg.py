"""Simplified, security-tagged control flow graphs for function bodies."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from tree_sitter import Node

from .. import node_kinds as nk
from ..utils.ast_helpers import get_snippet
from .tags import EdgeKind, classify_call, decorator_labels, is_secretish, tag_label

ENTRY = 0
EXIT = 1


@dataclass
class SimpleCfg:
    """Ordered node labels plus (source, destination) index pairs.

    ``nodes[0]`` is always ``"Entry"`` and ``nodes[1]`` is always ``"Exit"``.
    Nodes are only ever appended, so edge indices stay valid.
    """

    nodes: list[str] = field(default_factory=lambda: ["Entry", "Exit"])
    edges: list[tuple[int, int]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": list(self.nodes),
            "edges": [[src, dst] for src, dst in self.edges],
        }


def dedupe_cfg_edges(cfg: SimpleCfg) -> None:
    """Drop repeated (source, destination) pairs in place, keeping first-seen order."""
    seen: set[tuple[int, int]] = set()
    unique = []
    for edge in cfg.edges:
        if edge not in seen:
            seen.add(edge)
            unique.append(edge)
    cfg.edges = unique


class CfgBuilder:
    """Walks one function body and appends labeled steps to a ``SimpleCfg``."""

    def __init__(self, source: bytes):
        self.source = source
        self.cfg = SimpleCfg()
        self.last = ENTRY

    def append(self, label: str) -> int:
        """Append a node linked from ``last`` and advance ``last`` to it."""
        idx = len(self.cfg.nodes)
        self.cfg.nodes.append(label)
        self.cfg.edges.append((self.last, idx))
        self.last = idx
        return idx

    def append_tag(self, label: str) -> None:
        """Append a tag node unless the most recent node carries the same label."""
        if self.cfg.nodes[self.last] == label:
            return
        self.append(label)

    def build(self, body: Node, decorators: Iterable[Node] = ()) -> SimpleCfg:
        for decorator in decorators:
            self.visit(decorator)
            self.walk(decorator)
        self.walk(body)
        self.cfg.edges.append((self.last, EXIT))
        return self.cfg

    def walk(self, root: Node) -> None:
        stack = [root]
        while stack:
            node = stack.pop()
            for child in node.children:
                stack.append(child)
                self.visit(child)

    def visit(self, node: Node) -> None:
        kind = node.type

        if kind == nk.IF_STATEMENT:
            self.append(f"If: {get_snippet(node, self.source)}")
        elif kind in nk.LOOP_KINDS:
            idx = self.append(f"Loop: {get_snippet(node, self.source)}")
            self.cfg.edges.append((idx, idx))
            self.cfg.edges.append((idx, EXIT))
        elif kind == nk.RETURN_STATEMENT:
            self.append(f"Return: {get_snippet(node, self.source)}")

        if kind == nk.CALL_EXPRESSION:
            tag = classify_call(self.source, node)
            if tag is not None:
                self.append_tag(tag_label(tag, get_snippet(node, self.source)))

        if kind in nk.SECRET_CANDIDATE_KINDS and is_secretish(self.source, node):
            self.append_tag(tag_label(EdgeKind.SECRET, get_snippet(node, self.source)))

        if kind == nk.DECORATOR:
            for label in decorator_labels(self.source, node):
                self.append_tag(label)


def build_structured_cfg(
    source: bytes, body: Node, decorators: Iterable[Node] = ()
) -> SimpleCfg:
    """Build a simple structured CFG for a function body node.

    Branches, loops and returns become sequential steps from the most recently
    appended node. A loop also gets a self-loop and a direct edge to Exit.
    Classified calls, secret/config reads and route/guard decorators become tag
    nodes, with immediately repeated identical tags collapsed into one. The
    final node always gets an edge to Exit.
    """
    return CfgBuilder(source).build(body, decorators)
