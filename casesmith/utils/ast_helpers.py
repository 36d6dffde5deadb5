"""AST helper functions for tree-sitter parsing."""

from tree_sitter import Node


def get_node_text(node: Node | None, source: bytes) -> str:
    """Extract text content from a tree-sitter node."""
    if node is None:
        return ""
    end = min(node.end_byte, len(source))
    return source[node.start_byte:end].decode("utf-8", errors="replace")


def get_snippet(node: Node | None, source: bytes) -> str:
    """First physical line of a node's text, stripped of surrounding whitespace."""
    return get_node_text(node, source).split("\n", 1)[0].strip()


def get_field_text(node: Node, field_names: tuple[str, ...], source: bytes) -> str | None:
    """Text of the first named field child that exists, trying ``field_names`` in order."""
    for field_name in field_names:
        child = node.child_by_field_name(field_name)
        if child is not None:
            return get_node_text(child, source)
    return None


def get_line_number(node: Node) -> int:
    """Get the line number of a node (1-indexed)."""
    return node.start_point[0] + 1
