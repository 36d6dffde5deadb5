"""Discovery of function-like entities in TypeScript syntax trees."""

from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger
from tree_sitter import Node, Tree

from .. import node_kinds as nk
from ..parser_loader import create_parser, get_language_for_path
from ..utils.ast_helpers import get_field_text, get_line_number, get_node_text
from .cfg import SimpleCfg, build_structured_cfg, dedupe_cfg_edges


@dataclass
class FunctionEntity:
    """A function-like declaration paired with the subtree its CFG is built from."""

    qualified_name: str
    body: Node
    decorators: list[Node] = field(default_factory=list)


def _body_of(node: Node) -> Node:
    body = node.child_by_field_name(nk.FIELD_BODY)
    return body if body is not None else node


class EntityExtractor:
    """Extracts one deduplicated CFG per function-like entity of a single file.

    Free functions, exported declarations, class methods and fields, and
    function expressions bound by variable declarations or assignments are
    all recognised. A later entity with the same qualified name replaces the
    earlier one.
    """

    def __init__(self, source: bytes):
        self.source = source
        self.cfgs: dict[str, SimpleCfg] = {}
        self._origins: dict[str, int] = {}

    def extract(self, root: Node) -> dict[str, SimpleCfg]:
        stack = [root]
        while stack:
            node = stack.pop()
            for child in node.children:
                stack.append(child)
                kind = child.type

                if kind == nk.FUNCTION_DECLARATION:
                    self._add_function_declaration(child)
                elif kind in nk.CLASS_KINDS:
                    self._extract_from_class(child)
                elif kind == nk.EXPORT_STATEMENT:
                    self._extract_from_export(child)
                elif kind in nk.VAR_DECLARATION_KINDS:
                    self._extract_from_var_declaration(child)
                elif kind == nk.ASSIGNMENT_EXPRESSION:
                    self._extract_from_assignment(child)
        return self.cfgs

    def _add(self, entity: FunctionEntity) -> None:
        cfg = build_structured_cfg(self.source, entity.body, entity.decorators)
        dedupe_cfg_edges(cfg)
        origin = self._origins.get(entity.qualified_name)
        if origin is not None and origin != entity.body.start_byte:
            logger.debug(
                f"Replacing CFG for {entity.qualified_name} "
                f"(redefined at line {get_line_number(entity.body)})"
            )
        self.cfgs[entity.qualified_name] = cfg
        self._origins[entity.qualified_name] = entity.body.start_byte

    def _text(self, node: Node) -> str:
        return get_node_text(node, self.source)

    def _add_function_declaration(self, node: Node) -> None:
        name = get_field_text(node, (nk.FIELD_NAME,), self.source) or "<anon>"
        self._add(FunctionEntity(name, _body_of(node)))

    def _extract_from_export(self, export_node: Node) -> None:
        # Covers export function/class/const, `export default () => {}` and
        # `export default foo = () => {}`
        queue = [export_node]
        while queue:
            node = queue.pop()
            kind = node.type
            if kind == nk.FUNCTION_DECLARATION:
                self._add_function_declaration(node)
            elif kind in nk.CLASS_KINDS:
                self._extract_from_class(node)
            elif kind in nk.VAR_DECLARATION_KINDS:
                self._extract_from_var_declaration(node)
            elif kind == nk.ASSIGNMENT_EXPRESSION:
                self._extract_from_assignment(node)
            elif kind in nk.EXPORTED_FUNCTION_KINDS:
                synth = f"default_export@b{node.start_byte}"
                self._add(FunctionEntity(synth, _body_of(node)))
            else:
                queue.extend(node.children)

    def _extract_from_assignment(self, assign_node: Node) -> None:
        left = assign_node.child_by_field_name(nk.FIELD_LEFT)
        right = assign_node.child_by_field_name(nk.FIELD_RIGHT)
        if left is None or right is None or right.type not in nk.FUNCTION_VALUE_KINDS:
            return

        if left.type == nk.IDENTIFIER:
            name = self._text(left)
        elif left.type == nk.MEMBER_EXPRESSION:
            # exports.foo = () => {}
            name = get_field_text(left, (nk.FIELD_PROPERTY,), self.source) or "<exported>"
        else:
            name = "<exported>"
        self._add(FunctionEntity(name, _body_of(right)))

    def _extract_from_var_declaration(self, decl_node: Node) -> None:
        queue = [decl_node]
        while queue:
            node = queue.pop()
            for child in node.children:
                if child.type != nk.VARIABLE_DECLARATOR:
                    queue.append(child)
                    continue
                name_node = child.child_by_field_name(nk.FIELD_NAME)
                value = child.child_by_field_name(nk.FIELD_VALUE)
                if name_node is None or value is None:
                    continue
                if value.type in nk.FUNCTION_VALUE_KINDS:
                    # Concise arrow bodies are expressions; both shapes are walked
                    self._add(FunctionEntity(self._text(name_node), _body_of(value)))

    def _extract_from_class(self, class_node: Node) -> None:
        class_name = get_field_text(class_node, (nk.FIELD_NAME,), self.source) or "<anon_class>"
        body = class_node.child_by_field_name(nk.FIELD_BODY)
        if body is None:
            return

        # Decorators precede their member inside the class body
        pending: list[Node] = []
        for member in body.children:
            kind = member.type
            if kind == nk.DECORATOR:
                pending.append(member)
                continue

            decorators = pending + [c for c in member.children if c.type == nk.DECORATOR]
            pending = []

            if kind in nk.METHOD_KINDS:
                method_name = get_field_text(
                    member, (nk.FIELD_NAME, nk.FIELD_PROPERTY, nk.FIELD_KEY), self.source
                )
                if method_name is None:
                    method_name = "constructor" if kind == nk.CONSTRUCTOR else "<anon_method>"
                self._add(
                    FunctionEntity(f"{class_name}.{method_name}", _body_of(member), decorators)
                )
            elif kind in nk.FIELD_DEFINITION_KINDS:
                field_name = (
                    get_field_text(member, (nk.FIELD_NAME, nk.FIELD_PROPERTY), self.source)
                    or "<anon_field>"
                )
                value = member.child_by_field_name(nk.FIELD_VALUE)
                if value is not None and value.type in nk.FUNCTION_VALUE_KINDS:
                    self._add(
                        FunctionEntity(f"{class_name}.{field_name}", _body_of(value), decorators)
                    )


def extract_cfgs_from_tree(source: bytes, tree: Tree | Node) -> dict[str, SimpleCfg]:
    """Given source bytes and a tree (or its root node), extract all function CFGs."""
    root = tree.root_node if isinstance(tree, Tree) else tree
    return EntityExtractor(source).extract(root)


def extract_cfgs_from_code(code: str | bytes, language: str = "typescript") -> dict[str, SimpleCfg]:
    """Parse TypeScript code and extract all function CFGs."""
    source = code.encode("utf-8") if isinstance(code, str) else code
    tree = create_parser(language).parse(source)
    if tree.root_node.has_error:
        logger.debug("Source contains syntax errors; extracting from partial tree")
    return extract_cfgs_from_tree(source, tree)


def extract_cfgs_from_file(path: Path, language: str | None = None) -> dict[str, SimpleCfg]:
    """Read and parse one source file.

    Raises ``OSError`` or ``UnicodeDecodeError`` when the file cannot be read.
    """
    code = Path(path).read_text(encoding="utf-8")
    return extract_cfgs_from_code(code, language or get_language_for_path(path) or "typescript")
