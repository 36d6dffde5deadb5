"""Heuristic security tagging of calls, identifiers and decorators."""

from dataclasses import dataclass
from enum import Enum

from tree_sitter import Node

from .. import node_kinds as nk
from ..utils.ast_helpers import get_snippet


class EdgeKind(str, Enum):
    """Coarse classification of a CFG edge."""

    BRANCH = "branch"
    LOOP = "loop"
    RETURN = "return"
    NET = "net"
    DB = "db"
    AUTH = "auth"
    CRYPTO = "crypto"
    SECRET = "secret"
    LOG = "log"
    OTHER = "other"


# Label prefix for each kind that can tag a CFG node
TAG_PREFIXES: dict[EdgeKind, str] = {
    EdgeKind.NET: "NET",
    EdgeKind.DB: "DB",
    EdgeKind.AUTH: "AUTH",
    EdgeKind.CRYPTO: "CRYPTO",
    EdgeKind.SECRET: "SECRET",
    EdgeKind.LOG: "LOG",
}

USER_ENTRY_MARKER = "USER ENTRY"
USER_ENTRY_LABEL = f"{USER_ENTRY_MARKER} (Nest route)"


@dataclass(frozen=True)
class TagRule:
    """A call-name rule: matches when the name starts with a prefix or contains a marker."""

    kind: EdgeKind
    prefixes: tuple[str, ...] = ()
    substrings: tuple[str, ...] = ()

    def matches(self, name: str) -> bool:
        return name.startswith(self.prefixes) or any(s in name for s in self.substrings)


# Evaluated in order; first match wins ("sign"/"verify" must not shadow jwt)
CALL_RULES: tuple[TagRule, ...] = (
    TagRule(
        EdgeKind.NET,
        prefixes=("axios", "fetch"),
        substrings=("httpservice", "got.", "grpc."),
    ),
    TagRule(
        EdgeKind.DB,
        substrings=("prisma.", "repository.", "manager.", "mongoose.", "model.", "query"),
    ),
    TagRule(EdgeKind.AUTH, substrings=("jwt", "authguard", "passport")),
    TagRule(
        EdgeKind.CRYPTO,
        substrings=(
            "bcrypt",
            "crypto.",
            "createhash",
            "createhmac",
            "randombytes",
            "sign",
            "verify",
        ),
    ),
    TagRule(
        EdgeKind.LOG,
        prefixes=("console.",),
        substrings=("logger.", "winston", "pino"),
    ),
)

SECRET_MARKERS: tuple[str, ...] = (
    "process.env",
    "configservice.get",
    "secret",
    "privatekey",
    "apikey",
    "token",
)

ROUTE_DECORATOR_PREFIXES: tuple[str, ...] = ("@get", "@post", "@put", "@delete", "@patch", "@all")
GUARD_DECORATOR_MARKERS: tuple[str, ...] = ("useguards", "auth")


def tag_label(kind: EdgeKind, snippet: str) -> str:
    """Build a tag node label such as ``"NET: fetch(url)"``."""
    return f"{TAG_PREFIXES.get(kind, 'OTHER')}: {snippet}"


def _flatten(node: Node, source: bytes, parts: list[str]) -> None:
    if node.type == nk.IDENTIFIER:
        parts.append(get_snippet(node, source))
    elif node.type == nk.MEMBER_EXPRESSION:
        obj = node.child_by_field_name(nk.FIELD_OBJECT)
        if obj is not None:
            _flatten(obj, source, parts)
        prop = node.child_by_field_name(nk.FIELD_PROPERTY)
        if prop is not None:
            parts.append(get_snippet(prop, source))
    else:
        parts.append(get_snippet(node, source))


def call_name(source: bytes, call: Node) -> str | None:
    """Flatten a call target, e.g. ``prisma.user.findMany(...)`` -> ``"prisma.user.findMany"``."""
    func = call.child_by_field_name(nk.FIELD_FUNCTION)
    if func is None:
        return None
    parts: list[str] = []
    _flatten(func, source, parts)
    return ".".join(parts) if parts else None


def classify_name(name: str) -> EdgeKind | None:
    """Apply the ordered call rules to an already flattened, lower-cased name."""
    for rule in CALL_RULES:
        if rule.matches(name):
            return rule.kind
    return None


def classify_call(source: bytes, call: Node) -> EdgeKind | None:
    """Classify a call expression as NET/DB/AUTH/CRYPTO/LOG, or None."""
    name = (call_name(source, call) or "").lower()
    return classify_name(name)


def is_secretish_text(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in SECRET_MARKERS)


def is_secretish(source: bytes, node: Node) -> bool:
    """True if the node reads an env var, a config getter, or names a secret."""
    return is_secretish_text(get_snippet(node, source))


def decorator_labels(source: bytes, decorator: Node) -> list[str]:
    """Labels contributed by a decorator: a route entry point and/or an auth guard."""
    raw = get_snippet(decorator, source)
    lowered = raw.lower()
    labels = []
    if lowered.startswith(ROUTE_DECORATOR_PREFIXES):
        labels.append(USER_ENTRY_LABEL)
    if any(marker in lowered for marker in GUARD_DECORATOR_MARKERS):
        labels.append(tag_label(EdgeKind.AUTH, raw))
    return labels
