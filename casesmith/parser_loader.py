"""Tree-sitter language loading for TypeScript and TSX sources."""

from functools import lru_cache
from pathlib import Path

import tree_sitter_typescript as tsts
from loguru import logger
from tree_sitter import Language, Parser

LANGUAGE_EXTENSIONS: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "tsx",
}

_GRAMMARS = {
    "typescript": tsts.language_typescript,
    "tsx": tsts.language_tsx,
}


class ParserLoadError(RuntimeError):
    """Raised when a tree-sitter grammar cannot be loaded or bound to a parser."""


def get_language_for_path(path: str | Path) -> str | None:
    """Return the grammar name for a source path, or None when unsupported."""
    return LANGUAGE_EXTENSIONS.get(Path(path).suffix.lower())


@lru_cache(maxsize=None)
def load_language(name: str) -> Language:
    """Load (once per process) the tree-sitter ``Language`` for ``name``."""
    grammar = _GRAMMARS.get(name)
    if grammar is None:
        raise ParserLoadError(f"Unsupported language: {name}")
    try:
        language = Language(grammar())
    except Exception as e:
        raise ParserLoadError(f"Failed to load {name} grammar: {e}") from e
    logger.debug(f"Loaded tree-sitter grammar for {name}")
    return language


def create_parser(name: str = "typescript") -> Parser:
    """Create a new parser bound to the ``name`` grammar.

    Parsers are not shared between workers; each call returns a fresh one.
    """
    language = load_language(name)
    try:
        return Parser(language)
    except Exception as e:
        raise ParserLoadError(f"Error setting language {name}: {e}") from e
