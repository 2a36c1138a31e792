"""Identifier conversions used to turn protobuf names into Rust identifiers."""

from __future__ import annotations

from typing import FrozenSet

# Keywords that cannot be used even as raw identifiers (``r#self`` is invalid).
NOT_LEGAL_AS_RAW_IDENTIFIER: FrozenSet[str] = frozenset({"crate", "self", "super", "Self"})

RUST_KEYWORDS: FrozenSet[str] = frozenset(
    {
        # Strict keywords.
        "as",
        "async",
        "await",
        "break",
        "const",
        "continue",
        "crate",
        "dyn",
        "else",
        "enum",
        "extern",
        "false",
        "fn",
        "for",
        "if",
        "impl",
        "in",
        "let",
        "loop",
        "match",
        "mod",
        "move",
        "mut",
        "pub",
        "ref",
        "return",
        "self",
        "Self",
        "static",
        "struct",
        "super",
        "trait",
        "true",
        "type",
        "unsafe",
        "use",
        "where",
        "while",
        # Reserved for future use.
        "abstract",
        "become",
        "box",
        "do",
        "final",
        "gen",
        "macro",
        "override",
        "priv",
        "try",
        "typeof",
        "unsized",
        "virtual",
        "yield",
    }
)

_NOT_LEGAL_SUFFIX = "__"
_RAW_PREFIX = "r#"


def is_rust_keyword(name: str) -> bool:
    return name in RUST_KEYWORDS


def rs_safe_name(name: str) -> str:
    """Return *name* as an identifier that never collides with a Rust keyword.

    Keywords are emitted as raw identifiers (``r#type``). The few keywords that
    raw identifiers cannot express get a ``__`` suffix instead (``self__``).
    """

    if name in NOT_LEGAL_AS_RAW_IDENTIFIER:
        return name + _NOT_LEGAL_SUFFIX
    if is_rust_keyword(name):
        return _RAW_PREFIX + name
    return name


def camel_to_snake_case(name: str) -> str:
    """Convert ``CamelCase`` to ``snake_case``.

    Every upper-case character except the first, and except one directly after
    an underscore, starts a new word.
    """

    pieces = []
    previous = ""
    for index, char in enumerate(name):
        if index > 0 and char.isupper() and previous != "_":
            pieces.append("_")
        pieces.append(char.lower())
        previous = char
    return "".join(pieces)


def snake_to_upper_camel_case(name: str) -> str:
    """Convert ``snake_case`` to ``UpperCamelCase``; other characters keep their case."""

    pieces = []
    capitalize_next = True
    for char in name:
        if char == "_":
            capitalize_next = True
            continue
        pieces.append(char.upper() if capitalize_next else char)
        capitalize_next = char.isdigit()
    return "".join(pieces)


__all__ = [
    "NOT_LEGAL_AS_RAW_IDENTIFIER",
    "RUST_KEYWORDS",
    "camel_to_snake_case",
    "is_rust_keyword",
    "rs_safe_name",
    "snake_to_upper_camel_case",
]
