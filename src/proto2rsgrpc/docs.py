"""Render protobuf source comments as rustdoc comments."""

from __future__ import annotations

from typing import List

DOC_MARKER = "///"

# Markdown and rustdoc characters escaped after the backslash itself.
_SPECIAL_CHARACTERS = ("`", "*", "_", "[", "]", "#", "<", ">")


def sanitize_for_rust_doc(text: str) -> str:
    sanitized = text.replace("\\", "\\\\")
    for char in _SPECIAL_CHARACTERS:
        sanitized = sanitized.replace(char, "\\" + char)
    return sanitized


def _is_blank(line: str) -> bool:
    return not line.strip()


def comment_lines(raw_comment: str) -> List[str]:
    """Split *raw_comment* on ``\\n`` into lines without the trailing blank ones.

    A ``\\r`` ending a line is dropped; other control characters stay in the
    line they appear in.
    """

    lines = [line[:-1] if line.endswith("\r") else line for line in raw_comment.split("\n")]
    while lines and _is_blank(lines[-1]):
        lines.pop()
    return lines


def proto_comment_to_rust_doc(raw_comment: str) -> str:
    """Return *raw_comment* as ``///`` lines, each terminated by a newline.

    Blank lines inside the comment become a bare ``///`` so paragraph breaks
    survive. Every other line is written after ``/// `` exactly as protoc
    reported it, so the usual leading space of a proto comment is kept. An
    empty comment renders as an empty string.
    """

    rendered: List[str] = []
    for line in comment_lines(raw_comment):
        if _is_blank(line):
            rendered.append(DOC_MARKER)
            continue
        rendered.append(f"{DOC_MARKER} {sanitize_for_rust_doc(line.rstrip())}")
    return "".join(line + "\n" for line in rendered)


def rust_doc_line(text: str) -> str:
    """Render a single generated (not user supplied) documentation line."""

    return f"{DOC_MARKER} {text}\n"


__all__ = [
    "comment_lines",
    "proto_comment_to_rust_doc",
    "rust_doc_line",
    "sanitize_for_rust_doc",
]
