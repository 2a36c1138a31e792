"""A small ``$variable$`` substitution printer used by the code generators."""

from __future__ import annotations

import re
import textwrap
from contextlib import contextmanager
from typing import Callable, Iterator, List, Mapping, Optional, Union

from .errors import TemplateError

Callback = Callable[[], None]
Value = Union[str, Callback]

_PLACEHOLDER = re.compile(r"\$(\w*)\$")
_LONE_PLACEHOLDER = re.compile(r"^([ \t]*)\$(\w+)\$[ \t]*$")


def _prepare(template: str) -> str:
    if template.startswith("\n"):
        template = template[1:]
    return textwrap.dedent(template)


class Printer:
    """Accumulates generated text.

    Templates are raw strings whose common indentation is removed. A
    ``$name$`` placeholder is replaced with a string, or with whatever a
    callback emits when it is given a callable. A placeholder alone on its line
    indents every line it expands to, and the line disappears when the
    expansion is empty. ``$$`` stands for a literal ``$``.
    """

    def __init__(self) -> None:
        self._chunks: List[str] = []
        self._indent = ""
        self._scopes: List[Mapping[str, Value]] = []

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    @contextmanager
    def with_vars(self, variables: Mapping[str, Value]) -> Iterator["Printer"]:
        self._scopes.append(dict(variables))
        try:
            yield self
        finally:
            self._scopes.pop()

    def emit(self, template: str, variables: Optional[Mapping[str, Value]] = None) -> None:
        if variables:
            with self.with_vars(variables):
                self._emit_lines(_prepare(template))
        else:
            self._emit_lines(_prepare(template))

    def write_raw(self, text: str) -> None:
        """Write *text* line by line at the current indentation, without substitution."""

        for line in text.splitlines(keepends=True):
            self._write_line(line)

    # Internals -----------------------------------------------------------
    def _lookup(self, name: str) -> Value:
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        raise TemplateError(f"Template variable '{name}' is not defined")

    def _emit_lines(self, text: str) -> None:
        for line in text.splitlines(keepends=True):
            lone = _LONE_PLACEHOLDER.match(line.rstrip("\r\n"))
            if lone is not None:
                self._emit_lone(lone.group(1), self._lookup(lone.group(2)))
            else:
                self._write_line(_PLACEHOLDER.sub(self._substitute, line))

    def _emit_lone(self, indent: str, value: Value) -> None:
        previous = self._indent
        self._indent = previous + indent
        try:
            if callable(value):
                value()
            else:
                self.write_raw(value)
        finally:
            self._indent = previous

    def _substitute(self, match: "re.Match[str]") -> str:
        name = match.group(1)
        if not name:
            return "$"
        value = self._lookup(name)
        if callable(value):
            return self._capture(value).rstrip("\n")
        return value

    def _capture(self, callback: Callback) -> str:
        chunks, indent = self._chunks, self._indent
        self._chunks, self._indent = [], ""
        try:
            callback()
            return self.text
        finally:
            self._chunks, self._indent = chunks, indent

    def _write_line(self, line: str) -> None:
        if not line.endswith("\n"):
            line += "\n"
        if line.strip():
            self._chunks.append(self._indent + line)
        else:
            self._chunks.append("\n")


def render(template: str, variables: Mapping[str, Value]) -> str:
    """Render a single template into a string."""

    printer = Printer()
    printer.emit(template, variables)
    return printer.text


__all__ = ["Callback", "Printer", "Value", "render"]
