"""Configuration helpers for proto2rsgrpc code generation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping

from .errors import FileReadError, InvalidParametersError, MalformedMappingFileError

logger = logging.getLogger(__name__)

SELF_MODULE_PATH = "self"

_KNOWN_KEYS = ("message_module_path", "crate_mapping")
_RUST_PATH = re.compile(r"^(::)?[A-Za-z_][A-Za-z0-9_]*(::[A-Za-z_][A-Za-z0-9_]*)*$")


def _parse_parameter_string(parameter: str | None) -> Dict[str, str]:
    if not parameter:
        return {}

    result: Dict[str, str] = {}
    for entry in parameter.split(","):
        piece = entry.strip()
        if not piece:
            continue
        if "=" not in piece:
            raise InvalidParametersError(
                f"Generator parameter '{piece}' must use the form 'key=value'"
            )
        key, value = piece.split("=", 1)
        key = key.strip()
        if not key:
            raise InvalidParametersError(f"Generator parameter '{piece}' is missing a key")
        result[key] = value.strip()

    unknown = sorted(key for key in result if key not in _KNOWN_KEYS)
    if unknown:
        raise InvalidParametersError(
            f"Unknown generator parameter(s): {', '.join(unknown)}; "
            f"expected one of {', '.join(_KNOWN_KEYS)}"
        )
    return result


def _validate_module_path(value: str) -> str:
    if not value:
        return SELF_MODULE_PATH
    if not _RUST_PATH.match(value):
        raise InvalidParametersError(
            f"message_module_path '{value}' is not a '::'-separated Rust path"
        )

    # ``self`` alone means the generated file's own module; ``crate`` may only
    # start a relative path and ``super`` may only appear in its leading run.
    absolute = value.startswith("::")
    segments = value.lstrip(":").split("::")
    for index, segment in enumerate(segments):
        if segment == SELF_MODULE_PATH:
            valid = value == SELF_MODULE_PATH
        elif segment == "crate":
            valid = index == 0 and not absolute
        elif segment == "super":
            valid = not absolute and all(previous == "super" for previous in segments[:index])
        else:
            continue
        if not valid:
            raise InvalidParametersError(
                f"message_module_path '{value}' cannot use '{segment}' at that position"
            )
    return value


def parse_crate_mapping(contents: str) -> Dict[str, str]:
    """Parse crate mapping text into a ``{proto file: crate name}`` dictionary.

    The text is a sequence of groups: a crate name line, a line holding the
    number of files owned by that crate, then that many proto file paths.
    Empty lines are ignored.
    """

    lines = [line.strip() for line in contents.split("\n")]
    lines = [line for line in lines if line]

    mapping: Dict[str, str] = {}
    index = 0
    while index < len(lines):
        crate_name = lines[index]
        index += 1
        if index >= len(lines):
            raise MalformedMappingFileError(
                f"Crate '{crate_name}' is missing the number of import paths in mapping file"
            )
        count_text = lines[index]
        index += 1
        if not (count_text.isascii() and count_text.isdigit()):
            raise MalformedMappingFileError(
                f"Couldn't parse number of import paths in mapping file: '{count_text}'"
            )
        count = int(count_text)
        if index + count > len(lines):
            raise MalformedMappingFileError(
                f"Crate '{crate_name}' lists {count} import path(s) but the mapping file "
                f"only has {len(lines) - index} line(s) left"
            )
        for file_name in lines[index:index + count]:
            mapping[file_name] = crate_name
        index += count
    return mapping


def load_crate_mapping(path_value: str | Path) -> Dict[str, str]:
    """Read and parse the crate mapping file at *path_value*."""

    path = Path(path_value).expanduser()
    try:
        contents = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileReadError(f"Could not read crate mapping file '{path}': {exc}") from exc
    mapping = parse_crate_mapping(contents)
    logger.debug(f"Loaded {len(mapping)} crate mapping entries from {path}")
    return mapping


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    """Runtime configuration for proto2rsgrpc generation."""

    message_module_path: str = SELF_MODULE_PATH
    crate_mapping: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    files_in_current_crate: FrozenSet[str] = frozenset()

    @classmethod
    def from_parameter_string(cls, parameter: str | None) -> "GenerationOptions":
        overrides = _parse_parameter_string(parameter)

        message_module_path = _validate_module_path(
            overrides.get("message_module_path", SELF_MODULE_PATH)
        )

        crate_mapping: Dict[str, str] = {}
        mapping_file = overrides.get("crate_mapping")
        if mapping_file:
            crate_mapping = load_crate_mapping(mapping_file)

        return cls(
            message_module_path=message_module_path,
            crate_mapping=MappingProxyType(crate_mapping),
        )

    def with_current_crate(self, file_names: Iterable[str]) -> "GenerationOptions":
        """Return a copy that treats *file_names* as the crate being generated."""

        return GenerationOptions(
            message_module_path=self.message_module_path,
            crate_mapping=self.crate_mapping,
            files_in_current_crate=frozenset(file_names),
        )

    def is_file_in_current_crate(self, file_name: str) -> bool:
        return file_name in self.files_in_current_crate

    def crate_name_for(self, file_name: str) -> str | None:
        return self.crate_mapping.get(file_name)


__all__ = [
    "GenerationOptions",
    "SELF_MODULE_PATH",
    "load_crate_mapping",
    "parse_crate_mapping",
]
