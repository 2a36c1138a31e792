"""Resolve the Rust path of a generated message type from the service module."""

from __future__ import annotations

from typing import List, Optional

from .config import SELF_MODULE_PATH, GenerationOptions
from .errors import UnmappedDependencyError
from .model import MessageType
from .naming import camel_to_snake_case, rs_safe_name

MODULE_SEPARATOR = "::"
PARENT_SEGMENT = "super::"


def rust_module_for_containing_type(containing_type: Optional[MessageType]) -> str:
    """Return the module path, with a trailing ``::``, of types nested in *containing_type*.

    Nested messages live in a module named after each enclosing message, so
    ``Outer.Inner.Leaf`` is reached through ``outer::inner::``.
    """

    # Innermost to outermost.
    modules: List[str] = []
    parent = containing_type
    while parent is not None:
        modules.append(rs_safe_name(camel_to_snake_case(parent.name)))
        parent = parent.parent
    modules.reverse()

    return "".join(module + MODULE_SEPARATOR for module in modules)


def rs_type_path_within_message_module(options: GenerationOptions, message: MessageType) -> str:
    """Return the path of *message* below its message module or, for other crates, the global root."""

    crate_relative = rust_module_for_containing_type(message.parent) + rs_safe_name(message.name)
    if options.is_file_in_current_crate(message.file_name):
        return crate_relative

    crate_name = options.crate_name_for(message.file_name)
    if crate_name is None:
        raise UnmappedDependencyError(message.full_name, message.file_name)
    return f"{MODULE_SEPARATOR}{rs_safe_name(crate_name)}{MODULE_SEPARATOR}{crate_relative}"


def rs_type_path(message: MessageType, options: GenerationOptions, depth: int) -> str:
    """Return the path naming *message* from code nested *depth* modules deep.

    *depth* counts the modules between the generated file's root and the
    emitting code. It is ignored for types of other crates and when
    ``message_module_path`` starts from the crate or global root.
    """

    path_within_module = rs_type_path_within_message_module(options, message)
    if not options.is_file_in_current_crate(message.file_name):
        return path_within_module

    path_to_message_module = options.message_module_path + MODULE_SEPARATOR
    if options.message_module_path == SELF_MODULE_PATH:
        path_to_message_module = ""

    if path_to_message_module.startswith(("crate::", MODULE_SEPARATOR)):
        depth = 0

    return PARENT_SEGMENT * max(depth, 0) + path_to_message_module + path_within_module


__all__ = [
    "MODULE_SEPARATOR",
    "PARENT_SEGMENT",
    "rs_type_path",
    "rs_type_path_within_message_module",
    "rust_module_for_containing_type",
]
