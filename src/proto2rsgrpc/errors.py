"""Exceptions raised while generating Rust gRPC service code."""

from __future__ import annotations


class Proto2RsGrpcError(Exception):
    """Base class for errors that abort generation of a file."""


class UnmappedDependencyError(Proto2RsGrpcError):
    """A type lives outside the current crate and no crate owns its file."""

    def __init__(self, type_name: str, file_name: str) -> None:
        super().__init__(
            f"Type '{type_name}' is defined in '{file_name}', which is not part of the "
            "current crate and has no entry in the crate mapping"
        )
        self.type_name = type_name
        self.file_name = file_name


class MalformedMappingFileError(Proto2RsGrpcError):
    """The crate mapping file does not follow the name/count/paths layout."""


class FileReadError(Proto2RsGrpcError):
    """An auxiliary input file could not be opened or read."""


class InvalidParametersError(Proto2RsGrpcError):
    """The generator parameter string could not be parsed."""


class MissingDescriptorError(Proto2RsGrpcError):
    """A file named for generation is absent from the request."""


class UnresolvedTypeError(Proto2RsGrpcError):
    """A method refers to a message type missing from the request."""


class TemplateError(Proto2RsGrpcError):
    """A template referenced a variable that was never provided."""


__all__ = [
    "FileReadError",
    "InvalidParametersError",
    "MalformedMappingFileError",
    "MissingDescriptorError",
    "Proto2RsGrpcError",
    "TemplateError",
    "UnmappedDependencyError",
    "UnresolvedTypeError",
]
