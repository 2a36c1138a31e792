from __future__ import annotations

"""Utilities to convert CodeGeneratorRequest payloads into model dataclasses."""

import logging
from typing import Dict, Iterable, List, MutableMapping, Optional, Tuple

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from . import model
from .errors import MissingDescriptorError, UnresolvedTypeError

logger = logging.getLogger(__name__)

_SERVICE_FIELD = descriptor_pb2.FileDescriptorProto.SERVICE_FIELD_NUMBER
_METHOD_FIELD = descriptor_pb2.ServiceDescriptorProto.METHOD_FIELD_NUMBER

LocationIndex = Dict[Tuple[int, ...], descriptor_pb2.SourceCodeInfo.Location]


class DescriptorLoader:
    """Load FileDescriptorProto messages into the read-only service model."""

    def __init__(self, request: plugin_pb2.CodeGeneratorRequest) -> None:
        self._request = request
        self._loaded_files: MutableMapping[str, model.ProtoFile] = {}
        self._type_index: Dict[str, model.MessageType] = {}
        self._loaded = False

    @property
    def files(self) -> MutableMapping[str, model.ProtoFile]:
        """Mapping of file name to :class:`ProtoFile` after :meth:`load`."""

        self.load()
        return self._loaded_files

    @property
    def files_to_generate(self) -> List[str]:
        """Return the list of files requested for generation."""

        return list(self._request.file_to_generate)

    def get_file(self, name: str) -> model.ProtoFile:
        """Return a loaded :class:`ProtoFile` by name."""

        return self.load([name])[name]

    def lookup_type(self, full_name: str) -> model.MessageType:
        """Return the message type registered under *full_name* (leading dot optional)."""

        self.load()
        return self._resolve_type(full_name, context="lookup")

    def load(self, file_names: Optional[Iterable[str]] = None) -> MutableMapping[str, model.ProtoFile]:
        """Load requested files and return the mapping of filenames to :class:`ProtoFile`.

        Message types of every file are indexed before any service is built so
        methods can refer to types declared in any file of the request.
        Subsequent calls return cached results.
        """

        if not self._loaded:
            known_files = {file_proto.name for file_proto in self._request.proto_file}
            for file_proto in self._request.proto_file:
                self._loaded_files[file_proto.name] = self._convert_file(file_proto, known_files)
            for file_proto in self._request.proto_file:
                proto_file = self._loaded_files[file_proto.name]
                proto_file.services.extend(self._convert_services(file_proto))
            self._loaded = True

        if file_names is None:
            return self._loaded_files

        missing = sorted(name for name in file_names if name not in self._loaded_files)
        if missing:
            raise MissingDescriptorError(
                f"Descriptor(s) not found in request: {', '.join(missing)}"
            )
        return {name: self._loaded_files[name] for name in file_names}

    def _convert_file(
        self,
        file_proto: descriptor_pb2.FileDescriptorProto,
        known_files: Iterable[str],
    ) -> model.ProtoFile:
        proto_file = model.ProtoFile(
            name=file_proto.name,
            package=file_proto.package or None,
            dependencies=list(file_proto.dependency),
        )

        for message_proto in file_proto.message_type:
            self._convert_message(message_proto, file_proto, None, proto_file.messages)

        # Descriptor sets written without --include_imports omit dependencies.
        # Only a method that names one of their types is an error.
        for dependency in proto_file.dependencies:
            if dependency not in known_files:
                logger.warning(
                    f"Dependency '{dependency}' of {file_proto.name} is not part of the request"
                )

        return proto_file

    def _convert_message(
        self,
        message_proto: descriptor_pb2.DescriptorProto,
        file_proto: descriptor_pb2.FileDescriptorProto,
        parent: Optional[model.MessageType],
        collected: List[model.MessageType],
    ) -> None:
        parent_name = parent.full_name if parent is not None else file_proto.package
        message = model.MessageType(
            name=message_proto.name,
            full_name=self._qualify_name(parent_name, message_proto.name),
            file_name=file_proto.name,
            parent=parent,
        )
        self._type_index[message.full_name] = message
        collected.append(message)

        for nested_proto in message_proto.nested_type:
            self._convert_message(nested_proto, file_proto, message, collected)

    def _convert_services(self, file_proto: descriptor_pb2.FileDescriptorProto) -> List[model.Service]:
        locations = _index_locations(file_proto)
        services: List[model.Service] = []
        for service_index, service_proto in enumerate(file_proto.service):
            service_path = (_SERVICE_FIELD, service_index)
            full_name = self._qualify_name(file_proto.package, service_proto.name)
            methods = tuple(
                self._convert_method(
                    method_proto,
                    full_name,
                    locations.get(service_path + (_METHOD_FIELD, method_index)),
                )
                for method_index, method_proto in enumerate(service_proto.method)
            )
            leading, trailing = _comments(locations.get(service_path))
            services.append(
                model.Service(
                    proto_name=service_proto.name,
                    full_name=full_name,
                    package=file_proto.package or None,
                    file_name=file_proto.name,
                    methods=methods,
                    leading_comments=leading,
                    trailing_comments=trailing,
                )
            )
        return services

    def _convert_method(
        self,
        method_proto: descriptor_pb2.MethodDescriptorProto,
        service_full_name: str,
        location: Optional[descriptor_pb2.SourceCodeInfo.Location],
    ) -> model.Method:
        full_name = f"{service_full_name}.{method_proto.name}"
        leading, trailing = _comments(location)
        return model.Method(
            proto_name=method_proto.name,
            full_name=full_name,
            input_type=self._resolve_type(method_proto.input_type, context=f"input of {full_name}"),
            output_type=self._resolve_type(method_proto.output_type, context=f"output of {full_name}"),
            client_streaming=method_proto.client_streaming,
            server_streaming=method_proto.server_streaming,
            deprecated=method_proto.options.deprecated,
            leading_comments=leading,
            trailing_comments=trailing,
        )

    def _resolve_type(self, type_name: str, *, context: str) -> model.MessageType:
        normalized = type_name[1:] if type_name.startswith(".") else type_name
        resolved = self._type_index.get(normalized)
        if resolved is None:
            raise UnresolvedTypeError(f"Unable to resolve type reference '{type_name}' ({context})")
        return resolved

    def _qualify_name(self, scope: Optional[str], name: str) -> str:
        return f"{scope}.{name}" if scope else name


def _index_locations(file_proto: descriptor_pb2.FileDescriptorProto) -> LocationIndex:
    index: LocationIndex = {}
    for location in file_proto.source_code_info.location:
        index.setdefault(tuple(location.path), location)
    return index


def _comments(location: Optional[descriptor_pb2.SourceCodeInfo.Location]) -> Tuple[str, str]:
    if location is None:
        return "", ""
    return location.leading_comments, location.trailing_comments


__all__ = ["DescriptorLoader"]
