"""Rust gRPC code generation for the services of a protobuf file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Protocol

from ..config import GenerationOptions
from ..model import ProtoFile, Service
from ..template import Printer
from .client import generate_client
from .server import generate_server

logger = logging.getLogger(__name__)

PROTO_SUFFIX = ".proto"
GRPC_FILE_SUFFIX = "_grpc.pb.rs"


@dataclass(frozen=True, slots=True)
class GeneratedService:
    """The client and server sections generated for one service."""

    service_name: str
    client: str
    server: str

    @property
    def sections(self) -> List[str]:
        return [self.client, self.server]


@dataclass(frozen=True, slots=True)
class GeneratedFile:
    """A file to be returned to protoc."""

    name: str
    content: str


class ITemplateRenderer(Protocol):
    """Renders the generated files for a single proto file."""

    def render(self, proto_file: ProtoFile, options: GenerationOptions) -> Iterable[GeneratedFile]:
        ...


def rs_grpc_file_name(proto_file_name: str) -> str:
    """Return the output name for *proto_file_name*, e.g. ``foo/bar_grpc.pb.rs``."""

    base = proto_file_name
    if base.endswith(PROTO_SUFFIX):
        base = base[: -len(PROTO_SUFFIX)]
    return base + GRPC_FILE_SUFFIX


def generate_service(service: Service, options: GenerationOptions) -> GeneratedService:
    """Generate the client and server modules of *service*."""

    client = Printer()
    generate_client(client, service, options)
    server = Printer()
    generate_server(server, service, options)
    return GeneratedService(service_name=service.full_name, client=client.text, server=server.text)


class DefaultTemplateRenderer:
    """Emit one ``_grpc.pb.rs`` file holding every service of a proto file."""

    def render(self, proto_file: ProtoFile, options: GenerationOptions) -> List[GeneratedFile]:
        if not proto_file.services:
            logger.debug(f"{proto_file.name} declares no services, nothing to generate")
            return []

        sections: List[str] = []
        for service in proto_file.services:
            logger.debug(
                f"Generating {service.full_name} ({len(service.methods)} method(s)) from {proto_file.name}"
            )
            sections.extend(generate_service(service, options).sections)

        return [GeneratedFile(name=rs_grpc_file_name(proto_file.name), content="\n".join(sections))]


__all__ = [
    "DefaultTemplateRenderer",
    "GeneratedFile",
    "GeneratedService",
    "ITemplateRenderer",
    "generate_service",
    "rs_grpc_file_name",
]
