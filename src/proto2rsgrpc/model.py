from __future__ import annotations

"""Read-only dataclasses describing the services a protobuf file declares."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .naming import camel_to_snake_case, rs_safe_name, snake_to_upper_camel_case


class StreamingShape(str, Enum):
    """The four request/response streaming combinations of an RPC."""

    UNARY = "unary"
    SERVER_STREAMING = "server_streaming"
    CLIENT_STREAMING = "client_streaming"
    BIDI_STREAMING = "bidi_streaming"

    @classmethod
    def from_flags(cls, client_streaming: bool, server_streaming: bool) -> "StreamingShape":
        if client_streaming and server_streaming:
            return cls.BIDI_STREAMING
        if client_streaming:
            return cls.CLIENT_STREAMING
        if server_streaming:
            return cls.SERVER_STREAMING
        return cls.UNARY

    @property
    def client_streaming(self) -> bool:
        return self in (StreamingShape.CLIENT_STREAMING, StreamingShape.BIDI_STREAMING)

    @property
    def server_streaming(self) -> bool:
        return self in (StreamingShape.SERVER_STREAMING, StreamingShape.BIDI_STREAMING)


def _select_comment(leading: str, trailing: str) -> str:
    return leading if leading else trailing


@dataclass(frozen=True, slots=True)
class MessageType:
    """Handle to a message type: its name, enclosing message and owning file."""

    name: str
    full_name: str
    file_name: str
    parent: Optional[MessageType] = None


@dataclass(frozen=True, slots=True)
class Method:
    """Represents an RPC method of a service."""

    proto_name: str
    full_name: str
    input_type: MessageType
    output_type: MessageType
    client_streaming: bool = False
    server_streaming: bool = False
    deprecated: bool = False
    leading_comments: str = ""
    trailing_comments: str = ""

    @property
    def name(self) -> str:
        """The method identifier in Rust style."""

        return rs_safe_name(camel_to_snake_case(self.proto_name))

    @property
    def streaming_shape(self) -> StreamingShape:
        return StreamingShape.from_flags(self.client_streaming, self.server_streaming)

    @property
    def is_deprecated(self) -> bool:
        return self.deprecated

    @property
    def comment(self) -> str:
        return _select_comment(self.leading_comments, self.trailing_comments)


@dataclass(frozen=True, slots=True)
class Service:
    """Represents a service and its methods in declaration order."""

    proto_name: str
    full_name: str
    package: Optional[str] = None
    file_name: str = ""
    methods: Tuple[Method, ...] = ()
    leading_comments: str = ""
    trailing_comments: str = ""

    @property
    def name(self) -> str:
        """The service identifier in Rust style, not including its package."""

        return rs_safe_name(snake_to_upper_camel_case(self.proto_name))

    @property
    def comment(self) -> str:
        return _select_comment(self.leading_comments, self.trailing_comments)


@dataclass(slots=True)
class ProtoFile:
    """Represents a protobuf file, the message types and services it declares."""

    name: str
    package: Optional[str]
    dependencies: List[str] = field(default_factory=list)
    messages: List[MessageType] = field(default_factory=list)
    services: List[Service] = field(default_factory=list)


def method_path(service: Service, method: Method) -> str:
    """Return the wire route of *method*, e.g. ``/package.MyService/MyMethod``."""

    return f"/{service.full_name}/{method.proto_name}"


__all__ = [
    "MessageType",
    "Method",
    "ProtoFile",
    "Service",
    "StreamingShape",
    "method_path",
]
