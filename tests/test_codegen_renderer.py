from __future__ import annotations

import pytest

pytest.importorskip("google.protobuf")

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from proto2rsgrpc.codegen import rs_grpc_file_name
from proto2rsgrpc.codegen.client import METHOD_FORMATS
from proto2rsgrpc.codegen.server import DISPATCH_FORMATS, GRPC_CALLS, TRAIT_FORMATS
from proto2rsgrpc.model import StreamingShape
from proto2rsgrpc.plugin import SUPPORTED_FEATURES, generate_code
from proto2rsgrpc.template import _prepare


def _add_method(
    service: descriptor_pb2.ServiceDescriptorProto,
    name: str,
    input_type: str,
    output_type: str,
    *,
    client_streaming: bool = False,
    server_streaming: bool = False,
    deprecated: bool = False,
) -> None:
    method = service.method.add()
    method.name = name
    method.input_type = input_type
    method.output_type = output_type
    method.client_streaming = client_streaming
    method.server_streaming = server_streaming
    if deprecated:
        method.options.deprecated = True


def _add_comment(file_proto: descriptor_pb2.FileDescriptorProto, path: list[int], text: str) -> None:
    location = file_proto.source_code_info.location.add()
    location.path.extend(path)
    location.leading_comments = text


def _greeter_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = "helloworld/greeter.proto"
    file_proto.package = "helloworld"
    file_proto.message_type.add().name = "HelloRequest"
    file_proto.message_type.add().name = "HelloReply"

    service = file_proto.service.add()
    service.name = "Greeter"
    _add_method(service, "SayHello", ".helloworld.HelloRequest", ".helloworld.HelloReply")
    _add_method(
        service,
        "Chat",
        ".helloworld.HelloRequest",
        ".helloworld.HelloReply",
        client_streaming=True,
        server_streaming=True,
        deprecated=True,
    )
    _add_comment(file_proto, [6, 0], " The greeting service.\n")
    _add_comment(file_proto, [6, 0, 2, 0], " Sends a greeting.\n")
    _add_comment(file_proto, [6, 0, 2, 1], " Chats forever.\n")
    return file_proto


def _request(*files: descriptor_pb2.FileDescriptorProto, generate: list[str], parameter: str = "") -> plugin_pb2.CodeGeneratorRequest:
    request = plugin_pb2.CodeGeneratorRequest()
    request.proto_file.extend(files)
    request.file_to_generate.extend(generate)
    if parameter:
        request.parameter = parameter
    return request


def _single_file(response: plugin_pb2.CodeGeneratorResponse) -> str:
    assert not response.error
    assert len(response.file) == 1
    return response.file[0].content


def test_greeter_client_and_server_are_generated() -> None:
    response = generate_code(_request(_greeter_file(), generate=["helloworld/greeter.proto"]))
    content = _single_file(response)

    assert response.file[0].name == "helloworld/greeter_grpc.pb.rs"
    assert response.supported_features == SUPPORTED_FEATURES

    assert "pub mod greeter_client {" in content
    assert "pub mod greeter_server {" in content
    assert "pub struct GreeterClient<T> {" in content
    assert "pub struct GreeterServer<T> {" in content
    assert "pub trait Greeter: std::marker::Send + std::marker::Sync + 'static {" in content

    assert content.count("pub async fn ") == 2
    assert "        ///  Sends a greeting.\n        pub async fn say_hello(" in content
    assert "        ///  Chats forever.\n        #[deprecated]\n        pub async fn chat(" in content
    assert content.count("#[deprecated]") == 1
    assert "    ///  The greeting service.\n    #[derive(Debug, Clone)]\n    pub struct GreeterClient<T>" in content

    assert content.count('Err(tonic::Status::unimplemented("Not yet implemented"))') == 2
    assert content.count('"/helloworld.Greeter/SayHello" => {') == 1
    assert content.count('"/helloworld.Greeter/Chat" => {') == 1
    assert 'GrpcMethod::new("helloworld.Greeter", "SayHello")' in content
    assert 'pub const SERVICE_NAME: &str = "helloworld.Greeter";' in content

    assert "request: impl tonic::IntoRequest<super::HelloRequest>," in content
    assert "request: impl tonic::IntoStreamingRequest<Message = super::HelloRequest>," in content
    assert "tonic::Response<tonic::codec::Streaming<super::HelloReply>>" in content
    assert "tonic::Response<BoxStream<super::HelloReply>>" in content
    assert "tonic::server::StreamingService<super::HelloRequest> for ChatSvc<T>" in content
    assert "let res = grpc.unary(method, req).await;" in content
    assert "let res = grpc.streaming(method, req).await;" in content


def test_client_section_precedes_server_section() -> None:
    content = _single_file(generate_code(_request(_greeter_file(), generate=["helloworld/greeter.proto"])))

    assert content.index("pub mod greeter_client") < content.index("pub mod greeter_server")


@pytest.mark.parametrize(
    ("shape", "expected_lines"),
    [
        (StreamingShape.UNARY, set()),
        (StreamingShape.SERVER_STREAMING, {3, 11}),
        (StreamingShape.CLIENT_STREAMING, {2, 9, 11}),
        (StreamingShape.BIDI_STREAMING, {2, 3, 9, 11}),
    ],
)
def test_client_skeletons_differ_only_on_the_streaming_axis(shape: StreamingShape, expected_lines: set[int]) -> None:
    unary = _prepare(METHOD_FORMATS[StreamingShape.UNARY]).splitlines()
    other = _prepare(METHOD_FORMATS[shape]).splitlines()

    assert len(unary) == len(other)
    differing = {index for index, (a, b) in enumerate(zip(unary, other)) if a != b}
    assert differing == expected_lines


@pytest.mark.parametrize(
    ("shape", "expected_lines"),
    [
        (StreamingShape.SERVER_STREAMING, {3}),
        (StreamingShape.CLIENT_STREAMING, {2}),
        (StreamingShape.BIDI_STREAMING, {2, 3}),
    ],
)
def test_trait_skeletons_differ_only_on_the_streaming_axis(shape: StreamingShape, expected_lines: set[int]) -> None:
    unary = _prepare(TRAIT_FORMATS[StreamingShape.UNARY]).splitlines()
    other = _prepare(TRAIT_FORMATS[shape]).splitlines()

    assert len(unary) == len(other)
    differing = {index for index, (a, b) in enumerate(zip(unary, other)) if a != b}
    assert differing == expected_lines


@pytest.mark.parametrize(
    ("shape", "expected_lines"),
    [
        (StreamingShape.UNARY, set()),
        (StreamingShape.SERVER_STREAMING, {3, 5}),
        (StreamingShape.CLIENT_STREAMING, {3, 6}),
        (StreamingShape.BIDI_STREAMING, {3, 5, 6}),
    ],
)
def test_dispatch_skeletons_differ_only_on_the_streaming_axis(shape: StreamingShape, expected_lines: set[int]) -> None:
    def lines(format_shape: StreamingShape) -> list[str]:
        prepared = _prepare(DISPATCH_FORMATS[format_shape]).splitlines()
        stream_types = [line for line in prepared if "type ResponseStream" in line]
        assert len(stream_types) == (1 if format_shape.server_streaming else 0)
        return [line for line in prepared if "type ResponseStream" not in line]

    unary = lines(StreamingShape.UNARY)
    other = lines(shape)

    assert len(unary) == len(other)
    differing = {index for index, (a, b) in enumerate(zip(unary, other)) if a != b}
    assert differing == expected_lines


def test_every_streaming_shape_is_dispatched() -> None:
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = "shapes.proto"
    file_proto.package = "shapes"
    file_proto.message_type.add().name = "Req"
    file_proto.message_type.add().name = "Res"
    service = file_proto.service.add()
    service.name = "Shapes"
    _add_method(service, "Unary", ".shapes.Req", ".shapes.Res")
    _add_method(service, "Download", ".shapes.Req", ".shapes.Res", server_streaming=True)
    _add_method(service, "Upload", ".shapes.Req", ".shapes.Res", client_streaming=True)
    _add_method(service, "Sync", ".shapes.Req", ".shapes.Res", client_streaming=True, server_streaming=True)

    content = _single_file(generate_code(_request(file_proto, generate=["shapes.proto"])))

    expected = {
        "Unary": ("unary", "UnaryService"),
        "Download": ("server_streaming", "ServerStreamingService"),
        "Upload": ("client_streaming", "ClientStreamingService"),
        "Sync": ("streaming", "StreamingService"),
    }
    for method_name, (call, adapter) in expected.items():
        assert f"self.inner.{call}(req, path, codec).await" in content
        assert f"tonic::server::{adapter}<super::Req> for {method_name}Svc<T>" in content
        assert f'"/shapes.Shapes/{method_name}" => {{' in content
    assert {GRPC_CALLS[shape] for shape in StreamingShape} == {call for call, _ in expected.values()}
    for call in GRPC_CALLS.values():
        assert content.count(f"let res = grpc.{call}(method, req).await;") == 1

    upload_arm = content[content.index('"/shapes.Shapes/Upload" => {') :]
    upload_arm = upload_arm[: upload_arm.index('"/shapes.Shapes/Sync" => {')]
    assert "fn call(&mut self, request: tonic::Request<tonic::Streaming<super::Req>>)" in upload_arm
    assert "type ResponseStream" not in upload_arm
    assert "<T as Shapes>::upload(&inner, request).await" in upload_arm
    assert "request: impl tonic::IntoStreamingRequest<Message = super::Req>,\n" in content


def test_file_without_services_produces_no_output() -> None:
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = "messages.proto"
    file_proto.package = "pkg"
    file_proto.message_type.add().name = "Only"

    response = generate_code(_request(file_proto, generate=["messages.proto"]))

    assert not response.error
    assert len(response.file) == 0


def _shared_file() -> descriptor_pb2.FileDescriptorProto:
    shared = descriptor_pb2.FileDescriptorProto()
    shared.name = "common/shared.proto"
    shared.package = "common"
    outer = shared.message_type.add()
    outer.name = "Shared"
    outer.nested_type.add().name = "Inner"
    return shared


def _consumer_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = "svc.proto"
    file_proto.package = "svc"
    file_proto.dependency.append("common/shared.proto")
    service = file_proto.service.add()
    service.name = "Store"
    _add_method(service, "Put", ".common.Shared", ".common.Shared.Inner", server_streaming=True)
    return file_proto


def test_mapped_dependency_uses_absolute_crate_path(tmp_path) -> None:
    mapping = tmp_path / "crates.txt"
    mapping.write_text("crate_a\n1\ncommon/shared.proto\n", encoding="utf-8")

    request = _request(
        _shared_file(),
        _consumer_file(),
        generate=["svc.proto"],
        parameter=f"crate_mapping={mapping}",
    )
    content = _single_file(generate_code(request))

    assert "tonic::IntoRequest<::crate_a::Shared>" in content
    assert "tonic::Response<BoxStream<::crate_a::shared::Inner>>" in content
    assert "super::Shared" not in content


def test_unmapped_dependency_is_reported_as_error() -> None:
    response = generate_code(_request(_shared_file(), _consumer_file(), generate=["svc.proto"]))

    assert len(response.file) == 0
    assert "common.Shared" in response.error
    assert "common/shared.proto" in response.error


def test_files_generated_together_share_a_crate() -> None:
    response = generate_code(
        _request(_shared_file(), _consumer_file(), generate=["common/shared.proto", "svc.proto"])
    )
    content = _single_file(response)

    assert response.file[0].name == "svc_grpc.pb.rs"
    assert "tonic::IntoRequest<super::Shared>" in content
    assert "BoxStream<super::shared::Inner>" in content


def test_invalid_parameter_is_reported_as_error() -> None:
    response = generate_code(
        _request(_greeter_file(), generate=["helloworld/greeter.proto"], parameter="bogus=1")
    )

    assert len(response.file) == 0
    assert "bogus" in response.error


def test_absolute_message_module_path() -> None:
    request = _request(
        _greeter_file(),
        generate=["helloworld/greeter.proto"],
        parameter="message_module_path=crate::pb",
    )
    content = _single_file(generate_code(request))

    assert "tonic::IntoRequest<crate::pb::HelloRequest>" in content
    assert "super::HelloRequest" not in content


def test_multiple_services_keep_declaration_order() -> None:
    file_proto = _greeter_file()
    second = file_proto.service.add()
    second.name = "admin_panel"
    _add_method(second, "Reset", ".helloworld.HelloRequest", ".helloworld.HelloReply")

    content = _single_file(generate_code(_request(file_proto, generate=["helloworld/greeter.proto"])))

    positions = [
        content.index("pub mod greeter_client"),
        content.index("pub mod greeter_server"),
        content.index("pub mod admin_panel_client"),
        content.index("pub mod admin_panel_server"),
    ]
    assert positions == sorted(positions)
    assert "pub trait AdminPanel:" in content
    assert '"/helloworld.AdminPanel/Reset" => {' not in content
    assert '"/helloworld.admin_panel/Reset" => {' in content


def test_rs_grpc_file_name() -> None:
    assert rs_grpc_file_name("helloworld/greeter.proto") == "helloworld/greeter_grpc.pb.rs"
    assert rs_grpc_file_name("noext") == "noext_grpc.pb.rs"
