"""Protocol Buffers compiler plugin entry point for proto2rsgrpc."""
from __future__ import annotations

import logging
import os
import sys
from typing import List

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from .codegen import DefaultTemplateRenderer, GeneratedFile, ITemplateRenderer
from .config import GenerationOptions
from .descriptor_loader import DescriptorLoader
from .errors import Proto2RsGrpcError

logger = logging.getLogger(__name__)

_ENV_LOG_LEVEL = "PROTO2RSGRPC_LOG_LEVEL"

SUPPORTED_FEATURES = (
    plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
    | plugin_pb2.CodeGeneratorResponse.FEATURE_SUPPORTS_EDITIONS
)
MINIMUM_EDITION = descriptor_pb2.EDITION_PROTO2
MAXIMUM_EDITION = descriptor_pb2.EDITION_2023


def _new_response() -> plugin_pb2.CodeGeneratorResponse:
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = SUPPORTED_FEATURES
    response.minimum_edition = MINIMUM_EDITION
    response.maximum_edition = MAXIMUM_EDITION
    return response


def render_files(
    request: plugin_pb2.CodeGeneratorRequest,
    *,
    renderer: ITemplateRenderer | None = None,
) -> List[GeneratedFile]:
    """Generate every output file for *request*, raising on the first error."""

    options = GenerationOptions.from_parameter_string(request.parameter)
    logger.debug(f"Generation options: {options}")

    loader = DescriptorLoader(request)
    loader.load()

    files_to_generate = loader.files_to_generate
    if not files_to_generate:
        files_to_generate = list(loader.files.keys())

    # Every file compiled by this invocation ends up in the same crate.
    options = options.with_current_crate(files_to_generate)
    renderer = renderer or DefaultTemplateRenderer()

    generated: List[GeneratedFile] = []
    for file_name in files_to_generate:
        proto_file = loader.get_file(file_name)
        generated.extend(renderer.render(proto_file, options))
    return generated


def generate_code(
    request: plugin_pb2.CodeGeneratorRequest,
    *,
    renderer: ITemplateRenderer | None = None,
) -> plugin_pb2.CodeGeneratorResponse:
    """Run the proto2rsgrpc pipeline and return a populated response message.

    Generation errors are reported through ``CodeGeneratorResponse.error``;
    the response then carries no files.
    """

    response = _new_response()
    try:
        generated_files = render_files(request, renderer=renderer)
    except Proto2RsGrpcError as exc:
        logger.error(f"Code generation failed: {exc}")
        response.error = str(exc)
        return response

    for generated in generated_files:
        response_file = response.file.add()
        response_file.name = generated.name
        response_file.content = generated.content

    return response


def configure_logging() -> None:
    """Send log records to stderr; stdout carries the plugin response."""

    level_name = os.environ.get(_ENV_LOG_LEVEL, "WARNING").upper()
    level = logging.getLevelName(level_name)
    logging.basicConfig(
        stream=sys.stderr,
        level=level if isinstance(level, int) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Execute the protoc plugin workflow."""

    configure_logging()

    request_payload = sys.stdin.buffer.read()

    request = plugin_pb2.CodeGeneratorRequest()
    if request_payload:
        request.ParseFromString(request_payload)

    response = generate_code(request)
    sys.stdout.buffer.write(response.SerializeToString())


if __name__ == "__main__":  # pragma: no cover - convenience execution entry.
    main()
