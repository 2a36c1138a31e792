from __future__ import annotations

"""Command-line helpers for generating Rust gRPC sources without protoc."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Sequence

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from proto2rsgrpc.errors import Proto2RsGrpcError
from proto2rsgrpc.plugin import configure_logging, render_files

logger = logging.getLogger(__name__)


def _build_request(
    descriptor_set: descriptor_pb2.FileDescriptorSet,
    targets: Sequence[str] | None,
    parameter: str | None,
) -> plugin_pb2.CodeGeneratorRequest:
    request = plugin_pb2.CodeGeneratorRequest()
    request.proto_file.extend(descriptor_set.file)

    if targets:
        request.file_to_generate.extend(targets)
    else:
        request.file_to_generate.extend(file_proto.name for file_proto in descriptor_set.file)

    if parameter:
        request.parameter = parameter

    return request


def generate_services(
    descriptor_set_path: Path | str,
    targets: Sequence[str] | None,
    output_dir: Path | str,
    parameter: str | None = None,
) -> List[Path]:
    """Generate ``_grpc.pb.rs`` files for the given targets.

    Parameters
    ----------
    descriptor_set_path:
        Path to a serialized :class:`~google.protobuf.descriptor_pb2.FileDescriptorSet`.
    targets:
        Proto filenames (as understood by ``protoc``) to generate. ``None`` means "all".
    output_dir:
        Directory that will receive the generated files.
    parameter:
        Generator parameter string, as passed to the plugin by ``protoc``.
    """

    descriptor_set_path = Path(descriptor_set_path)
    output_dir = Path(output_dir)

    descriptor_set = descriptor_pb2.FileDescriptorSet()
    descriptor_set.ParseFromString(descriptor_set_path.read_bytes())

    request = _build_request(descriptor_set, targets, parameter)
    generated_files = render_files(request)

    generated_paths: List[Path] = []
    for generated in generated_files:
        path = output_dir / Path(generated.name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(generated.content, encoding="utf-8")
        logger.debug(f"Wrote {path}")
        generated_paths.append(path)

    return generated_paths


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate Rust gRPC client and server modules from a descriptor set produced by protoc."
    )
    parser.add_argument(
        "descriptor_set",
        type=Path,
        help="Path to a serialized FileDescriptorSet (output of protoc --descriptor_set_out)",
    )
    parser.add_argument(
        "--proto",
        dest="protos",
        action="append",
        help=(
            "Proto file to generate (relative to the descriptor). Repeat for multiple files. "
            "Defaults to all entries in the descriptor set."
        ),
    )
    parser.add_argument(
        "--out",
        dest="output",
        required=True,
        type=Path,
        help="Directory to write the generated sources to",
    )
    parser.add_argument(
        "--parameter",
        default=None,
        help="Generator parameters, e.g. 'message_module_path=crate::pb,crate_mapping=mapping.txt'",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point used by ``python -m proto2rsgrpc.tools.generate``."""

    configure_logging()
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    try:
        generated_paths = generate_services(args.descriptor_set, args.protos, args.output, args.parameter)
    except Proto2RsGrpcError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    for path in generated_paths:
        print(path)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
