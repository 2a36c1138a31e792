"""proto2rsgrpc package initialization."""

from __future__ import annotations

from . import model

__all__ = [
    "DefaultTemplateRenderer",
    "DescriptorLoader",
    "GeneratedFile",
    "GeneratedService",
    "GenerationOptions",
    "ITemplateRenderer",
    "MessageType",
    "Method",
    "Printer",
    "ProtoFile",
    "Service",
    "StreamingShape",
    "generate_code",
    "method_path",
    "model",
    "rs_type_path",
]


def __getattr__(name: str):
    if name == "DescriptorLoader":
        from .descriptor_loader import DescriptorLoader

        return DescriptorLoader

    if name in {"DefaultTemplateRenderer", "GeneratedFile", "GeneratedService", "ITemplateRenderer"}:
        from .codegen import DefaultTemplateRenderer, GeneratedFile, GeneratedService, ITemplateRenderer

        mapping = {
            "DefaultTemplateRenderer": DefaultTemplateRenderer,
            "GeneratedFile": GeneratedFile,
            "GeneratedService": GeneratedService,
            "ITemplateRenderer": ITemplateRenderer,
        }
        return mapping[name]

    if name == "GenerationOptions":
        from .config import GenerationOptions

        return GenerationOptions

    if name == "generate_code":
        from .plugin import generate_code

        return generate_code

    if name == "Printer":
        from .template import Printer

        return Printer

    if name == "rs_type_path":
        from .type_paths import rs_type_path

        return rs_type_path

    if name in {"MessageType", "Method", "ProtoFile", "Service", "StreamingShape", "method_path"}:
        return getattr(model, name)

    raise AttributeError(name)
