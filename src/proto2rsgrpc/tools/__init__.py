"""Standalone tools built on the proto2rsgrpc generator."""
