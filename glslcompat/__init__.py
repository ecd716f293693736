"""glslcompat - compatibility patching for multi-stage GLSL shader programs."""

from glslcompat.config import CompatConfig
from glslcompat.transformer import (
    Document,
    PatchShaderType,
    ShaderType,
    TransformerError,
    patch_pipeline,
    print_document,
    transform_each,
    transform_grouped,
)

__all__ = [
    "CompatConfig",
    "Document",
    "PatchShaderType",
    "ShaderType",
    "TransformerError",
    "patch_pipeline",
    "print_document",
    "transform_each",
    "transform_grouped",
]
