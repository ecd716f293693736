"""Compatibility transformations for multi-stage GLSL shader programs.

``transform_each`` fixes driver quirks within one stage, ``transform_grouped``
reconciles the interfaces between stages, and ``patch_pipeline`` runs both in
the order the patcher needs: every stage is normalized before any of them is
reconciled.
"""

from collections.abc import Mapping

from loguru import logger

from glslcompat.config import CompatConfig
from glslcompat.transformer.document import Document, IdentifierIndex
from glslcompat.transformer.errors import (
    IllegalRedefinitionError,
    MissingNodeError,
    TransformerError,
)
from glslcompat.transformer.normalizer import normalize
from glslcompat.transformer.printer import print_document
from glslcompat.transformer.reconciler import reconcile
from glslcompat.transformer.stages import PIPELINE, PatchShaderType, ShaderType


def transform_each(document: Document, config: CompatConfig | None = None) -> None:
    """Normalize one stage document in place."""
    normalize(document, config)


def transform_grouped(
    trees: Mapping[PatchShaderType, Document], config: CompatConfig | None = None
) -> None:
    """Reconcile the interfaces of all stage documents in place."""
    reconcile(trees, config)


def patch_pipeline(
    trees: Mapping[PatchShaderType, Document], config: CompatConfig | None = None
) -> dict[PatchShaderType, str]:
    """Normalize and reconcile a whole pipeline and print the patched stages.

    Raises:
        TransformerError: If the trees turned out to be inconsistent; the whole
            compile attempt for this shader program has to be treated as failed
    """
    config = config or CompatConfig()
    for patch_type, document in trees.items():
        logger.debug(f"Normalizing {patch_type.name} shader")
        transform_each(document, config)
    transform_grouped(trees, config)
    return {patch_type: print_document(document) for patch_type, document in trees.items()}


__all__ = [
    "CompatConfig",
    "Document",
    "IdentifierIndex",
    "IllegalRedefinitionError",
    "MissingNodeError",
    "PIPELINE",
    "PatchShaderType",
    "ShaderType",
    "TransformerError",
    "patch_pipeline",
    "print_document",
    "transform_each",
    "transform_grouped",
]
