"""
Pytest configuration and shared fixtures for transformer tests.

Stage documents are built with the ``build`` helpers since parsing GLSL source
is left to front-ends.
"""

import pytest

from glslcompat.transformer import build
from glslcompat.transformer.document import Document
from glslcompat.transformer.nodes import TranslationUnit


@pytest.fixture
def stage():
    """Factory for a stage document with the given globals and a main function."""

    def make(*declarations, body=None, version=None):
        main = build.function("void", "main", body=body or [])
        return Document(TranslationUnit([*declarations, main], version))

    return make
