"""A vertex/fragment pair with mismatched interfaces.

Run with: glslcompat patch examples/mismatched_pipeline.py
"""

from glslcompat import Document
from glslcompat.transformer import build
from glslcompat.transformer.nodes import StorageType, TranslationUnit


def vertex() -> Document:
    return Document(
        TranslationUnit(
            [
                build.global_declaration("vec3", "position", qualifiers=(StorageType.IN,)),
                build.global_declaration("vec3", "normal", qualifiers=(StorageType.OUT,)),
                build.global_declaration("vec4", "color", qualifiers=(StorageType.OUT,)),
                build.function(
                    "vec3",
                    "unused_helper",
                    [build.parameter("vec3", "v")],
                    [build.returns("v")],
                ),
                build.function(
                    "void",
                    "main",
                    body=[
                        build.assign("normal", build.call("normalize", "position")),
                        build.assign("color", build.call("vec4", 1.0)),
                    ],
                ),
            ],
            version="330 core",
        )
    )


def fragment() -> Document:
    return Document(
        TranslationUnit(
            [
                build.global_declaration("vec4", "normal", qualifiers=(StorageType.IN,)),
                build.global_declaration("vec4", "color", qualifiers=(StorageType.IN,)),
                build.global_declaration("float", "fogDepth", qualifiers=(StorageType.IN,)),
                build.global_declaration("vec4", "fragColor", qualifiers=(StorageType.OUT,)),
                build.function(
                    "void",
                    "main",
                    body=[
                        build.assign(
                            "fragColor",
                            build.binary(
                                build.binary("color", "*", "normal"), "*", "fogDepth"
                            ),
                        ),
                    ],
                ),
            ],
            version="330 core",
        )
    )


def build_pipeline() -> dict[str, Document]:
    return {"vertex": vertex(), "fragment": fragment()}
