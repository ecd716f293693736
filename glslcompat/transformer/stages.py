"""Shader pipeline stages.

``ShaderType`` names the role a program plays in the GL pipeline, while
``PatchShaderType`` names the concrete program variants that get patched.
Several variants may occupy the same role.
"""

from enum import Enum


class ShaderType(Enum):
    """GL pipeline stage role."""

    VERTEX = "vertex"
    GEOMETRY = "geometry"
    FRAGMENT = "fragment"
    COMPUTE = "compute"


class PatchShaderType(Enum):
    """Concrete program variant and the pipeline role it occupies."""

    VERTEX = ("vertex", ShaderType.VERTEX)
    GEOMETRY = ("geometry", ShaderType.GEOMETRY)
    FRAGMENT = ("fragment", ShaderType.FRAGMENT)
    COMPUTE = ("compute", ShaderType.COMPUTE)

    @property
    def variant_name(self) -> str:
        return self.value[0]

    @property
    def gl_shader_type(self) -> ShaderType:
        return self.value[1]

    @classmethod
    def from_gl_shader_type(cls, shader_type: ShaderType) -> list["PatchShaderType"]:
        """All variants occupying the given role, in declaration order."""
        return [t for t in cls if t.gl_shader_type is shader_type]

    @classmethod
    def from_name(cls, name: str) -> "PatchShaderType":
        for patch_type in cls:
            if patch_type.variant_name == name.lower():
                return patch_type
        raise ValueError(f"Unknown shader variant: {name}")


# Order in which stages hand their outputs to the next stage
PIPELINE: tuple[ShaderType, ...] = (
    ShaderType.VERTEX,
    ShaderType.GEOMETRY,
    ShaderType.FRAGMENT,
)
