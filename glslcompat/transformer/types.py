"""Builtin numeric GLSL types.

Each member of ``NumericType`` carries its element kind and its dimensions:
``()`` for scalars, ``(n,)`` for vectors and ``(columns, rows)`` for matrices.
"""

from enum import Enum


class ElementKind(Enum):
    """Component type of a numeric GLSL type."""

    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    DOUBLE = "double"


# Name prefix used by vector types of each element kind (vec3, ivec3, ...)
VECTOR_PREFIXES: dict[ElementKind, str] = {
    ElementKind.BOOL: "b",
    ElementKind.INT: "i",
    ElementKind.UINT: "u",
    ElementKind.FLOAT: "",
    ElementKind.DOUBLE: "d",
}

# Zero-equivalent value of each element kind
ZERO_VALUES: dict[ElementKind, bool | int | float] = {
    ElementKind.BOOL: False,
    ElementKind.INT: 0,
    ElementKind.UINT: 0,
    ElementKind.FLOAT: 0.0,
    ElementKind.DOUBLE: 0.0,
}


class NumericType(Enum):
    """Builtin scalar, vector and matrix types."""

    BOOL = (ElementKind.BOOL, ())
    INT = (ElementKind.INT, ())
    UINT = (ElementKind.UINT, ())
    FLOAT = (ElementKind.FLOAT, ())
    DOUBLE = (ElementKind.DOUBLE, ())

    BVEC2 = (ElementKind.BOOL, (2,))
    BVEC3 = (ElementKind.BOOL, (3,))
    BVEC4 = (ElementKind.BOOL, (4,))
    IVEC2 = (ElementKind.INT, (2,))
    IVEC3 = (ElementKind.INT, (3,))
    IVEC4 = (ElementKind.INT, (4,))
    UVEC2 = (ElementKind.UINT, (2,))
    UVEC3 = (ElementKind.UINT, (3,))
    UVEC4 = (ElementKind.UINT, (4,))
    VEC2 = (ElementKind.FLOAT, (2,))
    VEC3 = (ElementKind.FLOAT, (3,))
    VEC4 = (ElementKind.FLOAT, (4,))
    DVEC2 = (ElementKind.DOUBLE, (2,))
    DVEC3 = (ElementKind.DOUBLE, (3,))
    DVEC4 = (ElementKind.DOUBLE, (4,))

    MAT2 = (ElementKind.FLOAT, (2, 2))
    MAT2X3 = (ElementKind.FLOAT, (2, 3))
    MAT2X4 = (ElementKind.FLOAT, (2, 4))
    MAT3X2 = (ElementKind.FLOAT, (3, 2))
    MAT3 = (ElementKind.FLOAT, (3, 3))
    MAT3X4 = (ElementKind.FLOAT, (3, 4))
    MAT4X2 = (ElementKind.FLOAT, (4, 2))
    MAT4X3 = (ElementKind.FLOAT, (4, 3))
    MAT4 = (ElementKind.FLOAT, (4, 4))
    DMAT2 = (ElementKind.DOUBLE, (2, 2))
    DMAT2X3 = (ElementKind.DOUBLE, (2, 3))
    DMAT2X4 = (ElementKind.DOUBLE, (2, 4))
    DMAT3X2 = (ElementKind.DOUBLE, (3, 2))
    DMAT3 = (ElementKind.DOUBLE, (3, 3))
    DMAT3X4 = (ElementKind.DOUBLE, (3, 4))
    DMAT4X2 = (ElementKind.DOUBLE, (4, 2))
    DMAT4X3 = (ElementKind.DOUBLE, (4, 3))
    DMAT4 = (ElementKind.DOUBLE, (4, 4))

    @property
    def kind(self) -> ElementKind:
        return self.value[0]

    @property
    def dimensions(self) -> tuple[int, ...]:
        return self.value[1]

    @property
    def dimension(self) -> int:
        """0 for scalars, 1 for vectors, 2 for matrices."""
        return len(self.dimensions)

    @property
    def is_scalar(self) -> bool:
        return self.dimension == 0

    @property
    def is_vector(self) -> bool:
        return self.dimension == 1

    @property
    def is_matrix(self) -> bool:
        return self.dimension == 2

    @property
    def element_type(self) -> "NumericType":
        """The scalar type of this type's components."""
        return NumericType((self.kind, ()))

    @property
    def compact_name(self) -> str:
        """Shortest GLSL spelling of the type (mat2 rather than mat2x2)."""
        match self.dimensions:
            case ():
                return self.kind.value
            case (size,):
                return f"{VECTOR_PREFIXES[self.kind]}vec{size}"
            case (columns, rows):
                prefix = "dmat" if self.kind is ElementKind.DOUBLE else "mat"
                if columns == rows:
                    return f"{prefix}{columns}"
                return f"{prefix}{columns}x{rows}"
        raise ValueError(f"Unsupported dimensions: {self.dimensions}")

    @property
    def zero_value(self) -> bool | int | float:
        return ZERO_VALUES[self.kind]

    @classmethod
    def from_name(cls, name: str) -> "NumericType":
        """Look up a type by its GLSL spelling, accepting the long matrix forms."""
        try:
            return _BY_NAME[name]
        except KeyError:
            raise ValueError(f"Unknown numeric type: {name}") from None

    @classmethod
    def is_numeric_name(cls, name: str) -> bool:
        return name in _BY_NAME


_BY_NAME: dict[str, NumericType] = {t.compact_name: t for t in NumericType}
# Square matrices also have an explicit mat2x2 spelling
_BY_NAME.update(
    {
        f"{t.compact_name}x{t.dimensions[0]}": t
        for t in NumericType
        if t.is_matrix and t.dimensions[0] == t.dimensions[1]
    }
)
