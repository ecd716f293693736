"""Structural matching of tree fragments against example patterns.

A ``Matcher`` is built from a small example fragment in which some nodes are
marked as named wildcards. Matching a candidate compares it to the example node
by node; wildcards accept any node of their kind and record it as a capture.
"""

from collections.abc import Callable
from dataclasses import dataclass, field, fields
from typing import Any, Generic, TypeVar

from glslcompat.transformer import build
from glslcompat.transformer.nodes import (
    BuiltinNumericTypeSpecifier,
    DeclarationExternalDeclaration,
    DeclarationMember,
    ExternalDeclaration,
    Node,
    StorageQualifier,
    StorageType,
    TypeQualifier,
    TypeSpecifier,
)
from glslcompat.transformer.stages import ShaderType
from glslcompat.transformer.types import NumericType

N = TypeVar("N", bound=Node)


@dataclass(eq=False)
class Wildcard(Node):
    """Placeholder in a pattern capturing any node of ``kind``.

    A wildcard marked ``many`` stands for a whole non-empty list slot and
    captures the list. ``where`` further restricts the accepted nodes.
    """

    name: str
    kind: type[Node] = Node
    many: bool = False
    where: Callable[[Node], bool] | None = field(default=None, repr=False)

    def accepts(self, candidate: Any) -> bool:
        if not isinstance(candidate, self.kind):
            return False
        return self.where is None or self.where(candidate)


class Matcher(Generic[N]):
    """Matches candidates against an example fragment with wildcards.

    Args:
        pattern: Example fragment; it is owned by the matcher from now on
    """

    def __init__(self, pattern: N):
        self.pattern = pattern

    def mark_class_wildcard(
        self,
        name: str,
        node: Node,
        kind: type[Node] | None = None,
        many: bool = False,
        where: Callable[[Node], bool] | None = None,
    ) -> Wildcard:
        """Replace ``node`` inside the pattern by a wildcard capturing ``name``.

        Args:
            name: Capture name
            node: Node of the example fragment to generalize
            kind: Accepted node kind, defaults to the class of ``node``
            many: Capture the whole list ``node`` sits in instead of one node
            where: Extra predicate on accepted nodes
        """
        wildcard = Wildcard(name, kind or type(node), many, where)
        for candidate in self.pattern.walk():
            if any(child is node for child in candidate.children()):
                candidate.replace_child(node, wildcard)
                return wildcard
        raise ValueError(f"{type(node).__name__} is not part of the pattern")

    def match(self, candidate: Node) -> dict[str, Any] | None:
        """Return the captures if ``candidate`` matches, otherwise None."""
        captures: dict[str, Any] = {}
        if self._match(self.pattern, candidate, captures):
            return captures
        return None

    def _match(self, pattern: Any, candidate: Any, captures: dict[str, Any]) -> bool:
        match pattern:
            case Wildcard(name=name) as wildcard:
                if not wildcard.accepts(candidate):
                    return False
                captures[name] = candidate
                return True
            case list():
                return self._match_list(pattern, candidate, captures)
            case Node():
                if type(candidate) is not type(pattern):
                    return False
                return all(
                    self._match(getattr(pattern, f.name), getattr(candidate, f.name), captures)
                    for f in fields(pattern)
                    if f.init
                )
            case _:
                return pattern == candidate

    def _match_list(self, pattern: list, candidate: Any, captures: dict[str, Any]) -> bool:
        if not isinstance(candidate, list):
            return False
        if len(pattern) == 1 and isinstance(pattern[0], Wildcard) and pattern[0].many:
            wildcard = pattern[0]
            if not candidate or not all(wildcard.accepts(item) for item in candidate):
                return False
            captures[wildcard.name] = list(candidate)
            return True
        if len(pattern) != len(candidate):
            return False
        return all(self._match(p, c, captures) for p, c in zip(pattern, candidate))


def storage_matches(
    storage_type: StorageType, target: StorageType, shader_type: ShaderType
) -> bool:
    """Whether a declared storage qualifier reads as ``target`` in the given stage.

    ``varying`` predates the in/out keywords: it is an output of vertex and
    geometry shaders and an input of fragment shaders.
    """
    if storage_type is target:
        return True
    if storage_type is not StorageType.VARYING:
        return False
    match shader_type:
        case ShaderType.VERTEX | ShaderType.GEOMETRY:
            return target is StorageType.OUT
        case ShaderType.FRAGMENT:
            return target is StorageType.IN
    return False


@dataclass
class DeclarationMatch:
    """Captures of a successful ``DeclarationMatcher`` match."""

    qualifier: TypeQualifier
    type: TypeSpecifier
    members: list[DeclarationMember]

    @property
    def numeric_type(self) -> NumericType | None:
        if isinstance(self.type, BuiltinNumericTypeSpecifier):
            return self.type.type
        return None


class DeclarationMatcher(Matcher[ExternalDeclaration]):
    """Matches top-level non-array variable declarations of one storage direction."""

    def __init__(self, storage_type: StorageType):
        pattern = build.global_declaration(
            "float", "name", qualifiers=(StorageType.OUT,)
        )
        super().__init__(pattern)
        self.storage_type = storage_type
        declaration = pattern.declaration
        self.mark_class_wildcard("qualifier", declaration.type.qualifier)
        self.mark_class_wildcard("type", declaration.type.specifier, kind=TypeSpecifier)
        self.mark_class_wildcard(
            "name*",
            declaration.members[0],
            many=True,
            where=lambda member: member.array is None,
        )

    def match_declaration(
        self, declaration: Node, shader_type: ShaderType
    ) -> DeclarationMatch | None:
        if not isinstance(declaration, DeclarationExternalDeclaration):
            return None
        captures = self.match(declaration)
        if captures is None:
            return None
        qualifier: TypeQualifier = captures["qualifier"]
        for part in qualifier.parts:
            if isinstance(part, StorageQualifier) and storage_matches(
                part.storage_type, self.storage_type, shader_type
            ):
                return DeclarationMatch(qualifier, captures["type"], captures["name*"])
        return None
