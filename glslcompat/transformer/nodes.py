"""Tree nodes for parsed GLSL documents.

Nodes are plain dataclasses forming a closed set of variants. Every node keeps a
``parent`` back-reference which is maintained by ``Document`` whenever a subtree
is spliced in or removed; fragments that are not part of a document have
unreliable parent links until they are attached.

Node equality is identity: two structurally equal nodes are still different
occurrences, which is what the identifier index relies on.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, TypeVar

from glslcompat.transformer.types import NumericType

N = TypeVar("N", bound="Node")


class StorageType(Enum):
    """Storage qualifier keywords."""

    CONST = "const"
    IN = "in"
    OUT = "out"
    INOUT = "inout"
    VARYING = "varying"
    ATTRIBUTE = "attribute"
    UNIFORM = "uniform"
    BUFFER = "buffer"
    SHARED = "shared"


# Base


@dataclass(eq=False)
class Node:
    """Base tree node."""

    parent: "Node | None" = field(default=None, init=False, repr=False)

    def children(self) -> Iterator["Node"]:
        """Yield the direct child nodes in field order."""
        for f in fields(self):
            if not f.init:
                continue
            value = getattr(self, f.name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item

    def walk(self) -> Iterator["Node"]:
        """Yield this node and all of its descendants in pre-order."""
        stack: list[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.children())))

    def ancestor(self, kind: type[N]) -> N | None:
        """Find the closest strict ancestor of the given kind."""
        node = self.parent
        while node is not None:
            if isinstance(node, kind):
                return node
            node = node.parent
        return None

    def replace_child(self, old: "Node", new: "Node") -> None:
        """Put ``new`` into the slot currently held by ``old``."""
        for f in fields(self):
            if not f.init:
                continue
            value = getattr(self, f.name)
            if value is old:
                setattr(self, f.name, new)
                return
            if isinstance(value, list):
                for i, item in enumerate(value):
                    if item is old:
                        value[i] = new
                        return
        raise ValueError(f"{type(old).__name__} is not a child of {type(self).__name__}")

    def remove_child(self, old: "Node") -> None:
        """Drop ``old`` from a list slot or clear the optional slot holding it."""
        for f in fields(self):
            if not f.init:
                continue
            value = getattr(self, f.name)
            if value is old:
                setattr(self, f.name, None)
                return
            if isinstance(value, list):
                for i, item in enumerate(value):
                    if item is old:
                        del value[i]
                        return
        raise ValueError(f"{type(old).__name__} is not a child of {type(self).__name__}")

    def clone(self: N) -> N:
        """Deep-copy this subtree. The copy is detached and unindexed."""
        values = {f.name: _clone_value(getattr(self, f.name)) for f in fields(self) if f.init}
        return type(self)(**values)


def _clone_value(value: Any) -> Any:
    if isinstance(value, Node):
        return value.clone()
    if isinstance(value, list):
        return [_clone_value(item) for item in value]
    return value


@dataclass(eq=False)
class Identifier(Node):
    """An occurrence of a name. The only node kind held by the identifier index."""

    name: str


# Qualifiers


@dataclass(eq=False)
class TypeQualifierPart(Node):
    pass


@dataclass(eq=False)
class StorageQualifier(TypeQualifierPart):
    storage_type: StorageType


@dataclass(eq=False)
class LayoutQualifier(TypeQualifierPart):
    """layout(...) with (name, value) entries; value is None for bare names."""

    entries: list[tuple[str, int | None]] = field(default_factory=list)


@dataclass(eq=False)
class InterpolationQualifier(TypeQualifierPart):
    kind: str  # flat, smooth, noperspective


@dataclass(eq=False)
class AuxiliaryQualifier(TypeQualifierPart):
    kind: str  # centroid, sample, patch


@dataclass(eq=False)
class PrecisionQualifier(TypeQualifierPart):
    kind: str  # lowp, mediump, highp


@dataclass(eq=False)
class InvariantQualifier(TypeQualifierPart):
    pass


@dataclass(eq=False)
class TypeQualifier(Node):
    """Ordered qualifier parts. Holds at most one storage qualifier."""

    parts: list[TypeQualifierPart] = field(default_factory=list)

    def __post_init__(self) -> None:
        storage = [p for p in self.parts if isinstance(p, StorageQualifier)]
        if len(storage) > 1:
            kinds = ", ".join(p.storage_type.value for p in storage)
            raise ValueError(f"Qualifier has more than one storage qualifier: {kinds}")

    def storage_qualifier(self) -> StorageQualifier | None:
        for part in self.parts:
            if isinstance(part, StorageQualifier):
                return part
        return None


# Types


@dataclass(eq=False)
class TypeSpecifier(Node):
    pass


@dataclass(eq=False)
class BuiltinNumericTypeSpecifier(TypeSpecifier):
    type: NumericType


@dataclass(eq=False)
class NamedTypeSpecifier(TypeSpecifier):
    """Any non-numeric type: void, samplers, images and structs."""

    name: str


@dataclass(eq=False)
class ArraySpecifier(Node):
    """Array brackets; size is None for unsized arrays."""

    size: int | None = None


@dataclass(eq=False)
class FullySpecifiedType(Node):
    qualifier: TypeQualifier | None
    specifier: TypeSpecifier


# Expressions


@dataclass(eq=False)
class Expression(Node):
    pass


@dataclass(eq=False)
class ReferenceExpression(Expression):
    identifier: Identifier


@dataclass(eq=False)
class LiteralExpression(Expression):
    """Scalar literal; ``type`` is always a scalar numeric type."""

    type: NumericType
    value: bool | int | float


@dataclass(eq=False)
class FunctionCallExpression(Expression):
    """Function call or type constructor call."""

    name: Identifier
    arguments: list[Expression] = field(default_factory=list)


@dataclass(eq=False)
class AssignmentExpression(Expression):
    op: str
    target: Expression
    value: Expression


@dataclass(eq=False)
class BinaryExpression(Expression):
    op: str
    left: Expression
    right: Expression


@dataclass(eq=False)
class UnaryExpression(Expression):
    op: str
    operand: Expression


@dataclass(eq=False)
class MemberAccessExpression(Expression):
    """Field or swizzle access; the member name is not an identifier occurrence."""

    operand: Expression
    member: str


@dataclass(eq=False)
class ArrayAccessExpression(Expression):
    operand: Expression
    index: Expression


# Declarations


@dataclass(eq=False)
class DeclarationMember(Node):
    name: Identifier
    array: ArraySpecifier | None = None
    initializer: Expression | None = None


@dataclass(eq=False)
class TypeAndInitDeclaration(Node):
    """A variable declaration with one or more members sharing a type."""

    type: FullySpecifiedType
    members: list[DeclarationMember] = field(default_factory=list)


@dataclass(eq=False)
class FunctionParameter(Node):
    type: FullySpecifiedType
    name: Identifier | None = None
    array: ArraySpecifier | None = None


@dataclass(eq=False)
class FunctionPrototype(Node):
    return_type: FullySpecifiedType
    name: Identifier
    parameters: list[FunctionParameter] = field(default_factory=list)


# Statements


@dataclass(eq=False)
class Statement(Node):
    pass


@dataclass(eq=False)
class CompoundStatement(Statement):
    statements: list[Statement] = field(default_factory=list)


@dataclass(eq=False)
class DeclarationStatement(Statement):
    declaration: TypeAndInitDeclaration


@dataclass(eq=False)
class ExpressionStatement(Statement):
    expression: Expression


@dataclass(eq=False)
class SelectionStatement(Statement):
    condition: Expression
    then: Statement
    otherwise: Statement | None = None


@dataclass(eq=False)
class ReturnStatement(Statement):
    value: Expression | None = None


# External declarations


@dataclass(eq=False)
class ExternalDeclaration(Node):
    pass


@dataclass(eq=False)
class Directive(ExternalDeclaration):
    """A preprocessor line kept verbatim, such as #extension."""

    text: str


@dataclass(eq=False)
class EmptyDeclaration(ExternalDeclaration):
    """A stray top-level ``;``."""


@dataclass(eq=False)
class DeclarationExternalDeclaration(ExternalDeclaration):
    declaration: TypeAndInitDeclaration


@dataclass(eq=False)
class FunctionDefinition(ExternalDeclaration):
    prototype: FunctionPrototype
    body: CompoundStatement

    @property
    def function_name(self) -> str:
        return self.prototype.name.name


@dataclass(eq=False)
class TranslationUnit(Node):
    """Root of one parsed shader program."""

    declarations: list[ExternalDeclaration] = field(default_factory=list)
    version: str | None = None
