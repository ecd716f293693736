"""Factory helpers for constructing tree fragments.

Front-end adapters, templates and tests use these instead of spelling out the
node dataclasses by hand. Types may be given as a ``NumericType`` or by their
GLSL name; names that are not builtin numeric types become named specifiers.
"""

from glslcompat.transformer.nodes import (
    ArraySpecifier,
    AssignmentExpression,
    BinaryExpression,
    BuiltinNumericTypeSpecifier,
    CompoundStatement,
    DeclarationExternalDeclaration,
    DeclarationMember,
    DeclarationStatement,
    Expression,
    ExpressionStatement,
    FullySpecifiedType,
    FunctionCallExpression,
    FunctionDefinition,
    FunctionParameter,
    FunctionPrototype,
    Identifier,
    LiteralExpression,
    MemberAccessExpression,
    NamedTypeSpecifier,
    ReferenceExpression,
    ReturnStatement,
    Statement,
    StorageQualifier,
    StorageType,
    TypeAndInitDeclaration,
    TypeQualifier,
    TypeQualifierPart,
    TypeSpecifier,
)
from glslcompat.transformer.types import NumericType

TypeLike = NumericType | str | TypeSpecifier
ExprLike = Expression | str | bool | int | float


def specifier(type_: TypeLike) -> TypeSpecifier:
    if isinstance(type_, TypeSpecifier):
        return type_
    if isinstance(type_, NumericType):
        return BuiltinNumericTypeSpecifier(type_)
    if NumericType.is_numeric_name(type_):
        return BuiltinNumericTypeSpecifier(NumericType.from_name(type_))
    return NamedTypeSpecifier(type_)


def qualifier(*parts: StorageType | TypeQualifierPart) -> TypeQualifier | None:
    """Build a qualifier set; storage keywords may be passed as ``StorageType``."""
    if not parts:
        return None
    return TypeQualifier(
        [StorageQualifier(p) if isinstance(p, StorageType) else p for p in parts]
    )


def full_type(type_: TypeLike, *qualifiers: StorageType | TypeQualifierPart) -> FullySpecifiedType:
    return FullySpecifiedType(qualifier(*qualifiers), specifier(type_))


def literal(value: bool | int | float, type_: NumericType | None = None) -> LiteralExpression:
    if type_ is None:
        if isinstance(value, bool):
            type_ = NumericType.BOOL
        elif isinstance(value, int):
            type_ = NumericType.INT
        else:
            type_ = NumericType.FLOAT
    return LiteralExpression(type_, value)


def expr(value: ExprLike) -> Expression:
    """Strings become references, Python scalars become literals."""
    if isinstance(value, Expression):
        return value
    if isinstance(value, str):
        return ref(value)
    return literal(value)


def ref(name: str) -> ReferenceExpression:
    return ReferenceExpression(Identifier(name))


def call(name: str, *arguments: ExprLike) -> FunctionCallExpression:
    return FunctionCallExpression(Identifier(name), [expr(a) for a in arguments])


def binary(left: ExprLike, op: str, right: ExprLike) -> BinaryExpression:
    return BinaryExpression(op, expr(left), expr(right))


def member(operand: ExprLike, name: str) -> MemberAccessExpression:
    return MemberAccessExpression(expr(operand), name)


def default_value(type_: NumericType) -> Expression:
    """The zero value of a type: a literal for scalars, a constructor call otherwise."""
    zero = literal(type_.zero_value, type_.element_type)
    if type_.is_scalar:
        return zero
    return FunctionCallExpression(Identifier(type_.compact_name), [zero])


def assign(target: ExprLike, value: ExprLike, op: str = "=") -> ExpressionStatement:
    return ExpressionStatement(AssignmentExpression(op, expr(target), expr(value)))


def statement(value: ExprLike) -> ExpressionStatement:
    return ExpressionStatement(expr(value))


def returns(value: ExprLike | None = None) -> ReturnStatement:
    return ReturnStatement(None if value is None else expr(value))


def declaration(
    type_: TypeLike,
    *names: str | tuple[str, ExprLike | None],
    qualifiers: tuple[StorageType | TypeQualifierPart, ...] = (),
    array_size: int | None = None,
    unsized_array: bool = False,
) -> TypeAndInitDeclaration:
    """Build a ``TypeAndInitDeclaration``; names may be ``(name, initializer)`` pairs."""
    members = []
    for entry in names:
        name, initializer = entry if isinstance(entry, tuple) else (entry, None)
        array = None
        if array_size is not None or unsized_array:
            array = ArraySpecifier(array_size)
        members.append(
            DeclarationMember(
                Identifier(name),
                array,
                None if initializer is None else expr(initializer),
            )
        )
    return TypeAndInitDeclaration(full_type(type_, *qualifiers), members)


def global_declaration(
    type_: TypeLike,
    *names: str | tuple[str, ExprLike | None],
    qualifiers: tuple[StorageType | TypeQualifierPart, ...] = (),
    array_size: int | None = None,
    unsized_array: bool = False,
) -> DeclarationExternalDeclaration:
    return DeclarationExternalDeclaration(
        declaration(
            type_,
            *names,
            qualifiers=qualifiers,
            array_size=array_size,
            unsized_array=unsized_array,
        )
    )


def local(
    type_: TypeLike,
    *names: str | tuple[str, ExprLike | None],
    qualifiers: tuple[StorageType | TypeQualifierPart, ...] = (),
) -> DeclarationStatement:
    return DeclarationStatement(declaration(type_, *names, qualifiers=qualifiers))


def parameter(
    type_: TypeLike, name: str | None, *qualifiers: StorageType | TypeQualifierPart
) -> FunctionParameter:
    return FunctionParameter(full_type(type_, *qualifiers), None if name is None else Identifier(name))


def function(
    return_type: TypeLike,
    name: str,
    parameters: list[FunctionParameter] | None = None,
    body: list[Statement] | None = None,
) -> FunctionDefinition:
    return FunctionDefinition(
        FunctionPrototype(full_type(return_type), Identifier(name), parameters or []),
        CompoundStatement(body or []),
    )
