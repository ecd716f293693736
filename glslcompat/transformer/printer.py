"""Prints documents back to GLSL source for the downstream compiler."""

import math

from glslcompat.transformer.constants import INDENT, OPERATOR_PRECEDENCE
from glslcompat.transformer.document import Document
from glslcompat.transformer.nodes import (
    ArrayAccessExpression,
    ArraySpecifier,
    AssignmentExpression,
    AuxiliaryQualifier,
    BinaryExpression,
    BuiltinNumericTypeSpecifier,
    CompoundStatement,
    DeclarationExternalDeclaration,
    DeclarationMember,
    DeclarationStatement,
    Directive,
    EmptyDeclaration,
    Expression,
    ExpressionStatement,
    ExternalDeclaration,
    FullySpecifiedType,
    FunctionCallExpression,
    FunctionDefinition,
    FunctionParameter,
    InterpolationQualifier,
    InvariantQualifier,
    LayoutQualifier,
    LiteralExpression,
    MemberAccessExpression,
    NamedTypeSpecifier,
    Node,
    PrecisionQualifier,
    ReferenceExpression,
    ReturnStatement,
    SelectionStatement,
    Statement,
    StorageQualifier,
    TypeAndInitDeclaration,
    TypeQualifier,
    TypeQualifierPart,
    TypeSpecifier,
    UnaryExpression,
)
from glslcompat.transformer.types import ElementKind


def _get_precedence(expr: Expression) -> int:
    """Get the precedence of an expression for parenthesization."""
    match expr:
        case AssignmentExpression(op=op) | BinaryExpression(op=op):
            return OPERATOR_PRECEDENCE.get(op, 0)
        case UnaryExpression():
            return OPERATOR_PRECEDENCE["unary"]
        case FunctionCallExpression():
            return OPERATOR_PRECEDENCE["call"]
        case MemberAccessExpression() | ArrayAccessExpression():
            return OPERATOR_PRECEDENCE["member"]
        case _:
            # Literals, references - highest precedence (no parens needed)
            return 100


def format_literal(literal: LiteralExpression) -> str:
    if not literal.type.is_scalar:
        raise ValueError(f"Literal of type {literal.type.compact_name} is not a scalar")
    value = literal.value
    match literal.type.kind:
        case ElementKind.BOOL:
            return "true" if value else "false"
        case ElementKind.INT:
            return str(int(value))
        case ElementKind.UINT:
            return f"{int(value)}u"
        case ElementKind.FLOAT | ElementKind.DOUBLE:
            number = float(value)
            text = f"{number:.1f}" if math.isfinite(number) and number.is_integer() else repr(number)
            return text + ("lf" if literal.type.kind is ElementKind.DOUBLE else "")
    raise ValueError(f"Unsupported literal kind: {literal.type.kind}")


class Printer:
    """Renders tree nodes as GLSL source text."""

    def print_unit(self, document: Document) -> str:
        lines: list[str] = []
        if document.unit.version:
            lines.append(f"#version {document.unit.version}")
        for declaration in document.unit.declarations:
            lines.extend(self.external_declaration(declaration))
        return "\n".join(lines) + "\n"

    def external_declaration(self, declaration: ExternalDeclaration) -> list[str]:
        match declaration:
            case Directive(text=text):
                return [text]
            case EmptyDeclaration():
                return [";"]
            case DeclarationExternalDeclaration(declaration=inner):
                return [f"{self.declaration(inner)};"]
            case FunctionDefinition(prototype=prototype, body=body):
                params = ", ".join(self.parameter(p) for p in prototype.parameters)
                header = f"{self.full_type(prototype.return_type)} {prototype.name.name}({params}) {{"
                lines = [header]
                for stmt in body.statements:
                    lines.extend(self.statement(stmt, 1))
                lines.append("}")
                return lines
        raise ValueError(f"Cannot print {type(declaration).__name__}")

    def qualifier_part(self, part: TypeQualifierPart) -> str:
        match part:
            case StorageQualifier(storage_type=storage_type):
                return storage_type.value
            case LayoutQualifier(entries=entries):
                inner = ", ".join(
                    name if value is None else f"{name} = {value}" for name, value in entries
                )
                return f"layout({inner})"
            case InterpolationQualifier(kind=kind) | AuxiliaryQualifier(kind=kind) | PrecisionQualifier(kind=kind):
                return kind
            case InvariantQualifier():
                return "invariant"
        raise ValueError(f"Cannot print {type(part).__name__}")

    def qualifier(self, qualifier: TypeQualifier) -> str:
        return " ".join(self.qualifier_part(p) for p in qualifier.parts)

    def specifier(self, specifier: TypeSpecifier) -> str:
        match specifier:
            case BuiltinNumericTypeSpecifier(type=numeric_type):
                return numeric_type.compact_name
            case NamedTypeSpecifier(name=name):
                return name
        raise ValueError(f"Cannot print {type(specifier).__name__}")

    def full_type(self, full_type: FullySpecifiedType) -> str:
        specifier = self.specifier(full_type.specifier)
        if full_type.qualifier is not None and full_type.qualifier.parts:
            return f"{self.qualifier(full_type.qualifier)} {specifier}"
        return specifier

    def array(self, array: ArraySpecifier | None) -> str:
        if array is None:
            return ""
        return "[]" if array.size is None else f"[{array.size}]"

    def member(self, member: DeclarationMember) -> str:
        text = member.name.name + self.array(member.array)
        if member.initializer is not None:
            text += f" = {self.expression(member.initializer)}"
        return text

    def declaration(self, declaration: TypeAndInitDeclaration) -> str:
        members = ", ".join(self.member(m) for m in declaration.members)
        return f"{self.full_type(declaration.type)} {members}"

    def parameter(self, parameter: FunctionParameter) -> str:
        text = self.full_type(parameter.type)
        if parameter.name is not None:
            text += f" {parameter.name.name}{self.array(parameter.array)}"
        return text

    def statement(self, stmt: Statement, indent: int = 0) -> list[str]:
        prefix = INDENT * indent

        match stmt:
            case CompoundStatement(statements=statements):
                lines = [f"{prefix}{{"]
                for inner in statements:
                    lines.extend(self.statement(inner, indent + 1))
                lines.append(f"{prefix}}}")
                return lines

            case DeclarationStatement(declaration=declaration):
                return [f"{prefix}{self.declaration(declaration)};"]

            case ExpressionStatement(expression=expression):
                return [f"{prefix}{self.expression(expression)};"]

            case ReturnStatement(value=value):
                if value is not None:
                    return [f"{prefix}return {self.expression(value)};"]
                return [f"{prefix}return;"]

            case SelectionStatement(condition=condition, then=then, otherwise=otherwise):
                lines = [f"{prefix}if ({self.expression(condition)}) {{"]
                lines.extend(self._block(then, indent + 1))
                if otherwise is not None:
                    lines.append(f"{prefix}}} else {{")
                    lines.extend(self._block(otherwise, indent + 1))
                lines.append(f"{prefix}}}")
                return lines

        raise ValueError(f"Cannot print {type(stmt).__name__}")

    def _block(self, stmt: Statement, indent: int) -> list[str]:
        if isinstance(stmt, CompoundStatement):
            lines: list[str] = []
            for inner in stmt.statements:
                lines.extend(self.statement(inner, indent))
            return lines
        return self.statement(stmt, indent)

    def expression(self, expr: Expression, parent_precedence: int = 0) -> str:
        """Print an expression, adding parentheses only when necessary.

        Args:
            expr: The expression to print
            parent_precedence: Precedence of the parent operator (0 = top level)
        """
        result = self._expression_inner(expr)
        if parent_precedence > 0 and _get_precedence(expr) < parent_precedence:
            return f"({result})"
        return result

    def _expression_inner(self, expr: Expression) -> str:
        match expr:
            case ReferenceExpression(identifier=identifier):
                return identifier.name

            case LiteralExpression():
                return format_literal(expr)

            case FunctionCallExpression(name=name, arguments=arguments):
                args = ", ".join(self.expression(a) for a in arguments)
                return f"{name.name}({args})"

            case AssignmentExpression(op=op, target=target, value=value):
                # right-associative
                precedence = OPERATOR_PRECEDENCE.get(op, 1)
                return f"{self.expression(target, precedence + 1)} {op} {self.expression(value, precedence)}"

            case BinaryExpression(op=op, left=left, right=right):
                precedence = OPERATOR_PRECEDENCE.get(op, 0)
                # left-associative: same precedence on the right needs parens
                return f"{self.expression(left, precedence)} {op} {self.expression(right, precedence + 1)}"

            case UnaryExpression(op=op, operand=operand):
                inner = self.expression(operand, OPERATOR_PRECEDENCE['unary'])
                # -(-a) must not turn into the decrement --a
                if isinstance(operand, UnaryExpression):
                    inner = f"({inner})"
                return f"{op}{inner}"

            case MemberAccessExpression(operand=operand, member=member):
                return f"{self.expression(operand, OPERATOR_PRECEDENCE['member'])}.{member}"

            case ArrayAccessExpression(operand=operand, index=index):
                return f"{self.expression(operand, OPERATOR_PRECEDENCE['member'])}[{self.expression(index)}]"

        raise ValueError(f"Cannot print {type(expr).__name__}")


def print_document(document: Document) -> str:
    """Serialize a document to GLSL source text."""
    return Printer().print_unit(document)


def print_node(node: Node) -> str:
    """Serialize a single declaration, statement or expression, mostly for logging."""
    printer = Printer()
    match node:
        case ExternalDeclaration():
            return "\n".join(printer.external_declaration(node))
        case Statement():
            return "\n".join(printer.statement(node))
        case Expression():
            return printer.expression(node)
        case TypeAndInitDeclaration():
            return printer.declaration(node)
    raise ValueError(f"Cannot print {type(node).__name__}")
