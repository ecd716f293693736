"""Cross-stage reconciliation of shader interfaces.

Walks the pipeline stages in order and compares the ``in`` declarations of each
stage with the ``out`` declarations of the previous stage that has source:

- a used input without a matching output gets a synthesized output in the
  producer, initialized to zero in the producer's entry function
- an output that is declared but never written gets the same initialization
- an output with a different element type, or a narrower vector, of the
  same dimensionality is retyped to what the consumer expects; the producer
  keeps writing a renamed internal variable of the old type, which is
  converted into the output at the end of the entry function
- other mismatches (scalar/vector/matrix, or a vector wider than the input)
  are logged and left to the driver
"""

from collections.abc import Mapping

from loguru import logger

from glslcompat.config import CompatConfig
from glslcompat.transformer import build
from glslcompat.transformer.document import Document
from glslcompat.transformer.errors import MissingNodeError
from glslcompat.transformer.matcher import DeclarationMatch, DeclarationMatcher
from glslcompat.transformer.nodes import (
    BuiltinNumericTypeSpecifier,
    DeclarationExternalDeclaration,
    DeclarationMember,
    Expression,
    ExpressionStatement,
    Identifier,
    NamedTypeSpecifier,
    StorageQualifier,
    StorageType,
    TypeAndInitDeclaration,
    TypeQualifier,
    TypeSpecifier,
)
from glslcompat.transformer.printer import print_node
from glslcompat.transformer.stages import PIPELINE, PatchShaderType, ShaderType
from glslcompat.transformer.template import Template
from glslcompat.transformer.types import NumericType

out_declaration_matcher = DeclarationMatcher(StorageType.OUT)
in_declaration_matcher = DeclarationMatcher(StorageType.IN)

# out __type __name;
declaration_template: Template[DeclarationExternalDeclaration] = Template(
    build.global_declaration(NamedTypeSpecifier("__type"), "__name", qualifiers=(StorageType.OUT,))
)
declaration_template.mark_local_replacement(declaration_template.find_one(TypeQualifier))
declaration_template.mark_local_replacement(
    declaration_template.find_one(NamedTypeSpecifier), TypeSpecifier
)
declaration_template.mark_identifier_replacement("__name")

# __decl = __value;
init_template: Template[ExpressionStatement] = Template(build.assign("__decl", "__value"))
init_template.mark_identifier_replacement("__decl")
init_template.mark_local_replacement(init_template.skeleton.expression.value, Expression)

# __type __internalDecl;
variable_template: Template[DeclarationExternalDeclaration] = Template(
    build.global_declaration(NamedTypeSpecifier("__type"), "__internalDecl")
)
variable_template.mark_local_replacement(
    variable_template.find_one(NamedTypeSpecifier), TypeSpecifier
)
variable_template.mark_identifier_replacement("__internalDecl")

# __oldDecl = __type(__internalDecl);
statement_template: Template[ExpressionStatement] = Template(
    build.assign("__oldDecl", build.call("__type", "__internalDecl"))
)
statement_template.mark_identifier_replacement("__oldDecl")
statement_template.mark_identifier_replacement("__internalDecl")
statement_template.mark_identifier_replacement("__type")

# __oldDecl = __type(__internalDecl, __padding);
statement_template_vector: Template[ExpressionStatement] = Template(
    build.assign("__oldDecl", build.call("__type", "__internalDecl", "__padding"))
)
statement_template_vector.mark_identifier_replacement("__oldDecl")
statement_template_vector.mark_identifier_replacement("__internalDecl")
statement_template_vector.mark_identifier_replacement("__type")
statement_template_vector.mark_local_replacement(
    statement_template_vector.skeleton.expression.value.arguments[1], Expression
)


def get_initializer(document: Document, name: str, type_: NumericType) -> ExpressionStatement:
    """``name = <zero of type_>;``, indexed into ``document``."""
    return init_template.instantiate(document, Identifier(name), build.default_value(type_))


def make_qualifier_out(qualifier: TypeQualifier) -> TypeQualifier:
    """Turn an ``in`` storage qualifier into ``out``, in place.

    ``varying`` is left alone, it already reads as an output in producing stages.
    """
    for part in qualifier.parts:
        if isinstance(part, StorageQualifier) and part.storage_type is StorageType.IN:
            part.storage_type = StorageType.OUT
    return qualifier


def get_conversion(
    document: Document, name: str, alias: str, in_type: NumericType, out_type: NumericType
) -> ExpressionStatement:
    """``name = in_type(alias);``, padding with zeros when widening a vector."""
    missing = 0
    if out_type.is_vector:
        missing = in_type.dimensions[0] - out_type.dimensions[0]
    if missing <= 0:
        return statement_template.instantiate(
            document, Identifier(name), Identifier(alias), Identifier(in_type.compact_name)
        )
    element = in_type.element_type
    padding = build.literal(element.zero_value, element)
    if missing > 1:
        padding_type = NumericType((element.kind, (missing,)))
        padding = build.call(padding_type.compact_name, padding)
    return statement_template_vector.instantiate(
        document, Identifier(name), Identifier(alias), Identifier(in_type.compact_name), padding
    )


def _collect_out_declarations(
    document: Document, shader_type: ShaderType
) -> dict[str, TypeSpecifier | None]:
    out_declarations: dict[str, TypeSpecifier | None] = {}
    for declaration in document.nodes(DeclarationExternalDeclaration):
        matched = out_declaration_matcher.match_declaration(declaration, shader_type)
        if matched is None:
            continue
        for member in matched.members:
            out_declarations[member.name.name] = matched.type
    return out_declarations


class _StagePair:
    """Reconciles one consumer document against its producer."""

    def __init__(
        self,
        producer: Document,
        producer_type: ShaderType,
        consumer: Document,
        consumer_type: ShaderType,
        out_declarations: dict[str, TypeSpecifier | None],
        config: CompatConfig,
    ):
        self.producer = producer
        self.producer_type = producer_type
        self.consumer = consumer
        self.consumer_type = consumer_type
        self.out_declarations = out_declarations
        self.config = config

    def run(self) -> None:
        for declaration in self.consumer.nodes(DeclarationExternalDeclaration):
            matched = in_declaration_matcher.match_declaration(declaration, self.consumer_type)
            if matched is None:
                continue
            for member in matched.members:
                self._reconcile(member.name.name, matched)

    def _reconcile(self, name: str, in_match: DeclarationMatch) -> None:
        # an input that is never read needs no producer
        if not self.consumer.has_reference(name):
            return

        if name not in self.out_declarations:
            self._patch_missing(name, in_match)
            return

        out_specifier = self.out_declarations[name]
        # already patched for this stage pair
        if out_specifier is None:
            return

        in_type = in_match.numeric_type
        out_type = (
            out_specifier.type
            if isinstance(out_specifier, BuiltinNumericTypeSpecifier)
            else None
        )
        if in_type is None or out_type is None:
            self._check_named_types(name, in_match.type, out_specifier)
            return

        if in_type is out_type:
            # matching types, but the output may never be written
            if self.producer.index.count(name) > 1:
                return
            self.producer.prepend_main(get_initializer(self.producer, name, in_type))
            self.out_declarations[name] = None
            return

        if out_type.dimension != in_type.dimension:
            logger.warning(
                f"The in declaration '{name}' in the {self.consumer_type.name} shader "
                f"has a mismatching dimensionality (scalar/vector/matrix) with the out "
                f"declaration in the previous stage {self.producer_type.name} and could "
                f"not be compatibility-patched."
            )
            return

        # dropping components of a written vector is left to the driver
        if out_type.is_vector and out_type.dimensions[0] > in_type.dimensions[0]:
            logger.warning(
                f"The out declaration '{name}' in the {self.producer_type.name} shader "
                f"has more components ({out_type.compact_name}) than the in declaration "
                f"of type {in_type.compact_name} in the following stage "
                f"{self.consumer_type.name} and could not be compatibility-patched."
            )
            return

        self._swap_alias(name, out_specifier, in_match.type, out_type, in_type)

    def _check_named_types(
        self, name: str, in_specifier: TypeSpecifier, out_specifier: TypeSpecifier
    ) -> None:
        if (
            isinstance(in_specifier, NamedTypeSpecifier)
            and isinstance(out_specifier, NamedTypeSpecifier)
            and in_specifier.name == out_specifier.name
        ):
            return
        logger.warning(
            f"The in declaration '{name}' in the {self.consumer_type.name} shader has a "
            f"non-numeric type that differs from the out declaration in the previous "
            f"stage {self.producer_type.name} and could not be compatibility-patched."
        )

    def _patch_missing(self, name: str, in_match: DeclarationMatch) -> None:
        in_type = in_match.numeric_type
        if in_type is None:
            logger.warning(
                f"The in declaration '{name}' in the {self.consumer_type.name} shader "
                f"that has a missing corresponding out declaration in the previous stage "
                f"{self.producer_type.name} has a non-numeric type and could not be "
                f"compatibility-patched."
            )
            return

        out_qualifier = make_qualifier_out(self.producer.clone(in_match.qualifier))
        declaration = declaration_template.instantiate(
            self.producer, out_qualifier, self.producer.clone(in_match.type), Identifier(name)
        )
        self.producer.inject_before_declarations(declaration)
        logger.debug(f"Injected {print_node(declaration)} into the {self.producer_type.name} shader")
        self.producer.prepend_main(get_initializer(self.producer, name, in_type))
        self.out_declarations[name] = None

        logger.warning(
            f"The in declaration '{name}' in the {self.consumer_type.name} shader is "
            f"missing a corresponding out declaration in the previous stage "
            f"{self.producer_type.name} and has been compatibility-patched."
        )

    def _swap_alias(
        self,
        name: str,
        out_specifier: TypeSpecifier,
        in_specifier: TypeSpecifier,
        out_type: NumericType,
        in_type: NumericType,
    ) -> None:
        producer = self.producer
        alias = self.config.tag_prefix + name

        # every use of the output now refers to the internal alias
        producer.rename(name, alias)

        out_declaration = out_specifier.ancestor(TypeAndInitDeclaration)
        if out_declaration is None:
            raise MissingNodeError(
                "The targeted out declaration is not attached!", out_specifier
            )
        out_member: DeclarationMember | None = None
        for member in out_declaration.members:
            if member.name.name == alias:
                out_member = member
        if out_member is None:
            raise MissingNodeError("The targeted out declaration member is missing!")
        producer.replace(out_member.name, Identifier(name))

        # move the member into its own declaration so the other members keep their type
        if len(out_declaration.members) > 1:
            producer.detach(out_member)
            out_qualifier = out_declaration.type.qualifier
            if out_qualifier is None:
                raise MissingNodeError("The out declaration has no qualifier!", out_declaration)
            single = declaration_template.instantiate(
                producer,
                make_qualifier_out(producer.clone(out_qualifier)),
                producer.clone(out_specifier),
                Identifier(name),
            )
            producer.replace(single.declaration.members[0], out_member)
            producer.inject_before_declarations(single)
            out_specifier = single.declaration.type.specifier

        producer.inject_before_declarations(
            variable_template.instantiate(producer, producer.clone(out_specifier), Identifier(alias))
        )
        conversion = get_conversion(producer, name, alias, in_type, out_type)
        producer.append_main(conversion)
        logger.debug(f"Appended {print_node(conversion)} to the {self.producer_type.name} shader")

        # the wire-visible declaration gets the consumer's type
        producer.replace(out_specifier, producer.clone(in_specifier))
        self.out_declarations[name] = None

        logger.warning(
            f"The out declaration '{name}' in the {self.producer_type.name} shader has a "
            f"different type {out_type.compact_name} than the corresponding in "
            f"declaration of type {in_type.compact_name} in the following stage "
            f"{self.consumer_type.name} and has been compatibility-patched."
        )


def reconcile(
    trees: Mapping[PatchShaderType, Document], config: CompatConfig | None = None
) -> None:
    """Patch the interfaces between consecutive stages, in place."""
    config = config or CompatConfig()

    previous: ShaderType | None = None
    for shader_type in PIPELINE:
        patch_types = [
            t for t in PatchShaderType.from_gl_shader_type(shader_type) if trees.get(t) is not None
        ]
        if not patch_types:
            continue

        # the first stage with source only produces
        if previous is None:
            previous = shader_type
            continue

        producer = next(
            trees[t] for t in PatchShaderType.from_gl_shader_type(previous) if trees.get(t) is not None
        )

        if any(True for _ in producer.prefix_query(config.tag_prefix)):
            logger.warning(
                f"The prefix tag {config.tag_prefix} is used in the shader, "
                f"bailing compatibility transformation."
            )
            return

        out_declarations = _collect_out_declarations(producer, previous)
        for patch_type in patch_types:
            logger.debug(f"Reconciling {previous.name} outputs with {patch_type.name} inputs")
            _StagePair(
                producer, previous, trees[patch_type], shader_type, out_declarations, config
            ).run()

        previous = shader_type
