"""Per-stage normalization of shader documents.

Works around driver differences that only depend on a single stage:

- unused functions are removed, since some drivers skip checks on them and
  bugs in unused code can otherwise break compilation
- ``const`` is removed from local declarations initialized from ``const``
  parameters, directly or through other such locals, because an immutable
  parameter is not a constant expression on every driver
- stray top-level ``;`` declarations are removed
"""

from collections import deque

from loguru import logger

from glslcompat.config import CompatConfig
from glslcompat.transformer.diagnostics import ThrottledDiagnostic
from glslcompat.transformer.document import Document
from glslcompat.transformer.errors import IllegalRedefinitionError
from glslcompat.transformer.nodes import (
    EmptyDeclaration,
    FunctionDefinition,
    ReferenceExpression,
    StorageQualifier,
    StorageType,
    TypeAndInitDeclaration,
    TypeQualifier,
)


def get_const_qualifier(qualifier: TypeQualifier | None) -> StorageQualifier | None:
    if qualifier is None:
        return None
    part = qualifier.storage_qualifier()
    if part is not None and part.storage_type is StorageType.CONST:
        return part
    return None


def remove_unused_functions(document: Document, diagnostic: ThrottledDiagnostic) -> int:
    """Detach functions that are declared but never referenced.

    Repeats until no function becomes newly unused, so helpers only called from
    other unused helpers go too.
    """
    removed = 0
    while True:
        unused = [
            definition
            for definition in document.functions()
            if definition.function_name != document.entry_point
            and document.index.count(definition.function_name) <= 1
        ]
        if not unused:
            return removed
        for definition in unused:
            diagnostic.emit(f"Removing unused function {definition.function_name}")
            document.detach(definition)
        removed += len(unused)


def _const_parameters(definition: FunctionDefinition) -> set[str]:
    names = set()
    for parameter in definition.prototype.parameters:
        if parameter.name is not None and get_const_qualifier(parameter.type.qualifier):
            names.add(parameter.name.name)
    return names


def strip_const_initializers(document: Document) -> bool:
    """Remove ``const`` from locals initialized from ``const`` parameters.

    Returns:
        Whether any declaration was changed

    Raises:
        IllegalRedefinitionError: If a stripped declaration redeclares a name
            that is already tracked in the same function
    """
    const_functions: dict[FunctionDefinition, set[str]] = {}
    for definition in document.functions():
        names = _const_parameters(definition)
        if names:
            const_functions[definition] = names

    pending: set[str] = set()
    queue: deque[str] = deque()
    for names in const_functions.values():
        for name in names:
            if name not in pending:
                pending.add(name)
                queue.append(name)

    hit = False
    while queue:
        name = queue.popleft()
        pending.discard(name)
        for identifier in document.lookup(name):
            # declaration member names are not inside reference expressions
            reference = identifier.ancestor(ReferenceExpression)
            if reference is None:
                continue
            declaration = reference.ancestor(TypeAndInitDeclaration)
            if declaration is None:
                continue
            definition = declaration.ancestor(FunctionDefinition)
            if definition is None:
                continue
            tracked = const_functions.get(definition)
            if tracked is None or name not in tracked:
                continue

            qualifier = declaration.type.qualifier
            const_qualifier = get_const_qualifier(qualifier)
            if const_qualifier is None:
                continue
            document.detach(const_qualifier)
            if not qualifier.parts:
                document.detach(qualifier)
            hit = True

            for member in declaration.members:
                member_name = member.name.name
                if member_name in tracked:
                    raise IllegalRedefinitionError(
                        f"Illegal redefinition of const parameter {name}", member.name
                    )
                tracked.add(member_name)
                logger.debug(f"Tracking {member_name} as initialized from a const parameter")
                if member_name not in pending:
                    pending.add(member_name)
                    queue.append(member_name)
    return hit


def remove_empty_declarations(document: Document) -> bool:
    empty = document.nodes(EmptyDeclaration)
    for declaration in empty:
        document.detach(declaration)
    return bool(empty)


def normalize(document: Document, config: CompatConfig | None = None) -> None:
    """Run every per-stage fix on one document, in place."""
    config = config or CompatConfig()

    unused = ThrottledDiagnostic(config.verbose_diagnostics, "unused function removals")
    remove_unused_functions(document, unused)
    unused.flush()

    if strip_const_initializers(document):
        logger.warning(
            "Removed the const keyword from declarations that use const parameters."
        )

    if remove_empty_declarations(document):
        logger.warning('Removed empty external declarations (";").')
