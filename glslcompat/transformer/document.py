"""Parsed shader documents and their identifier index.

A ``Document`` wraps the tree of one shader stage. The identifier index is a
derived structure: every mutation goes through a ``Document`` method that
registers or unregisters the identifiers of the affected subtree. The index holds
the ``Identifier`` nodes reachable from the root, plus those of fragments that
were cloned or instantiated for this document and are waiting to be spliced in.
"""

from collections import defaultdict
from collections.abc import Iterator
from typing import TypeVar

from loguru import logger

from glslcompat.transformer.errors import MissingNodeError
from glslcompat.transformer.nodes import (
    Directive,
    ExternalDeclaration,
    FunctionDefinition,
    Identifier,
    Node,
    ReferenceExpression,
    Statement,
    TranslationUnit,
)

N = TypeVar("N", bound=Node)


class IdentifierIndex:
    """Maps names to the set of identifier nodes carrying them."""

    def __init__(self) -> None:
        self._occurrences: dict[str, set[Identifier]] = defaultdict(set)

    def add(self, identifier: Identifier) -> None:
        self._occurrences[identifier.name].add(identifier)

    def remove(self, identifier: Identifier) -> None:
        occurrences = self._occurrences.get(identifier.name)
        if occurrences is None:
            return
        occurrences.discard(identifier)
        if not occurrences:
            del self._occurrences[identifier.name]

    def get(self, name: str) -> set[Identifier]:
        """Snapshot of the occurrences of a name, safe to iterate while mutating."""
        return set(self._occurrences.get(name, ()))

    def count(self, name: str) -> int:
        return len(self._occurrences.get(name, ()))

    def names(self) -> list[str]:
        return list(self._occurrences)

    def prefix_query(self, prefix: str) -> Iterator[str]:
        """Lazily yield the indexed names starting with ``prefix``."""
        return (name for name in list(self._occurrences) if name.startswith(prefix))

    def rename(self, old_name: str, new_name: str) -> int:
        """Rename every occurrence of ``old_name``. Returns the number renamed."""
        if old_name == new_name:
            return 0
        occurrences = self._occurrences.pop(old_name, set())
        for identifier in occurrences:
            identifier.name = new_name
        if occurrences:
            self._occurrences[new_name].update(occurrences)
        return len(occurrences)

    def __contains__(self, name: str) -> bool:
        return name in self._occurrences


class Document:
    """One stage's parsed program together with its identifier index.

    Args:
        unit: Root of the parsed tree
        entry_point: Name of the entry function that statements are injected into
    """

    def __init__(self, unit: TranslationUnit, entry_point: str = "main"):
        self.unit = unit
        self.entry_point = entry_point
        self.index = IdentifierIndex()
        self._adopt(unit, None)

    # Queries

    def lookup(self, name: str) -> set[Identifier]:
        return self.index.get(name)

    def prefix_query(self, prefix: str) -> Iterator[str]:
        return self.index.prefix_query(prefix)

    def nodes(self, kind: type[N]) -> list[N]:
        """All attached nodes of the given kind, in document order."""
        return [node for node in self.unit.walk() if isinstance(node, kind)]

    def ancestors(self, name: str, kind: type[N]) -> Iterator[N]:
        """For each occurrence of ``name``, its closest ancestor of ``kind`` if any."""
        for identifier in self.lookup(name):
            found = identifier.ancestor(kind)
            if found is not None:
                yield found

    def has_reference(self, name: str) -> bool:
        """Whether the name is read or written anywhere as an expression."""
        return any(True for _ in self.ancestors(name, ReferenceExpression))

    def functions(self) -> list[FunctionDefinition]:
        return [d for d in self.unit.declarations if isinstance(d, FunctionDefinition)]

    def entry_function(self) -> FunctionDefinition:
        for definition in self.functions():
            if definition.function_name == self.entry_point:
                return definition
        raise MissingNodeError(f"Entry function '{self.entry_point}' is missing")

    # Mutation

    def rename(self, old_name: str, new_name: str) -> None:
        renamed = self.index.rename(old_name, new_name)
        logger.debug(f"Renamed {renamed} occurrences of {old_name} to {new_name}")

    def clone(self, node: N) -> N:
        """Copy a subtree, possibly from another document, and index the copy here.

        The copy is still detached; splice it in with ``insert``, ``replace`` or
        one of the injection points.
        """
        return self.register(node.clone())

    def register(self, fragment: N) -> N:
        """Index a detached fragment that is going to be spliced into this document."""
        self._check_detached(fragment)
        self._adopt(fragment, None)
        return fragment

    def detach(self, node: N) -> N:
        """Remove a subtree from the tree and drop its identifiers from the index."""
        parent = node.parent
        if parent is None:
            raise ValueError(f"{type(node).__name__} is not attached")
        parent.remove_child(node)
        node.parent = None
        self._release(node)
        return node

    def replace(self, old: Node, new: N) -> N:
        """Put a detached subtree into the slot held by ``old``, which is detached."""
        parent = old.parent
        if parent is None:
            raise ValueError(f"{type(old).__name__} is not attached")
        self._check_detached(new)
        parent.replace_child(old, new)
        old.parent = None
        self._release(old)
        self._adopt(new, parent)
        return new

    def insert(self, parent: Node, items: list, position: int, node: N) -> N:
        """Insert a detached subtree into one of ``parent``'s list slots."""
        self._check_detached(node)
        items.insert(position, node)
        self._adopt(node, parent)
        return node

    # Injection points

    def inject_before_declarations(self, declaration: ExternalDeclaration) -> None:
        """Insert a declaration after the leading directives."""
        position = 0
        for existing in self.unit.declarations:
            if not isinstance(existing, Directive):
                break
            position += 1
        self.insert(self.unit, self.unit.declarations, position, declaration)

    def prepend_main(self, statement: Statement) -> None:
        body = self.entry_function().body
        self.insert(body, body.statements, 0, statement)

    def append_main(self, statement: Statement) -> None:
        body = self.entry_function().body
        self.insert(body, body.statements, len(body.statements), statement)

    # Index maintenance

    def _check_detached(self, node: Node) -> None:
        if node.parent is not None or node is self.unit:
            raise ValueError(f"{type(node).__name__} is already attached; detach or clone it first")

    def _adopt(self, node: Node, parent: Node | None) -> None:
        node.parent = parent
        stack = [node]
        while stack:
            current = stack.pop()
            if isinstance(current, Identifier):
                self.index.add(current)
            for child in current.children():
                child.parent = current
                stack.append(child)

    def _release(self, node: Node) -> None:
        for current in node.walk():
            if isinstance(current, Identifier):
                self.index.remove(current)
