"""Templates for synthesizing tree fragments.

A ``Template`` wraps a skeleton fragment in which some nodes are marked as
replacement slots. Each instance is a fresh copy of the skeleton with the given
values bound into the slots, in the order the slots were marked. Instances are
indexed into the target document right away and are ready to be spliced into it.
"""

from dataclasses import dataclass, fields
from typing import Generic, TypeVar

from glslcompat.transformer.document import Document
from glslcompat.transformer.nodes import Identifier, Node

N = TypeVar("N", bound=Node)

# A step from a node to one of its children: field name and list position
Step = tuple[str, int | None]


@dataclass
class Slot:
    """A replacement slot and the positions of the skeleton nodes it replaces."""

    name: str
    kind: type[Node]
    paths: list[list[Step]]


def _path_to(root: Node, target: Node) -> list[Step]:
    stack: list[tuple[Node, list[Step]]] = [(root, [])]
    while stack:
        node, path = stack.pop()
        if node is target:
            return path
        for f in fields(node):
            if not f.init:
                continue
            value = getattr(node, f.name)
            if isinstance(value, Node):
                stack.append((value, path + [(f.name, None)]))
            elif isinstance(value, list):
                for i, item in enumerate(value):
                    if isinstance(item, Node):
                        stack.append((item, path + [(f.name, i)]))
    raise ValueError(f"{type(target).__name__} is not part of the skeleton")


def _replace_at(root: Node, path: list[Step], value: Node) -> None:
    node = root
    for name, position in path[:-1]:
        node = getattr(node, name) if position is None else getattr(node, name)[position]
    name, position = path[-1]
    if position is None:
        setattr(node, name, value)
    else:
        getattr(node, name)[position] = value


class Template(Generic[N]):
    """Skeleton fragment with typed replacement slots.

    Args:
        skeleton: The canonical fragment; slots refer to nodes inside it
    """

    def __init__(self, skeleton: N):
        self.skeleton = skeleton
        self.slots: list[Slot] = []

    def find_one(self, kind: type[Node]) -> Node:
        """The first skeleton node of the given kind, for marking it as a slot."""
        for node in self.skeleton.walk():
            if isinstance(node, kind):
                return node
        raise ValueError(f"The skeleton has no {kind.__name__}")

    def mark_identifier_replacement(self, name: str) -> None:
        """Every identifier called ``name`` is replaced by an ``Identifier`` value."""
        paths = [
            _path_to(self.skeleton, node)
            for node in self.skeleton.walk()
            if isinstance(node, Identifier) and node.name == name
        ]
        if not paths:
            raise ValueError(f"The skeleton has no identifier {name}")
        self.slots.append(Slot(name, Identifier, paths))

    def mark_local_replacement(self, node: Node, kind: type[Node] | None = None) -> None:
        """``node`` is replaced by a value of ``kind``, by default the node's own class."""
        kind = kind or type(node)
        self.slots.append(Slot(kind.__name__, kind, [_path_to(self.skeleton, node)]))

    def instantiate(self, document: Document, *values: Node) -> N:
        """Copy the skeleton, bind ``values`` into the slots in marking order and
        index the instance into ``document``.

        Values must be detached; pass ``document.clone`` results for nodes taken
        from a tree. Wrong arity or slot kinds violate the template's contract
        and raise ``TypeError``.
        """
        if len(values) != len(self.slots):
            raise TypeError(f"Template expects {len(self.slots)} values, got {len(values)}")
        instance = self.skeleton.clone()
        for slot, value in zip(self.slots, values):
            if not isinstance(value, slot.kind):
                raise TypeError(
                    f"Slot {slot.name} expects {slot.kind.__name__}, "
                    f"got {type(value).__name__}"
                )
            if value.parent is not None:
                raise ValueError(f"Value for slot {slot.name} is still attached")
            for i, path in enumerate(slot.paths):
                _replace_at(instance, path, value if i == 0 else value.clone())
        return document.register(instance)
