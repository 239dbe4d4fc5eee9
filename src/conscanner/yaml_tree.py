"""Tagged-variant YAML tree and visitor.

Manifests are composed with PyYAML into its node graph and converted into
three explicit node kinds (``Scalar``, ``Sequence`` and ``Mapping``). Scalars
keep their source text, so ``tag: 1.10`` stays ``"1.10"`` instead of becoming
a float.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeAlias, TypeVar

import yaml

_NULL_TAG = "tag:yaml.org,2002:null"

T = TypeVar("T")


@dataclass(frozen=True)
class Scalar:
    value: str

    def accept(self, visitor: NodeVisitor[T]) -> T:
        return visitor.visit_scalar(self)


@dataclass(frozen=True)
class Sequence:
    items: list[Node] = field(default_factory=list)

    def accept(self, visitor: NodeVisitor[T]) -> T:
        return visitor.visit_sequence(self)


@dataclass(frozen=True)
class Mapping:
    """Mapping node; entries keep document order and may repeat keys."""

    entries: list[tuple[Node, Node]] = field(default_factory=list)

    def accept(self, visitor: NodeVisitor[T]) -> T:
        return visitor.visit_mapping(self)

    def get(self, key: str) -> Node | None:
        """Return the value of the last entry whose key is the scalar ``key``."""
        found: Node | None = None
        for entry_key, value in self.entries:
            if isinstance(entry_key, Scalar) and entry_key.value == key:
                found = value
        return found


Node: TypeAlias = Scalar | Sequence | Mapping


class NodeVisitor(Generic[T]):
    """Base visitor; subclasses override the ``visit_*`` methods they need."""

    def visit(self, node: Node) -> T:
        return node.accept(self)

    def visit_scalar(self, node: Scalar) -> T:
        raise NotImplementedError

    def visit_sequence(self, node: Sequence) -> T:
        raise NotImplementedError

    def visit_mapping(self, node: Mapping) -> T:
        raise NotImplementedError


def from_yaml_node(node: yaml.Node) -> Node:
    """Convert a composed PyYAML node into the tagged-variant tree.

    Aliases share the converted subtree of their anchor. An alias that refers
    back to one of its own ancestors becomes an empty scalar.
    """
    return _convert(node, active=set(), converted={})


def _convert(node: yaml.Node, active: set[int], converted: dict[int, Node]) -> Node:
    if isinstance(node, yaml.ScalarNode):
        return Scalar("" if node.tag == _NULL_TAG else str(node.value))

    key = id(node)
    if key in converted:
        return converted[key]
    if key in active:
        return Scalar("")

    result: Node = Scalar("")
    active.add(key)
    try:
        if isinstance(node, yaml.SequenceNode):
            result = Sequence([_convert(item, active, converted) for item in node.value])
        elif isinstance(node, yaml.MappingNode):
            result = Mapping([
                (_convert(entry_key, active, converted), _convert(value, active, converted))
                for entry_key, value in node.value
            ])
    finally:
        active.discard(key)

    converted[key] = result
    return result


def parse_documents(text: str) -> list[Node]:
    """Parse every YAML document in ``text``.

    Raises:
        yaml.YAMLError: If the stream is not valid YAML.
    """
    return [from_yaml_node(document) for document in yaml.compose_all(text, Loader=yaml.SafeLoader)]
