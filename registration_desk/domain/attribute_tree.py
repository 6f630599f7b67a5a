"""Attribute Tree - generic nested node structure used for persistence.

A persisted visit is stored as a list of named nodes. Each node is either a
scalar (string / number, dates carried as ISO-8601 strings) or a branch
holding further named child nodes. The tree has no fixed schema: the Visit
Record Codec decides which node names exist and how they map to the typed
registration record.

Architecture:
    - Tagged union (``kind`` discriminator) of ScalarNode and BranchNode
    - Immutable Pydantic models, JSON-serializable for any store
    - ``from_raw`` tolerates untrusted data and skips malformed nodes
"""

import logging
from typing import Annotated, Any, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

ScalarValue = Union[str, int, float, None]


class ScalarNode(BaseModel):
    """Leaf node carrying a single scalar value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["scalar"] = "scalar"
    name: str
    value: ScalarValue = None


class BranchNode(BaseModel):
    """Node grouping named child nodes (e.g. one insurer entry)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["branch"] = "branch"
    name: str
    children: tuple["AttributeNode", ...] = ()

    def child(self, name: str) -> Optional["AttributeNode"]:
        """Return the first child called ``name``."""
        for node in self.children:
            if node.name == name:
                return node
        return None


AttributeNode = Annotated[Union[ScalarNode, BranchNode], Field(discriminator="kind")]

BranchNode.model_rebuild()


class AttributeTree(BaseModel):
    """Top-level ordered list of named nodes."""

    model_config = ConfigDict(frozen=True)

    nodes: tuple[AttributeNode, ...] = ()

    def find(self, name: str) -> Optional[AttributeNode]:
        """Return the first top-level node called ``name``."""
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def names(self) -> list[str]:
        return [node.name for node in self.nodes]

    def to_raw(self) -> list[dict[str, Any]]:
        """Dump the tree as JSON-compatible data."""
        return self.model_dump(mode="json")["nodes"]

    @classmethod
    def from_raw(cls, data: Any) -> "AttributeTree":
        """Build a tree from untrusted JSON-shaped data.

        Accepts either a list of node dictionaries or a mapping with a
        ``nodes`` key. Nodes that do not look like a scalar or a branch are
        dropped; this never raises.
        """
        if isinstance(data, dict):
            data = data.get("nodes", [])
        if not isinstance(data, (list, tuple)):
            logger.debug(f"Ignoring attribute tree payload of type {type(data).__name__}")
            return cls()
        return cls(nodes=tuple(_parse_nodes(data)))


def _parse_nodes(items: Any) -> Iterator[Union[ScalarNode, BranchNode]]:
    for item in items:
        node = _parse_node(item)
        if node is not None:
            yield node


def _parse_node(item: Any) -> Optional[Union[ScalarNode, BranchNode]]:
    if not isinstance(item, dict):
        logger.debug(f"Skipping non-mapping attribute node: {item!r}")
        return None

    name = item.get("name")
    if not isinstance(name, str) or not name:
        logger.debug("Skipping attribute node without a name")
        return None

    kind = item.get("kind")
    children = item.get("children")
    if kind == "branch" or (kind is None and isinstance(children, (list, tuple))):
        if not isinstance(children, (list, tuple)):
            logger.debug(f"Skipping branch node '{name}' without children list")
            return None
        return BranchNode(name=name, children=tuple(_parse_nodes(children)))

    value = item.get("value")
    if isinstance(value, bool) or not isinstance(value, (str, int, float, type(None))):
        logger.debug(f"Skipping scalar node '{name}' with unsupported value type")
        return None
    return ScalarNode(name=name, value=value)


def scalar(name: str, value: ScalarValue) -> ScalarNode:
    return ScalarNode(name=name, value=value)


def branch(name: str, children: list[Union[ScalarNode, BranchNode]]) -> BranchNode:
    return BranchNode(name=name, children=tuple(children))
