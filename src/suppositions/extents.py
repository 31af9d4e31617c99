"""Recording which bytes produced which values.

An ExtentTracker wraps a ByteSource and records, as generation proceeds,
a tree of extents: every call to `draw()` opens a branch extent, and raw
byte reads between two scope boundaries are coalesced into a single leaf.

The tree is stored as an arena: a flat list of Extent nodes that refer to
their parent and children by index. Copying a tree is a shallow copy of
that list, and navigation (parent, children, following siblings) is just
index lookups.

Invariants, checked by ExtentTree.check_invariants():

- The root is a branch covering every byte that was read.
- Children of a branch are contiguous, in consumption order, and exactly
  cover their parent's span.
- Leaves are never empty.
"""

from collections.abc import Iterator
from enum import Enum
from typing import TYPE_CHECKING, TypeVar

import attrs
from attrs import define

from suppositions.data import ByteSource


if TYPE_CHECKING:
    from suppositions.generators.core import Generator

T = TypeVar("T")

ROOT = 0


class ExtentKind(Enum):
    leaf = "leaf"
    branch = "branch"


@define
class Extent:
    kind: ExtentKind
    start: int
    end: int
    parent: int | None
    depth: int
    label: str | None = None
    children: list[int] = attrs.Factory(list)

    @property
    def size(self) -> int:
        return self.end - self.start

    @property
    def is_leaf(self) -> bool:
        return self.kind is ExtentKind.leaf


class ExtentTree:
    def __init__(self, nodes: list[Extent] | None = None):
        if nodes is None:
            nodes = [Extent(kind=ExtentKind.branch, start=0, end=0, parent=None, depth=0)]
        self.nodes = nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, i: int) -> Extent:
        return self.nodes[i]

    def __repr__(self) -> str:
        return f"ExtentTree({self.render()})"

    @property
    def root(self) -> Extent:
        return self.nodes[ROOT]

    def copy(self) -> "ExtentTree":
        return ExtentTree(
            [attrs.evolve(node, children=list(node.children)) for node in self.nodes]
        )

    def children(self, i: int) -> list[int]:
        return self.nodes[i].children

    def following_siblings(self, i: int) -> list[int]:
        """Siblings of `i` that were drawn after it, in order."""
        parent = self.nodes[i].parent
        if parent is None:
            return []
        siblings = self.nodes[parent].children
        return siblings[siblings.index(i) + 1 :]

    def branches(self) -> Iterator[int]:
        """Every branch except the root, in consumption order."""
        for i, node in enumerate(self.nodes):
            if i != ROOT and not node.is_leaf:
                yield i

    def leaves(self) -> Iterator[int]:
        for i, node in enumerate(self.nodes):
            if node.is_leaf:
                yield i

    def render(self, i: int = ROOT) -> str:
        """A compact description, e.g. `[2, [1, 4]]` for a branch holding a
        leaf of two bytes and a branch of two leaves."""
        node = self.nodes[i]
        if node.is_leaf:
            return str(node.size)
        return "[" + ", ".join(self.render(c) for c in node.children) + "]"

    def check_invariants(self) -> None:
        for i, node in enumerate(self.nodes):
            assert node.start <= node.end, (i, node)
            if node.is_leaf:
                assert node.size > 0, (i, node)
                assert not node.children, (i, node)
                continue
            position = node.start
            for c in node.children:
                child = self.nodes[c]
                assert child.parent == i, (i, c)
                assert child.start == position, (i, c, position)
                position = child.end
            assert position == node.end, (i, node, position)


class ExtentTracker(ByteSource):
    """A ByteSource that records the extent tree of everything read through it.

    The tracker also keeps a copy of every byte it has handed out, including
    zeros that a ReplaySource produced past the end of its buffer, so that
    `buffer` always replays to exactly the same sequence of reads.
    """

    def __init__(self, source: ByteSource):
        self.source = source
        self.tree = ExtentTree()
        self.__buffer = bytearray()
        self.__stack = [ROOT]

    @property
    def buffer(self) -> bytes:
        return bytes(self.__buffer)

    @property
    def position(self) -> int:
        return len(self.__buffer)

    @property
    def depth(self) -> int:
        return len(self.__stack) - 1

    def draw_u8(self) -> int:
        result = self.source.draw_u8()
        position = len(self.__buffer)
        self.__buffer.append(result)

        nodes = self.tree.nodes
        current = nodes[self.__stack[-1]]
        if current.children and nodes[current.children[-1]].is_leaf:
            nodes[current.children[-1]].end = position + 1
        else:
            current.children.append(len(nodes))
            nodes.append(
                Extent(
                    kind=ExtentKind.leaf,
                    start=position,
                    end=position + 1,
                    parent=self.__stack[-1],
                    depth=len(self.__stack),
                )
            )
        for i in self.__stack:
            nodes[i].end = position + 1
        return result

    def draw(self, generator: "Generator[T]") -> T:
        nodes = self.tree.nodes
        parent = self.__stack[-1]
        index = len(nodes)
        position = len(self.__buffer)
        nodes.append(
            Extent(
                kind=ExtentKind.branch,
                start=position,
                end=position,
                parent=parent,
                depth=len(self.__stack),
                label=generator.label,
            )
        )
        nodes[parent].children.append(index)
        self.__stack.append(index)
        try:
            return generator.generate(self)
        finally:
            popped = self.__stack.pop()
            assert popped == index
