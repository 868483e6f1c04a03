"""
This is a mixin class that provides methods for walking and printing
the model AST.
"""

from __future__ import annotations

from typing import Generator

from rich import print as rprint
from rich.tree import Tree


class TreeMixin:
    """Mixin class that provides methods for walking and printing the AST."""

    def print_tree(self):
        """Uses ``rich`` to print the tree representation of the AST."""
        rprint(self.tree())

    @property
    def children(self) -> Generator[TreeMixin | str | None]:
        """Each node should have a children property that returns a generator of its children."""
        yield None

    def label(self) -> str:
        """Text shown for this node in the tree."""
        return self.__class__.__name__

    def tree(self) -> Tree:
        """Generates a tree representation of the AST which can be pretty-printed
        with the ``rich`` library.
        """
        t = Tree(self.label())
        for child in self.children:
            if child is None:
                continue
            if isinstance(child, TreeMixin):
                t.add(child.tree())
            else:
                t.add(str(child))
        return t

    def walk(self) -> Generator[TreeMixin]:
        """Generator that yields every node below this one, depth first."""
        for child in self.children:
            if not isinstance(child, TreeMixin):
                continue
            yield child
            yield from child.walk()
