"""
Forward-only cursors over tree-sitter Solidity syntax trees.

The tree itself is never mutated. A TreeCursor is a position in the pre-order
walk of one subtree; clone() copies the position and spawn() starts a new
walk rooted at the current node, so cursors never alias each other's state.
"""

from enum import Enum
from typing import Any, Iterator


class NonterminalKind(str, Enum):
    """Solidity grammar rules the quick fix navigates by."""

    SOURCE_UNIT = "source_file"
    CONTRACT_DEFINITION = "contract_declaration"
    CONTRACT_MEMBERS = "contract_body"
    STATE_VARIABLE_DEFINITION = "state_variable_declaration"
    STRUCT_DEFINITION = "struct_declaration"
    FUNCTION_DEFINITION = "function_definition"
    FUNCTION_BODY = "function_body"


class TerminalKind(str, Enum):
    """Solidity leaf tokens the quick fix navigates by."""

    IDENTIFIER = "identifier"
    OPEN_BRACE = "{"
    CLOSE_BRACE = "}"
    SINGLE_LINE_NATSPEC_COMMENT = "///"


def iter_subtree(node: Any) -> Iterator[Any]:
    """Traverse a tree-sitter subtree depth-first, in source order."""
    yield node
    for child in node.children:
        yield from iter_subtree(child)


def is_terminal(node: Any) -> bool:
    return node.child_count == 0


def node_text(node: Any) -> str:
    return node.text.decode("utf-8")


def matches_terminal(node: Any, kind: TerminalKind) -> bool:
    """Check if a leaf node is a token of the given kind."""
    if not is_terminal(node):
        return False
    if kind == TerminalKind.SINGLE_LINE_NATSPEC_COMMENT:
        if node.type != "comment":
            return False
        text = node_text(node)
        return text.startswith("///") and not text.startswith("////")
    return node.type == kind.value


class TreeCursor:
    """Position in the pre-order walk of a subtree."""

    def __init__(self, root: Any, _nodes: tuple[Any, ...] | None = None, _index: int = 0):
        self._root = root
        self._nodes = _nodes if _nodes is not None else tuple(iter_subtree(root))
        self._index = _index

    @property
    def root(self) -> Any:
        return self._root

    @property
    def node(self) -> Any:
        """The node the cursor is positioned on."""
        return self._nodes[self._index]

    @property
    def text(self) -> str:
        return node_text(self.node)

    @property
    def text_range(self) -> tuple[int, int]:
        """Byte span of the current node."""
        return (self.node.start_byte, self.node.end_byte)

    @property
    def is_completed(self) -> bool:
        return self._index >= len(self._nodes) - 1

    def clone(self) -> "TreeCursor":
        """Copy the current position; the copy advances independently."""
        return TreeCursor(self._root, self._nodes, self._index)

    def spawn(self) -> "TreeCursor":
        """Start a new cursor whose walk is limited to the current node."""
        return TreeCursor(self.node)

    def _advance_to(self, predicate) -> bool:
        for index in range(self._index + 1, len(self._nodes)):
            if predicate(self._nodes[index]):
                self._index = index
                return True
        self._index = len(self._nodes) - 1
        return False

    def go_to_next_nonterminal_with_kind(self, kind: NonterminalKind) -> bool:
        """Advance to the next rule node of the given kind; False when the walk is exhausted."""
        return self._advance_to(lambda n: not is_terminal(n) and n.type == kind.value)

    def go_to_next_terminal_with_kind(self, kind: TerminalKind) -> bool:
        """Advance to the next leaf token of the given kind; False when the walk is exhausted."""
        return self._advance_to(lambda n: matches_terminal(n, kind))

    def __repr__(self) -> str:
        return f"TreeCursor(node={self.node.type!r}, index={self._index}/{len(self._nodes)})"
