"""
Function body rewriter.

Rewrites references to migrated state variables inside every function body
of a contract so they go through the namespace accessor (`$.name`), and adds
the accessor binding to bodies that need it.
"""

import logging
from typing import Any

from slotmorph.config.models import TextEdit, Variable
from slotmorph.languages.solidity.cursor import (
    NonterminalKind,
    TerminalKind,
    TreeCursor,
    iter_subtree,
    matches_terminal,
    node_text,
)
from slotmorph.namespace.catalog import accessor_binding
from slotmorph.quickfix.errors import InvariantViolation
from slotmorph.quickfix.locator import require_kind
from slotmorph.workspace.document import TextDocument

logger = logging.getLogger(__name__)

# Parent fields whose identifier declares a name rather than referring to one
_DECLARING_FIELDS = ("name", "property", "key")

# Nodes that bind a local name
_DECLARATION_KINDS = ("variable_declaration", "parameter")

# Nodes that bound the visibility of the locals declared directly in them
_SCOPE_KINDS = ("function_body", "block_statement", "for_statement", "catch_clause", "try_statement")


def declared_name(node: Any) -> str | None:
    """Get the name a local declaration or parameter binds, if any."""
    if node.type not in _DECLARATION_KINDS:
        return None
    name = node.child_by_field_name("name")
    return node_text(name) if name is not None else None


def enclosing_scope(node: Any, body: Any) -> Any:
    """Get the innermost scope node of a body containing a node."""
    current = node.parent
    while current is not None and current != body and current.type not in _SCOPE_KINDS:
        current = current.parent
    return current if current is not None else body


def parameter_names(body: Any) -> set[str]:
    """Get the parameter and return parameter names of the definition owning a body."""
    definition = body.parent
    if definition is None:
        return set()

    names = set()
    for node in iter_subtree(definition):
        if node.start_byte >= body.start_byte and node.end_byte <= body.end_byte:
            continue
        name = declared_name(node)
        if name is not None:
            names.add(name)
    return names


def is_variable_reference(identifier: Any) -> bool:
    """
    Check if an identifier leaf refers to a variable by its bare name.

    Member accesses (`x.a`, including already rewritten `$.a`) and the names
    of declarations are not references.
    """
    previous = identifier.prev_sibling
    if previous is not None and previous.type == ".":
        return False

    parent = identifier.parent
    if parent is not None:
        for field_name in _DECLARING_FIELDS:
            if parent.child_by_field_name(field_name) == identifier:
                return False
    return True


class FunctionBodyRewriter:
    """Rewrites function bodies of one contract for a set of migrated variables."""

    def __init__(self, document: TextDocument, indent: str = "    "):
        self.document = document
        self.indent = indent

    def rewrite(
        self, contract_cursor: TreeCursor, contract_name: str, variables: list[Variable]
    ) -> list[TextEdit]:
        """
        Compute one edit per function body whose text changes.

        Args:
            contract_cursor: Cursor rooted at the contract definition
            contract_name: Name of the contract (used in the accessor binding)
            variables: Variables being migrated

        Returns:
            Edits replacing whole function bodies, in lexical order
        """
        require_kind(contract_cursor, NonterminalKind.CONTRACT_DEFINITION)

        names = {variable.name for variable in variables}
        binding = accessor_binding(contract_name)
        edits: list[TextEdit] = []

        body_cursor = contract_cursor.clone()
        while body_cursor.go_to_next_nonterminal_with_kind(NonterminalKind.FUNCTION_BODY):
            body = body_cursor.node
            original = node_text(body)
            rewritten = self.rewrite_body(body, names, binding)

            if rewritten == original:
                continue

            logger.debug(f"Rewriting function body at line {body.start_point[0] + 1}")
            edits.append(
                TextEdit(
                    range=self.document.range_from_bytes(body.start_byte, body.end_byte),
                    new_text=rewritten,
                )
            )

        return edits

    def rewrite_body(self, body: Any, names: set[str], binding: str) -> str:
        """
        Get the text of a function body with its variable references rewritten.

        Names bound by the function's parameters are left alone in the whole
        body; names bound by a local declaration are left alone from that
        declaration to the end of its enclosing block.
        """
        original = body.text
        names = names - parameter_names(body)

        # name -> scopes a local declaration shadows it in, with the declaration offset
        locals_: dict[str, list[tuple[Any, int]]] = {}
        for node in iter_subtree(body):
            name = declared_name(node)
            if name in names:
                locals_.setdefault(name, []).append((enclosing_scope(node, body), node.start_byte))

        references = [
            node
            for node in iter_subtree(body)
            if matches_terminal(node, TerminalKind.IDENTIFIER)
            and node_text(node) in names
            and is_variable_reference(node)
            and not self._is_shadowed(node, locals_.get(node_text(node), []))
        ]
        if not references:
            return original.decode("utf-8")

        rewritten = bytearray(original)
        for node in reversed(references):
            start = node.start_byte - body.start_byte
            end = node.end_byte - body.start_byte
            rewritten[start:end] = b"$." + node.text

        text = rewritten.decode("utf-8")
        if binding in text:
            return text

        if not text.startswith("{"):
            raise InvariantViolation(f"Function body does not open with a brace: {text[:20]!r}")

        indent = self._statement_indent(body)
        rest = text[1:]
        if not rest.lstrip(" \t").startswith(("\n", "\r")):
            # Body statements share the brace's line
            rest = "\n" + indent + rest.lstrip(" \t")
        return "{\n" + indent + binding + rest

    @staticmethod
    def _is_shadowed(identifier: Any, declarations: list[tuple[Any, int]]) -> bool:
        return any(
            scope.start_byte <= identifier.start_byte < scope.end_byte and declared_at < identifier.start_byte
            for scope, declared_at in declarations
        )

    def _statement_indent(self, body: Any) -> str:
        """Indentation for a line inserted as the body's first statement."""
        body_row = body.start_point[0]
        for child in body.named_children:
            if child.start_point[0] > body_row:
                line = self.document.line_text(child.start_point[0])
                return line[: len(line) - len(line.lstrip())]

        line = self.document.line_text(body_row)
        return line[: len(line) - len(line.lstrip())] + self.indent
