"""
Contract locator.

Finds the definition of the contract a quick fix targets.
"""

import logging

from slotmorph.config.models import Range
from slotmorph.languages.base.plugin import LanguagePlugin, ParseOutput
from slotmorph.languages.solidity.cursor import NonterminalKind, TreeCursor
from slotmorph.quickfix.errors import AmbiguousContractError, InvariantViolation
from slotmorph.workspace.document import TextDocument

logger = logging.getLogger(__name__)


def require_kind(cursor: TreeCursor, kind: NonterminalKind) -> None:
    """Abort if a cursor is not positioned on a node of the expected kind."""
    if cursor.node.type != kind.value:
        raise InvariantViolation(
            f"Expected cursor on {kind.value}, found {cursor.node.type} at byte {cursor.node.start_byte}"
        )


class ContractLocator:
    """Walks a parsed source unit for a named contract definition."""

    def __init__(self, plugin: LanguagePlugin, parse_output: ParseOutput, document: TextDocument):
        self.plugin = plugin
        self.parse_output = parse_output
        self.document = document

    def locate(self, contract_name: str, anchor: Range | None = None) -> TreeCursor | None:
        """
        Find the contract definition with the given name.

        Each contract is re-parsed on its own and skipped if that fails. When
        several valid contracts share the name, the one containing `anchor`
        is chosen.

        Args:
            contract_name: Name of the contract to find
            anchor: A range inside the wanted contract, used to break ties

        Returns:
            Cursor rooted at the contract definition, or None if not found

        Raises:
            AmbiguousContractError: If duplicates cannot be told apart by the anchor
        """
        matches: list[TreeCursor] = []
        cursor = self.plugin.create_tree_cursor(self.parse_output)

        while cursor.go_to_next_nonterminal_with_kind(NonterminalKind.CONTRACT_DEFINITION):
            contract_cursor = cursor.spawn()
            require_kind(contract_cursor, NonterminalKind.CONTRACT_DEFINITION)

            name = self.plugin.contract_name(contract_cursor.node)
            isolated = self.plugin.parse(NonterminalKind.CONTRACT_DEFINITION, contract_cursor.text)
            if not isolated.is_valid:
                logger.info(f"Skipping contract {name} with errors: {'; '.join(isolated.errors)}")
                continue

            if name != contract_name:
                continue

            logger.debug(f"Found contract {name} at byte {contract_cursor.node.start_byte}")
            matches.append(contract_cursor)

        if not matches:
            return None
        if len(matches) == 1:
            return matches[0]

        if anchor is not None:
            containing = [m for m in matches if self._contract_range(m).contains(anchor)]
            if len(containing) == 1:
                return containing[0]

        raise AmbiguousContractError(contract_name, len(matches))

    def _contract_range(self, contract_cursor: TreeCursor) -> Range:
        return self.document.range_from_bytes(*contract_cursor.text_range)
