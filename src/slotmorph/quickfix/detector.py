"""
Existing namespace container detection.

A contract owns a container when its first single-line NatSpec comment tags
the contract's namespace id; the container is the struct that follows it.
"""

import logging

from slotmorph.config.models import Range
from slotmorph.languages.solidity.cursor import NonterminalKind, TerminalKind, TreeCursor
from slotmorph.namespace.catalog import get_namespace_id, storage_location_ids
from slotmorph.quickfix.errors import InvariantViolation
from slotmorph.quickfix.locator import require_kind
from slotmorph.workspace.document import TextDocument

logger = logging.getLogger(__name__)


class ExistingContainerDetector:
    """Finds where new fields go in an existing namespaced container."""

    def __init__(self, document: TextDocument):
        self.document = document

    def detect(self, contract_cursor: TreeCursor, prefix: str, contract_name: str) -> Range | None:
        """
        Get the range of the container's closing brace.

        Returns None both when no tagged container exists and when the tag
        names a different namespace; either way a fresh container is needed.
        """
        require_kind(contract_cursor, NonterminalKind.CONTRACT_DEFINITION)
        namespace_id = get_namespace_id(prefix, contract_name)

        cursor = contract_cursor.clone()
        if not cursor.go_to_next_terminal_with_kind(TerminalKind.SINGLE_LINE_NATSPEC_COMMENT):
            return None

        tagged = storage_location_ids(cursor.text)
        if namespace_id not in tagged:
            if tagged:
                logger.debug(f"{contract_name} has a container for {tagged}, not {namespace_id}")
            return None

        if not cursor.go_to_next_nonterminal_with_kind(NonterminalKind.STRUCT_DEFINITION):
            logger.debug(f"Tag for {namespace_id} is not followed by a struct in {contract_name}")
            return None

        struct_cursor = cursor.spawn()
        if not struct_cursor.go_to_next_terminal_with_kind(TerminalKind.CLOSE_BRACE):
            raise InvariantViolation("Struct definition without a closing brace")

        return self.document.range_from_bytes(*struct_cursor.text_range)
