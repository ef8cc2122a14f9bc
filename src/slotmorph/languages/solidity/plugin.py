"""
Solidity language plugin.

Handles Solidity parsing with tree-sitter, rule-level validation of text
fragments, and state variable extraction.
"""

import logging
import re
from typing import Any

from slotmorph.languages.base.plugin import LanguagePlugin, ParseOutput, StateVariableInfo
from slotmorph.languages.solidity.cursor import (
    NonterminalKind,
    TreeCursor,
    is_terminal,
    iter_subtree,
    node_text,
)

logger = logging.getLogger(__name__)


class ParserUnavailableError(RuntimeError):
    """Raised when the tree-sitter Solidity grammar cannot be loaded."""

    pass


_PRAGMA_PATTERN = re.compile(r"pragma\s+solidity\s+([^;]+);")
_VERSION_PATTERN = re.compile(r"\d+\.\d+\.\d+")


class SolidityPlugin(LanguagePlugin):
    """Solidity language plugin using tree-sitter for parsing."""

    def __init__(self, version: str = "0.8.20"):
        self.version = version
        self._parser = None

    # =========================================================================
    # Plugin Metadata
    # =========================================================================

    @property
    def language_name(self) -> str:
        return "solidity"

    @property
    def file_extensions(self) -> list[str]:
        return [".sol"]

    # =========================================================================
    # Parsing (using tree-sitter)
    # =========================================================================

    def _get_parser(self):
        """Lazy initialization of tree-sitter parser."""
        if self._parser is None:
            try:
                import tree_sitter_solidity as tssol
                from tree_sitter import Language, Parser
            except ImportError:
                raise ParserUnavailableError(
                    "tree-sitter-solidity not installed. Run: pip install tree-sitter-solidity"
                )
            SOLIDITY_LANGUAGE = Language(tssol.language())
            self._parser = Parser(SOLIDITY_LANGUAGE)
        return self._parser

    def parse(self, kind: NonterminalKind, source_code: str) -> ParseOutput:
        """Parse text and check that it forms exactly one node of the given kind."""
        parser = self._get_parser()
        tree = parser.parse(bytes(source_code, "utf-8"))
        root = tree.root_node

        errors = self._collect_errors(root)
        is_valid = not root.has_error and not errors

        if is_valid and kind != NonterminalKind.SOURCE_UNIT:
            top_level = [c for c in root.named_children if c.type != "comment"]
            if len(top_level) != 1 or top_level[0].type != kind.value:
                found = ", ".join(c.type for c in top_level) or "nothing"
                errors.append(f"Expected a single {kind.value}, found {found}")
                is_valid = False

        return ParseOutput(kind=kind.value, tree=tree, is_valid=is_valid, errors=errors)

    def parse_source(self, source_code: str) -> ParseOutput:
        return self.parse(NonterminalKind.SOURCE_UNIT, source_code)

    def create_tree_cursor(self, parse_output: ParseOutput) -> TreeCursor:
        return TreeCursor(parse_output.root_node)

    def _collect_errors(self, root: Any) -> list[str]:
        errors = []
        for node in iter_subtree(root):
            row, column = node.start_point
            if node.type == "ERROR":
                errors.append(f"Syntax error at {row + 1}:{column + 1}")
            elif node.is_missing:
                errors.append(f"Missing '{node.type}' at {row + 1}:{column + 1}")
        return errors

    # =========================================================================
    # Source Analysis
    # =========================================================================

    def language_version(self, source_code: str) -> str | None:
        """Get the first concrete version mentioned by a `pragma solidity` directive."""
        pragma = _PRAGMA_PATTERN.search(source_code)
        if not pragma:
            return None
        version = _VERSION_PATTERN.search(pragma.group(1))
        return version.group(0) if version else None

    def extract_state_variables(self, parse_output: ParseOutput) -> list[StateVariableInfo]:
        """Extract state variables declared directly in each contract body."""
        variables: list[StateVariableInfo] = []
        cursor = self.create_tree_cursor(parse_output)

        while cursor.go_to_next_nonterminal_with_kind(NonterminalKind.CONTRACT_DEFINITION):
            contract = cursor.node
            contract_name = self.contract_name(contract)
            body = contract.child_by_field_name("body")
            if contract_name is None or body is None:
                continue

            for member in body.named_children:
                if member.type != NonterminalKind.STATE_VARIABLE_DEFINITION.value:
                    continue
                info = self._extract_state_variable(member, contract_name, contract.start_byte)
                if info:
                    variables.append(info)

        return variables

    def contract_name(self, contract_node: Any) -> str | None:
        """Get the declared name of a contract node."""
        name_node = contract_node.child_by_field_name("name")
        if name_node is None:
            for child in contract_node.children:
                if child.type == "identifier":
                    name_node = child
                    break
        return node_text(name_node) if name_node is not None else None

    def _extract_state_variable(
        self, node: Any, contract_name: str, contract_start_byte: int
    ) -> StateVariableInfo | None:
        type_node = node.child_by_field_name("type")
        name_node = node.child_by_field_name("name")
        if name_node is None:
            # Name is the last identifier before the initializer or semicolon
            for child in node.children:
                if child.type in ("=", ";"):
                    break
                if child.type == "identifier":
                    name_node = child
        if type_node is None or name_node is None:
            logger.debug(f"Skipping unrecognized state variable in {contract_name}: {node_text(node)}")
            return None

        keywords = {n.type for n in iter_subtree(node) if is_terminal(n)}
        has_initializer = node.child_by_field_name("value") is not None or any(
            child.type == "=" for child in node.children
        )

        return StateVariableInfo(
            contract_name=contract_name,
            name=node_text(name_node),
            type_text=node_text(type_node),
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            contract_start_byte=contract_start_byte,
            is_constant="constant" in keywords,
            is_immutable="immutable" in keywords,
            has_initializer=has_initializer,
        )
