"""
Base language plugin interface.

All language plugins must implement this interface so the quick fix engine
can parse source text and navigate its syntax tree without knowing the
parser behind it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ParseOutput:
    """Result of parsing a piece of text as a given grammar rule."""

    kind: str
    tree: Any
    is_valid: bool
    errors: list[str] = field(default_factory=list)

    @property
    def root_node(self) -> Any:
        return self.tree.root_node


@dataclass
class StateVariableInfo:
    """A persistent state variable declared directly in a contract."""

    contract_name: str
    name: str
    type_text: str
    start_byte: int
    end_byte: int
    contract_start_byte: int = 0
    is_constant: bool = False
    is_immutable: bool = False
    has_initializer: bool = False

    @property
    def declaration(self) -> str:
        """Declaration text as a storage struct field."""
        return f"{self.type_text} {self.name};"


class LanguagePlugin(ABC):
    """
    Abstract base class for language plugins.

    Each language plugin provides:
    - Parsing text as a particular grammar rule
    - Cursors over the resulting syntax tree
    - Version detection
    - State variable extraction
    """

    version: str

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the language name (e.g., 'solidity')."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]:
        """Return file extensions for this language (e.g., ['.sol'])."""
        pass

    # =========================================================================
    # Parsing
    # =========================================================================

    @abstractmethod
    def parse(self, kind: Any, source_code: str) -> ParseOutput:
        """
        Parse source text as a particular grammar rule.

        Args:
            kind: The rule the whole text must form (e.g. a source unit or a single contract)
            source_code: Source code as string

        Returns:
            ParseOutput whose is_valid is False when the text has syntax
            errors or does not form exactly one node of the requested kind
        """
        pass

    @abstractmethod
    def parse_source(self, source_code: str) -> ParseOutput:
        """Parse a whole source unit."""
        pass

    @abstractmethod
    def create_tree_cursor(self, parse_output: ParseOutput) -> Any:
        """Create a cursor positioned at the root of a parse result."""
        pass

    # =========================================================================
    # Source Analysis
    # =========================================================================

    @abstractmethod
    def language_version(self, source_code: str) -> str | None:
        """
        Detect the language version a source file declares.

        Returns:
            Version string, or None if the source does not declare one
        """
        pass

    def effective_version(self, source_code: str) -> str:
        """Get the declared version, falling back to the plugin's configured one."""
        return self.language_version(source_code) or self.version

    @abstractmethod
    def contract_name(self, contract_node: Any) -> str | None:
        """Get the declared name of a contract definition node."""
        pass

    @abstractmethod
    def extract_state_variables(self, parse_output: ParseOutput) -> list[StateVariableInfo]:
        """
        Extract state variable declarations from every contract, in source order.

        Args:
            parse_output: Result of parse_source

        Returns:
            List of StateVariableInfo objects
        """
        pass
