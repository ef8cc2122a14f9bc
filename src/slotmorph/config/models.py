"""
Core configuration and data models for SlotMorph.

Defines configuration structures and the host-agnostic quick fix values
(positions, edits, diagnostics, fixes) using Pydantic for validation.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LanguageType(str, Enum):
    """Supported source languages."""

    SOLIDITY = "solidity"


class DiagnosticSeverity(int, Enum):
    """Diagnostic severities (LSP numbering)."""

    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


class FixKind(str, Enum):
    """Kinds of automated fixes."""

    QUICK_FIX = "quickfix"


# ============================================================================
# Text Positions
# ============================================================================


class Position(BaseModel):
    """Zero-based line/character position in a document."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=0)
    character: int = Field(ge=0, description="Offset in Unicode code points")

    def as_tuple(self) -> tuple[int, int]:
        return (self.line, self.character)


class Range(BaseModel):
    """Half-open span between two positions."""

    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, other: "Range") -> bool:
        """Check if another range lies entirely within this one."""
        return (
            self.start.as_tuple() <= other.start.as_tuple()
            and other.end.as_tuple() <= self.end.as_tuple()
        )

    def overlaps(self, other: "Range") -> bool:
        """
        Check if two ranges share any text.

        Zero-width ranges never overlap anything, so several inserts may target
        the same point.
        """
        if self.is_empty or other.is_empty:
            return False
        return (
            self.start.as_tuple() < other.end.as_tuple()
            and other.start.as_tuple() < self.end.as_tuple()
        )


# ============================================================================
# Migration Models
# ============================================================================


class Variable(BaseModel):
    """A state variable snapshot taken before any edit is computed."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Identifier of the variable")
    content: str = Field(description="Declaration text placed into the container (e.g. 'uint256 a;')")
    range: Range = Field(description="Span of the original declaration in the document")


class Namespace(BaseModel):
    """A namespaced storage container to be generated for a contract."""

    contract_name: str
    prefix: str
    variables: list[Variable] = Field(
        default_factory=list, description="Variables in declaration order (storage field order)"
    )


class TextEdit(BaseModel):
    """Replacement of a range in the original, unedited document."""

    model_config = ConfigDict(frozen=True)

    range: Range
    new_text: str


class Diagnostic(BaseModel):
    """A problem report attached to a range of a document."""

    range: Range
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.WARNING
    source: str = "slotmorph"
    code: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class Fix(BaseModel):
    """An atomic batch of edits offered for a set of diagnostics."""

    title: str
    kind: FixKind = FixKind.QUICK_FIX
    edits: dict[str, list[TextEdit]] = Field(
        default_factory=dict, description="Document uri -> ordered edits"
    )
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    def edits_for(self, uri: str) -> list[TextEdit]:
        """Get the edits targeting a single document."""
        return self.edits.get(uri, [])


# ============================================================================
# Configuration
# ============================================================================


class LanguageConfig(BaseModel):
    """Source language configuration."""

    language: LanguageType = Field(default=LanguageType.SOLIDITY)
    version: str = Field(default="0.8.20", description="Fallback compiler version when no pragma is found")


class NamespaceConfig(BaseModel):
    """Configuration for generated namespaces."""

    prefix: str = Field(default="myProject", description="Prefix of the ERC-7201 namespace id")
    indent: str = Field(default="    ", description="One level of indentation in generated code")


class QuickFixConfig(BaseModel):
    """Configuration for the namespace quick fix and its diagnostics."""

    title: str = Field(default="Move all variables to namespace", description="Title of the offered fix")
    diagnostic_source: str = Field(default="slotmorph", description="Source name on emitted diagnostics")
    skip_initialized: bool = Field(
        default=True, description="Do not offer variables declared with an initializer"
    )


class SlotMorphConfig(BaseModel):
    """Root configuration model for SlotMorph."""

    language: LanguageConfig = Field(default_factory=LanguageConfig)
    namespace: NamespaceConfig = Field(default_factory=NamespaceConfig)
    quickfix: QuickFixConfig = Field(default_factory=QuickFixConfig)
