"""
Namespace candidate scanning.

Finds state variables that still live in plain contract storage and reports
them as diagnostics, grouped per contract so each group can be offered the
namespace quick fix.
"""

import logging
from dataclasses import dataclass, field

from slotmorph.config.models import Diagnostic, DiagnosticSeverity, SlotMorphConfig, Variable
from slotmorph.languages.base.plugin import LanguagePlugin, StateVariableInfo
from slotmorph.languages.solidity.cursor import NonterminalKind
from slotmorph.workspace.document import TextDocument

logger = logging.getLogger(__name__)

DIAGNOSTIC_CODE = "namespace-variable"


@dataclass
class ContractCandidates:
    """Variables of one contract that can be moved into its namespace."""

    contract_name: str
    variables: list[Variable] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def is_candidate(info: StateVariableInfo, config: SlotMorphConfig) -> bool:
    """Check if a state variable occupies storage and can become a struct field."""
    if info.is_constant or info.is_immutable:
        return False
    if info.has_initializer and config.quickfix.skip_initialized:
        return False
    return True


def collect_namespace_candidates(
    document: TextDocument, plugin: LanguagePlugin, config: SlotMorphConfig
) -> list[ContractCandidates]:
    """
    Scan a document for state variables that belong in a namespace.

    Args:
        document: Document to scan
        plugin: Language plugin used for parsing
        config: Configuration (diagnostic source, initializer handling)

    Returns:
        One entry per contract with at least one candidate, in source order
    """
    parse_output = plugin.parse(NonterminalKind.SOURCE_UNIT, document.get_text())
    if not parse_output.is_valid:
        logger.warning(f"{document.uri} has syntax errors: {'; '.join(parse_output.errors[:3])}")

    by_contract: dict[int, ContractCandidates] = {}
    for info in plugin.extract_state_variables(parse_output):
        if not is_candidate(info, config):
            continue

        variable = Variable(
            name=info.name,
            content=info.declaration,
            range=document.range_from_bytes(info.start_byte, info.end_byte),
        )
        diagnostic = Diagnostic(
            range=variable.range,
            message=f"Variable '{info.name}' should be in a namespaced storage container",
            severity=DiagnosticSeverity.WARNING,
            source=config.quickfix.diagnostic_source,
            code=DIAGNOSTIC_CODE,
            data={"contract": info.contract_name, "variable": info.name},
        )

        entry = by_contract.setdefault(
            info.contract_start_byte, ContractCandidates(info.contract_name)
        )
        entry.variables.append(variable)
        entry.diagnostics.append(diagnostic)

    logger.debug(f"Found candidates in {len(by_contract)} contracts of {document.uri}")
    return list(by_contract.values())
