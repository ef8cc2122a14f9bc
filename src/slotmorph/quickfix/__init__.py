"""
Namespace quick fix.

Moves a contract's state variables into an ERC-7201 namespaced storage
container and routes every reference through the container accessor.
"""

from slotmorph.quickfix.composer import EditComposer
from slotmorph.quickfix.detector import ExistingContainerDetector
from slotmorph.quickfix.diagnostics import ContractCandidates, collect_namespace_candidates
from slotmorph.quickfix.errors import AmbiguousContractError, InvariantViolation
from slotmorph.quickfix.locator import ContractLocator
from slotmorph.quickfix.orchestrator import get_move_all_variables_to_namespace_quick_fix
from slotmorph.quickfix.rewriter import FunctionBodyRewriter

__all__ = [
    "AmbiguousContractError",
    "ContractCandidates",
    "ContractLocator",
    "EditComposer",
    "ExistingContainerDetector",
    "FunctionBodyRewriter",
    "InvariantViolation",
    "collect_namespace_candidates",
    "get_move_all_variables_to_namespace_quick_fix",
]
