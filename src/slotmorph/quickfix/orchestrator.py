"""
Namespace quick fix orchestration.

Ties together contract lookup, container detection, function body rewriting
and edit composition into the "move all variables to namespace" fix.
"""

import logging

from slotmorph.config.models import Diagnostic, Fix, Namespace, Variable
from slotmorph.languages.base.plugin import LanguagePlugin
from slotmorph.languages.registry import get_plugin
from slotmorph.languages.solidity.cursor import NonterminalKind
from slotmorph.quickfix.composer import EditComposer
from slotmorph.quickfix.detector import ExistingContainerDetector
from slotmorph.quickfix.locator import ContractLocator
from slotmorph.quickfix.rewriter import FunctionBodyRewriter
from slotmorph.workspace.document import TextDocument

logger = logging.getLogger(__name__)


def get_move_all_variables_to_namespace_quick_fix(
    fixes_diagnostics: list[Diagnostic],
    title: str,
    prefix: str,
    contract_name: str,
    variables: list[Variable],
    document: TextDocument,
    plugin: LanguagePlugin | None = None,
    indent: str = "    ",
) -> Fix | None:
    """
    Get a quick fix moving variables of a contract into its namespace.

    All edits are computed against the document text at call time; the
    document is parsed exactly once.

    Args:
        fixes_diagnostics: Diagnostics the fix resolves
        title: Human-readable title of the fix
        prefix: Namespace id prefix
        contract_name: Contract owning the variables
        variables: Variables to move, in declaration order
        document: Document containing the contract
        plugin: Language plugin used for parsing (Solidity by default)
        indent: One level of indentation in generated code

    Returns:
        The fix, or None if there is nothing to change
    """
    if not variables:
        logger.debug(f"No variables to move for {contract_name}")
        return None

    text = document.get_text()
    if plugin is None:
        plugin = get_plugin()
    version = plugin.effective_version(text)
    logger.debug(f"Parsing {document.uri} (solidity {version})")

    parse_output = plugin.parse(NonterminalKind.SOURCE_UNIT, text)

    locator = ContractLocator(plugin, parse_output, document)
    contract_cursor = locator.locate(contract_name, anchor=variables[0].range)
    if contract_cursor is None:
        logger.info(f"Contract {contract_name} not found or not parseable in {document.uri}")
        return None

    logger.info(f"Moving {len(variables)} variables of {contract_name} to namespace")

    struct_end = ExistingContainerDetector(document).detect(contract_cursor, prefix, contract_name)
    body_edits = FunctionBodyRewriter(document, indent).rewrite(contract_cursor, contract_name, variables)

    namespace = Namespace(contract_name=contract_name, prefix=prefix, variables=list(variables))
    composer = EditComposer(document, indent)
    container_edits = composer.container_edits(namespace, struct_end)

    return composer.compose(title, fixes_diagnostics, container_edits, body_edits)
