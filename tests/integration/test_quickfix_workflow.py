"""
Integration test for the namespace quick fix workflow.

Runs scanning, fix computation and edit application over the sample
Solidity project.
"""

import logging
import shutil
from pathlib import Path

import orjson
import pytest
from typer.testing import CliRunner

from slotmorph.cli.main import app, migrate_document
from slotmorph.config.loader import create_config_from_args
from slotmorph.config.models import Namespace, TextEdit
from slotmorph.languages.registry import get_plugin
from slotmorph.languages.solidity.plugin import SolidityPlugin
from slotmorph.namespace.catalog import erc7201_slot, format_slot, print_namespace_template
from slotmorph.quickfix import (
    FunctionBodyRewriter,
    collect_namespace_candidates,
    get_move_all_variables_to_namespace_quick_fix,
)
from slotmorph.quickfix.locator import ContractLocator
from slotmorph.workspace.document import TextDocument, apply_edits

EXAMPLES = Path(__file__).parent.parent.parent / "examples" / "solidity_project"

runner = CliRunner()


@pytest.fixture(scope="module")
def plugin():
    return get_plugin()


def load(name: str) -> TextDocument:
    path = EXAMPLES / name
    assert path.exists(), f"Example file not found: {path}"
    return TextDocument.from_path(path)


def candidates_for(document, plugin, config, contract_name):
    for entry in collect_namespace_candidates(document, plugin, config):
        if entry.contract_name == contract_name:
            return entry
    return None


def compute_fix(document, plugin, config, contract_name):
    entry = candidates_for(document, plugin, config, contract_name)
    assert entry is not None
    return entry, get_move_all_variables_to_namespace_quick_fix(
        entry.diagnostics,
        config.quickfix.title,
        config.namespace.prefix,
        contract_name,
        entry.variables,
        document,
        plugin=plugin,
    )


# =============================================================================
# New Container
# =============================================================================


def test_box_scenario(plugin):
    """Box with `a` and `b` gets a fresh BoxStorage container."""
    config = create_config_from_args(prefix="box")
    document = load("Box.sol")

    entry, fix = compute_fix(document, plugin, config, "Box")

    assert [v.name for v in entry.variables] == ["a", "b"]
    assert [v.content for v in entry.variables] == ["uint256 a;", "address b;"]

    edits = fix.edits_for(document.uri)
    namespace = Namespace(contract_name="Box", prefix="box", variables=entry.variables)
    assert edits[0] == TextEdit(range=entry.variables[0].range, new_text=print_namespace_template(namespace))
    assert edits[1] == TextEdit(range=entry.variables[1].range, new_text="")
    assert fix.diagnostics == entry.diagnostics
    assert fix.title == "Move all variables to namespace"

    result = apply_edits(document, edits)

    assert "/// @custom:storage-location erc7201:box.Box" in result
    assert "    struct BoxStorage {\n        uint256 a;\n        address b;\n    }" in result
    assert f"BOX_STORAGE_LOCATION = {format_slot(erc7201_slot('box.Box'))};" in result
    assert "function _getBoxStorage() private pure returns (BoxStorage storage $)" in result
    assert "        $.a = value;\n        $.b = msg.sender;\n        emit Stored($.a);" in result
    assert "        return $.b;" in result
    assert "uint256 public constant LIMIT = 10;" in result
    assert plugin.parse_source(result).is_valid


def test_binding_inserted_once_per_referencing_body(plugin):
    config = create_config_from_args(prefix="box")
    document = load("Box.sol")

    _, fix = compute_fix(document, plugin, config, "Box")
    result = apply_edits(document, fix.edits_for(document.uri))

    # store() and owner() only
    assert result.count("BoxStorage storage $ = _getBoxStorage();") == 2


def test_untouched_bodies_get_no_edit(plugin):
    config = create_config_from_args(prefix="box")
    document = load("Box.sol")

    _, fix = compute_fix(document, plugin, config, "Box")
    edited = [document.get_text(edit.range) for edit in fix.edits_for(document.uri)]

    assert not any("LIMIT" in text for text in edited)
    assert not any('"a b"' in text for text in edited)
    assert len(edited) == 4


def test_fix_is_idempotent(plugin):
    """A second pass over the migrated source changes nothing."""
    config = create_config_from_args(prefix="box")
    document = load("Box.sol")

    entry, fix = compute_fix(document, plugin, config, "Box")
    migrated = TextDocument(document.uri, apply_edits(document, fix.edits_for(document.uri)), 1)

    assert candidates_for(migrated, plugin, config, "Box") is None

    parse_output = plugin.parse_source(migrated.get_text())
    cursor = ContractLocator(plugin, parse_output, migrated).locate("Box")
    assert FunctionBodyRewriter(migrated).rewrite(cursor, "Box", entry.variables) == []

    text_once, _ = migrate_document(document, plugin, config)
    text_twice, second_fixes = migrate_document(TextDocument(document.uri, text_once), plugin, config)
    assert text_twice == text_once
    assert second_fixes == []


def test_empty_variable_list_yields_no_fix(plugin):
    document = load("Box.sol")

    fix = get_move_all_variables_to_namespace_quick_fix([], "title", "box", "Box", [], document, plugin=plugin)

    assert fix is None


def test_unknown_contract_yields_no_fix(plugin):
    config = create_config_from_args(prefix="box")
    document = load("Box.sol")
    entry = candidates_for(document, plugin, config, "Box")

    fix = get_move_all_variables_to_namespace_quick_fix(
        entry.diagnostics, "title", "box", "Missing", entry.variables, document, plugin=plugin
    )

    assert fix is None


def test_configured_version_used_without_pragma(caplog):
    plugin = SolidityPlugin(version="0.8.24")
    config = create_config_from_args(prefix="demo")
    document = TextDocument("file:///tmp/NoPragma.sol", "contract A {\n    uint256 x;\n}\n")
    entry = candidates_for(document, plugin, config, "A")

    with caplog.at_level(logging.DEBUG, logger="slotmorph.quickfix.orchestrator"):
        fix = get_move_all_variables_to_namespace_quick_fix(
            entry.diagnostics, "title", "demo", "A", entry.variables, document, plugin=plugin
        )

    assert fix is not None
    assert "(solidity 0.8.24)" in caplog.text


# =============================================================================
# Existing Container
# =============================================================================


def test_existing_container_is_extended(plugin):
    config = create_config_from_args(prefix="vault")
    document = load("Vault.sol")

    entry, fix = compute_fix(document, plugin, config, "Vault")
    assert [v.name for v in entry.variables] == ["balances", "owner"]

    result = apply_edits(document, fix.edits_for(document.uri))

    assert (
        "    struct VaultStorage {\n"
        "        uint256 total;\n"
        "        mapping(address => uint256) balances;\n"
        "        address owner;\n"
        "    }"
    ) in result
    assert result.count("struct VaultStorage") == 1
    assert result.count("VAULT_STORAGE_LOCATION =") == 1
    assert "        $.balances[msg.sender] += msg.value;" in result
    assert "        $.owner = newOwner;" in result
    # deposit() and total() already had it, setOwner() gains it
    assert result.count("VaultStorage storage $ = _getVaultStorage();") == 3
    assert plugin.parse_source(result).is_valid


def test_mismatched_prefix_creates_new_container(plugin):
    config = create_config_from_args(prefix="other")
    document = load("Vault.sol")

    _, fix = compute_fix(document, plugin, config, "Vault")
    result = apply_edits(document, fix.edits_for(document.uri))

    assert "/// @custom:storage-location erc7201:other.Vault" in result
    assert result.count("struct VaultStorage") == 2


# =============================================================================
# Multiple Contracts
# =============================================================================


def test_contracts_are_migrated_one_after_another(plugin):
    config = create_config_from_args(prefix="tokens")
    document = load("Tokens.sol")

    result, fixes = migrate_document(document, plugin, config)

    assert len(fixes) == 2
    assert "struct TokenStorage {\n        uint256 supply;\n    }" in result
    assert "struct CounterStorage {\n        uint256 count;\n    }" in result
    assert "        $.supply += amount;" in result
    assert "        $.count += step;" in result
    # initialized and immutable variables stay where they are
    assert "    uint256 step = 1;" in result
    assert "    address immutable creator;" in result
    assert "        creator = msg.sender;" in result


def test_single_contract_filter(plugin):
    config = create_config_from_args(prefix="tokens")
    document = load("Tokens.sol")

    result, fixes = migrate_document(document, plugin, config, contract="Counter")

    assert len(fixes) == 1
    assert "struct TokenStorage" not in result
    assert "struct CounterStorage" in result


def test_broken_contract_is_skipped(plugin):
    config = create_config_from_args(prefix="demo")
    document = load("Broken.sol")

    result, fixes = migrate_document(document, plugin, config)

    assert len(fixes) == 1
    assert "struct HealthyStorage" in result
    assert "struct BrokenStorage" not in result


# =============================================================================
# CLI
# =============================================================================


@pytest.fixture
def box_copy(tmp_path):
    target = tmp_path / "Box.sol"
    shutil.copy(EXAMPLES / "Box.sol", target)
    return target


def test_cli_scan(box_copy):
    result = runner.invoke(app, ["scan", str(box_copy)])

    assert result.exit_code == 0
    assert "Box" in result.output
    assert "uint256 a;" in result.output


def test_cli_migrate_write_then_nothing_left(box_copy):
    result = runner.invoke(app, ["migrate", str(box_copy), "--prefix", "box", "--write", "--no-diff"])

    assert result.exit_code == 0
    assert "struct BoxStorage" in box_copy.read_text()

    again = runner.invoke(app, ["migrate", str(box_copy), "--prefix", "box", "--write"])
    assert again.exit_code == 0
    assert "Nothing to migrate" in again.output


def test_cli_migrate_json_does_not_write(box_copy):
    before = box_copy.read_text()

    result = runner.invoke(app, ["migrate", str(box_copy), "--prefix", "box", "--json"])

    assert result.exit_code == 0
    payload = orjson.loads(result.stdout)
    assert len(payload) == 1
    assert payload[0]["title"] == "Move all variables to namespace"
    assert payload[0]["kind"] == "quickfix"
    assert len(payload[0]["diagnostics"]) == 2
    assert box_copy.read_text() == before


def test_cli_migrate_json_with_write_applies_fix(box_copy):
    result = runner.invoke(app, ["migrate", str(box_copy), "--prefix", "box", "--json", "--write"])

    assert result.exit_code == 0
    assert len(orjson.loads(result.stdout)) == 1
    assert "struct BoxStorage" in box_copy.read_text()


def test_cli_rejects_bad_prefix(box_copy):
    result = runner.invoke(app, ["migrate", str(box_copy), "--prefix", "bad prefix"])

    assert result.exit_code == 1
    assert "Invalid namespace prefix" in result.output


def test_cli_init_config(tmp_path):
    target = tmp_path / "slotmorph.yaml"

    result = runner.invoke(app, ["init-config", str(target)])

    assert result.exit_code == 0
    assert target.exists()
    assert "prefix: myProject" in target.read_text()
