"""
Unit tests for the ERC-7201 namespace catalog.
"""

import pytest

from slotmorph.config.models import Namespace, Position, Range, Variable
from slotmorph.namespace.catalog import (
    accessor_binding,
    erc7201_slot,
    format_slot,
    get_namespace_id,
    print_namespace_template,
    storage_location_constant,
    storage_location_ids,
)


def make_variable(name: str, content: str, line: int) -> Variable:
    return Variable(
        name=name,
        content=content,
        range=Range(start=Position(line=line, character=4), end=Position(line=line, character=4 + len(content))),
    )


def test_namespace_id():
    assert get_namespace_id("box", "Box") == "box.Box"
    assert get_namespace_id("openzeppelin.storage", "Ownable") == "openzeppelin.storage.Ownable"


@pytest.mark.parametrize(
    "namespace_id, expected",
    [
        ("example.main", "0x183a6125c38840424c4a85fa12bab2ab606c4b6d0e7cc73c0c06ba5300eab500"),
        ("openzeppelin.storage.Ownable", "0x9016d09d72d40fdae2fd8ceac6b6234c7706214fd39c1cd1e609a0528c199300"),
    ],
)
def test_erc7201_slot_matches_published_values(namespace_id, expected):
    """Slots match the EIP-7201 example and OpenZeppelin's Ownable."""
    assert format_slot(erc7201_slot(namespace_id)) == expected


def test_erc7201_slot_clears_last_byte():
    assert erc7201_slot("box.Box") & 0xFF == 0


@pytest.mark.parametrize(
    "contract_name, expected",
    [
        ("Box", "BOX_STORAGE_LOCATION"),
        ("MyToken", "MY_TOKEN_STORAGE_LOCATION"),
        ("ERC20Vault", "ERC20_VAULT_STORAGE_LOCATION"),
    ],
)
def test_storage_location_constant(contract_name, expected):
    assert storage_location_constant(contract_name) == expected


def test_accessor_binding():
    assert accessor_binding("Box") == "BoxStorage storage $ = _getBoxStorage();"


def test_storage_location_ids():
    assert storage_location_ids("/// @custom:storage-location erc7201:box.Box") == ["box.Box"]
    assert storage_location_ids("/// @custom:storage-location erc7201:box.BoxV2") == ["box.BoxV2"]
    assert storage_location_ids("/// @notice Something else") == []


def test_print_namespace_template():
    """Template holds the fields in order, the slot constant and the accessor."""
    namespace = Namespace(
        contract_name="Box",
        prefix="box",
        variables=[make_variable("a", "uint256 a;", 4), make_variable("b", "address b;", 5)],
    )

    template = print_namespace_template(namespace)
    lines = template.split("\n")

    assert lines[0] == "/// @custom:storage-location erc7201:box.Box"
    assert lines[1] == "    struct BoxStorage {"
    assert lines[2] == "        uint256 a;"
    assert lines[3] == "        address b;"
    assert lines[4] == "    }"
    assert lines[5] == ""
    assert f"BOX_STORAGE_LOCATION = {format_slot(erc7201_slot('box.Box'))};" in template
    assert "    function _getBoxStorage() private pure returns (BoxStorage storage $) {" in lines
    assert "            $.slot := BOX_STORAGE_LOCATION" in lines
    assert lines[-1] == "    }"


def test_print_namespace_template_custom_indent():
    namespace = Namespace(contract_name="Box", prefix="box", variables=[make_variable("a", "uint256 a;", 4)])

    lines = print_namespace_template(namespace, indent="  ").split("\n")

    assert lines[1] == "  struct BoxStorage {"
    assert lines[2] == "    uint256 a;"
