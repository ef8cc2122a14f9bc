"""
ERC-7201 namespace catalog.

Derives namespace ids and storage slots and prints the source text of a
namespaced storage container together with its accessor function.
"""

import re

from Crypto.Hash import keccak

from slotmorph.config.models import Namespace

STORAGE_LOCATION_TAG = "@custom:storage-location"
ERC7201_FORMULA = "erc7201"

_STORAGE_LOCATION = re.compile(
    rf"{re.escape(STORAGE_LOCATION_TAG)}\s+{ERC7201_FORMULA}:([^\s*]+)"
)


def keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def get_namespace_id(prefix: str, contract_name: str) -> str:
    """Get the namespace id for a contract, e.g. 'myProject.Main'."""
    return f"{prefix}.{contract_name}"


def erc7201_slot(namespace_id: str) -> int:
    """
    Compute the ERC-7201 storage slot of a namespace id.

    keccak256(abi.encode(uint256(keccak256(id)) - 1)) & ~bytes32(uint256(0xff))
    """
    inner = int.from_bytes(keccak256(namespace_id.encode("utf-8")), "big") - 1
    outer = keccak256((inner % 2**256).to_bytes(32, "big"))
    return int.from_bytes(outer, "big") & ~0xFF


def format_slot(slot: int) -> str:
    return f"0x{slot:064x}"


def storage_location_ids(comment: str) -> list[str]:
    """Get every ERC-7201 namespace id tagged in a comment."""
    return _STORAGE_LOCATION.findall(comment)


def storage_struct_name(contract_name: str) -> str:
    return f"{contract_name}Storage"


def storage_accessor_name(contract_name: str) -> str:
    return f"_get{contract_name}Storage"


def storage_location_constant(contract_name: str) -> str:
    """Get the constant name holding the slot, e.g. 'MY_TOKEN_STORAGE_LOCATION'."""
    snake = re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "_", contract_name)
    return f"{snake.upper()}_STORAGE_LOCATION"


def accessor_binding(contract_name: str) -> str:
    """Get the local declaration that binds `$` to the container inside a function."""
    return f"{storage_struct_name(contract_name)} storage $ = {storage_accessor_name(contract_name)}();"


def print_namespace_template(namespace: Namespace, indent: str = "    ") -> str:
    """
    Print a namespaced storage container and its accessor.

    The text is meant to replace a declaration that already sits at one level
    of indentation, so the first line carries no indentation of its own and
    every later line is prefixed with one indent.
    """
    contract_name = namespace.contract_name
    namespace_id = get_namespace_id(namespace.prefix, contract_name)
    struct_name = storage_struct_name(contract_name)
    constant = storage_location_constant(contract_name)

    lines = [f"/// {STORAGE_LOCATION_TAG} {ERC7201_FORMULA}:{namespace_id}"]
    lines.append(f"struct {struct_name} {{")
    for variable in namespace.variables:
        lines.append(f"{indent}{variable.content}")
    lines.append("}")
    lines.append("")
    lines.append(
        f'// keccak256(abi.encode(uint256(keccak256("{namespace_id}")) - 1)) & ~bytes32(uint256(0xff))'
    )
    lines.append(
        f"bytes32 private constant {constant} = {format_slot(erc7201_slot(namespace_id))};"
    )
    lines.append("")
    lines.append(
        f"function {storage_accessor_name(contract_name)}() private pure returns ({struct_name} storage $) {{"
    )
    lines.append(f"{indent}assembly {{")
    lines.append(f"{indent}{indent}$.slot := {constant}")
    lines.append(f"{indent}}}")
    lines.append("}")

    first, *rest = lines
    return "\n".join([first] + [f"{indent}{line}" if line else "" for line in rest])
