"""Errors raised by the namespace quick fix."""


class InvariantViolation(RuntimeError):
    """Raised when traversal or edit composition reaches a state that should be impossible."""

    pass


class AmbiguousContractError(ValueError):
    """Raised when several contracts share the target name and none can be singled out."""

    def __init__(self, contract_name: str, count: int):
        self.contract_name = contract_name
        self.count = count
        super().__init__(
            f"Found {count} contracts named '{contract_name}' and could not tell which one to migrate"
        )
