"""Contract enumerations."""

from enum import StrEnum


class ContractType(StrEnum):
    """How the contract came about."""

    INITIAL = "initial"  # new enrollment
    RENEWAL = "renewal"  # supersedes previous_contract_id
