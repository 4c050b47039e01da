"""Tools the assistant model can call."""

from .base import ToolRegistry, ToolSpec
from .contracts import (
    CONTRACT_DETAILS_TOOL,
    ContractRecord,
    ContractRepository,
    InMemoryContractRepository,
)
from .specs import register_default_specs

__all__ = [
    "ToolRegistry",
    "ToolSpec",
    "CONTRACT_DETAILS_TOOL",
    "ContractRecord",
    "ContractRepository",
    "InMemoryContractRepository",
    "register_default_specs",
]
