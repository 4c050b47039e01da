"""Tool specifications for built-in tools.

This file defines the metadata (name, description, parameters) for each
tool, separate from the implementation handlers.
"""

from __future__ import annotations

from .base import ToolRegistry, ToolSpec
from .contracts import (
    CONTRACT_DETAILS_TOOL,
    ContractDetailsInput,
    ContractDetailsOutput,
    ContractRepository,
    make_contract_details_handler,
)


def register_default_specs(registry: ToolRegistry, contracts: ContractRepository) -> None:
    """Register the built-in tool specs in a registry.

    This function is idempotent: calling it multiple times will not
    duplicate registrations.
    """

    def add(spec: ToolSpec) -> None:
        if registry.get(spec.name) is None:
            registry.register(spec)

    add(
        ToolSpec(
            name=CONTRACT_DETAILS_TOOL,
            description=(
                "Fetches details for a specific contract by its name from the "
                "KontrakPro contract database. Use this if the user asks about "
                "a specific contract."
            ),
            parameters={
                "contractName": {
                    "type": "string",
                    "description": "The name of the contract to fetch details for.",
                },
            },
            required=["contractName"],
            handler=make_contract_details_handler(contracts),
            input_model=ContractDetailsInput,
            output_model=ContractDetailsOutput,
        )
    )

