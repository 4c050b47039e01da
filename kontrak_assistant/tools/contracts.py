"""Contract lookup tool used by the assistant to answer contract questions."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from ..errors import ToolError

logger = logging.getLogger(__name__)

CONTRACT_DETAILS_TOOL = "getContractDetailsByName"

# Length of the content preview returned as a summary
SUMMARY_PREVIEW_LENGTH = 100


class ContractDetailsInput(BaseModel):
    contract_name: str = Field(
        alias="contractName",
        min_length=1,
        description="The name of the contract to fetch details for.",
    )

    model_config = {"populate_by_name": True}


class ContractDetailsOutput(BaseModel):
    found: bool = Field(description="Whether the contract was found.")
    details: Optional[str] = Field(
        default=None, description="Details of the contract, or a not-found message."
    )
    status: Optional[str] = Field(default=None, description="The status of the contract.")
    summary: Optional[str] = Field(
        default=None, description="A brief summary of the contract."
    )
    upload_date: Optional[str] = Field(
        default=None,
        alias="uploadDate",
        description="The date the contract was uploaded.",
    )

    model_config = {"populate_by_name": True}


@dataclass
class ContractRecord:
    """The slice of a stored contract the assistant can see."""

    id: str
    title: str
    status: Optional[str] = None
    type: Optional[str] = None
    version: Optional[str] = None
    content: Optional[str] = None
    created_at: Optional[Union[datetime, date]] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ContractRecord":
        created_at = data.get("created_at")
        if isinstance(created_at, str) and created_at:
            created_at = datetime.fromisoformat(created_at)
        version = data.get("version")
        return cls(
            id=str(data["id"]),
            title=data["title"],
            status=data.get("status"),
            type=data.get("type"),
            version=str(version) if version is not None else None,
            content=data.get("content"),
            created_at=created_at or None,
        )


class ContractRepository(ABC):
    """Read access to stored contracts."""

    @abstractmethod
    async def find_by_title(self, fragment: str) -> Optional[ContractRecord]:
        """Return the first contract whose title contains ``fragment``, case-insensitively."""


class InMemoryContractRepository(ContractRepository):
    """Contract repository over a fixed list of records."""

    def __init__(self, records: Iterable[ContractRecord] = ()):
        self.records: List[ContractRecord] = list(records)

    @classmethod
    def from_json_file(cls, path: Path) -> "InMemoryContractRepository":
        """Load records from a JSON file holding a list of contract objects.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not a JSON list of contracts
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Contracts file not found: {path}")
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"Contracts file must contain a list: {path}")
        return cls(ContractRecord.from_dict(item) for item in data)

    async def find_by_title(self, fragment: str) -> Optional[ContractRecord]:
        needle = fragment.casefold()
        for record in self.records:
            if needle in record.title.casefold():
                return record
        return None


def _format_date(value: Optional[Union[datetime, date]]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def describe_contract(record: ContractRecord) -> ContractDetailsOutput:
    """Build the tool output for a found contract."""
    created = _format_date(record.created_at)
    content_info = (
        "Content is available."
        if record.content
        else "Content details are not directly available in this summary view."
    )
    details = (
        f"Details for {record.title} (ID: {record.id}): "
        f"Status - {record.status or 'N/A'}, "
        f"Type - {record.type or 'N/A'}, "
        f"Version - {record.version or 'N/A'}, "
        f"Created - {created or 'N/A'}. {content_info}"
    )
    if record.content:
        summary = record.content[:SUMMARY_PREVIEW_LENGTH]
    else:
        summary = f"{record.title} - {record.type or 'N/A'}"

    return ContractDetailsOutput(
        found=True,
        details=details,
        status=record.status,
        summary=summary,
        upload_date=created,
    )


def make_contract_details_handler(repository: ContractRepository):
    """Create the async handler for the contract details tool."""

    async def get_contract_details_by_name(contract_name: str) -> ContractDetailsOutput:
        logger.info(f"Looking up contract details for '{contract_name}'")
        try:
            record = await repository.find_by_title(contract_name)
        except Exception as e:
            logger.error(f"Contract lookup failed for '{contract_name}': {e}", exc_info=True)
            raise ToolError(
                f"Error fetching contract '{contract_name}': {e}",
                tool_name=CONTRACT_DETAILS_TOOL,
                output=ContractDetailsOutput(
                    found=False,
                    details=f"Error fetching contract \"{contract_name}\": {e}",
                ),
            ) from e

        if record is None:
            return ContractDetailsOutput(
                found=False,
                details=f"Contract named \"{contract_name}\" not found.",
            )
        return describe_contract(record)

    return get_contract_details_by_name
