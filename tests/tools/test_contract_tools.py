"""Tests for the contract lookup tool."""

import json
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from kontrak_assistant.errors import ToolError
from kontrak_assistant.tools.contracts import (
    ContractRecord,
    InMemoryContractRepository,
    describe_contract,
    make_contract_details_handler,
)


@pytest.fixture
def repository():
    return InMemoryContractRepository(
        [
            ContractRecord(
                id="c-1",
                title="Acme Mutual NDA",
                status="active",
                type="NDA",
                version="2",
                content="This Non-Disclosure Agreement is made between Acme Corp and KontrakPro. " * 3,
                created_at=datetime(2024, 3, 14, 10, 30),
            ),
            ContractRecord(id="c-2", title="Globex Supply Agreement"),
        ]
    )


class TestInMemoryContractRepository:
    """Test title lookup."""

    @pytest.mark.asyncio
    async def test_case_insensitive_fragment(self, repository):
        """Test lookup matches a title fragment regardless of case."""
        record = await repository.find_by_title("acme")

        assert record.id == "c-1"

    @pytest.mark.asyncio
    async def test_no_match(self, repository):
        """Test lookup returns None when nothing matches."""
        assert await repository.find_by_title("Initech") is None

    def test_from_json_file(self, tmp_path):
        """Test loading records from a JSON file."""
        path = tmp_path / "contracts.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "id": 7,
                        "title": "Acme NDA",
                        "status": "draft",
                        "version": 1,
                        "created_at": "2024-03-14T10:30:00",
                    }
                ]
            ),
            encoding="utf-8",
        )

        repository = InMemoryContractRepository.from_json_file(path)

        record = repository.records[0]
        assert record.id == "7"
        assert record.version == "1"
        assert record.created_at == datetime(2024, 3, 14, 10, 30)

    def test_from_json_file_missing(self, tmp_path):
        """Test a missing file is reported."""
        with pytest.raises(FileNotFoundError):
            InMemoryContractRepository.from_json_file(tmp_path / "missing.json")

    def test_from_json_file_not_a_list(self, tmp_path):
        """Test a file holding an object is rejected."""
        path = tmp_path / "contracts.json"
        path.write_text("{}", encoding="utf-8")

        with pytest.raises(ValueError, match="must contain a list"):
            InMemoryContractRepository.from_json_file(path)


class TestDescribeContract:
    """Test the found-contract payload."""

    def test_full_record(self, repository):
        """Test every field is reported for a complete record."""
        output = describe_contract(repository.records[0])

        assert output.found is True
        assert output.status == "active"
        assert output.upload_date == "2024-03-14"
        assert len(output.summary) == 100
        assert output.details.startswith("Details for Acme Mutual NDA (ID: c-1): ")
        assert "Status - active, Type - NDA, Version - 2, Created - 2024-03-14." in output.details
        assert output.details.endswith("Content is available.")

    def test_sparse_record(self, repository):
        """Test missing fields fall back to N/A."""
        output = describe_contract(repository.records[1])

        assert "Status - N/A, Type - N/A, Version - N/A, Created - N/A." in output.details
        assert output.summary == "Globex Supply Agreement - N/A"
        assert output.upload_date is None
        assert output.details.endswith(
            "Content details are not directly available in this summary view."
        )


class TestContractDetailsHandler:
    """Test the tool handler."""

    @pytest.mark.asyncio
    async def test_found(self, repository):
        """Test a matching contract is described."""
        handler = make_contract_details_handler(repository)

        output = await handler(contract_name="Globex")

        assert output.found is True
        assert output.details.startswith("Details for Globex Supply Agreement")

    @pytest.mark.asyncio
    async def test_not_found(self, repository):
        """Test a missing contract is reported as data."""
        handler = make_contract_details_handler(repository)

        output = await handler(contract_name="Acme NDA 2019")

        assert output.found is False
        assert output.details == 'Contract named "Acme NDA 2019" not found.'

    @pytest.mark.asyncio
    async def test_repository_failure_raises_tool_error(self):
        """Test a repository failure is raised with a not-found payload."""
        repository = AsyncMock()
        repository.find_by_title.side_effect = ConnectionError("db offline")
        handler = make_contract_details_handler(repository)

        with pytest.raises(ToolError) as exc_info:
            await handler(contract_name="Acme")

        payload = exc_info.value.to_output()
        assert payload.found is False
        assert "db offline" in payload.details
