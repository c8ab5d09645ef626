"""
Tests for the FastAPI REST API.

Tests the HTTP endpoints for saving and parsing records.
"""

import io
import json
from collections.abc import Callable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from recordsheet.main import XLSX_MEDIA_TYPE, app
from recordsheet.services.record_service import RecordService


@pytest.fixture(scope="module")
def client():
    """Create a test client for the FastAPI app."""
    from recordsheet import main

    main.record_service = RecordService()
    with TestClient(app) as c:
        yield c
    main.record_service = None


def upload(client: TestClient, path: Path, reverse_header_map, **form):
    """Post a workbook file to the parse endpoint."""
    with open(path, "rb") as f:
        return client.post(
            "/records/parse",
            files={"file": (path.name, f, XLSX_MEDIA_TYPE)},
            data={"reverse_header_map": json.dumps(reverse_header_map), **form},
        )


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        """Test the health check endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "version" in data


class TestSaveEndpoint:
    """Tests for saving records over HTTP."""

    def test_save_records(self, client: TestClient) -> None:
        """Test that records come back as an .xlsx attachment."""
        response = client.post(
            "/records/save",
            json={
                "header_map": {"id": "Id", "name": "Name"},
                "records": [{"id": 1, "name": "Lei"}, {"id": 2, "name": "Jim"}],
                "sheet_name": "Users",
            },
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX_MEDIA_TYPE
        assert 'filename="Users.xlsx"' in response.headers["content-disposition"]
        assert response.headers["x-datum-error-count"] == "0"

        sheet = load_workbook(io.BytesIO(response.content))["Users"]
        assert [[cell.value for cell in row] for row in sheet.iter_rows()] == [
            ["Id", "Name"],
            ["1", "Lei"],
            ["2", "Jim"],
        ]

    def test_save_with_missing_property(self, client: TestClient) -> None:
        """Test that missing properties are placeholders outside strict mode."""
        response = client.post(
            "/records/save",
            json={
                "header_map": {"id": "Id", "name": "Name"},
                "records": [{"id": 1}],
                "datum_error_placeholder": "?",
            },
        )

        assert response.status_code == 200
        assert response.headers["x-datum-error-count"] == "1"
        sheet = load_workbook(io.BytesIO(response.content)).active
        assert sheet["B2"].value == "?"

    def test_save_strict_with_datum_errors(self, client: TestClient) -> None:
        """Test that strict mode refuses to produce a workbook."""
        response = client.post(
            "/records/save",
            json={
                "header_map": {"id": "Id", "name": "Name"},
                "records": [{"id": 1}, {"id": 2}],
                "strict": True,
            },
        )

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "DATUM_ERRORS"
        assert [e["record_index"] for e in data["details"]["datum_errors"]] == [0, 1]
        assert all(e["property_name"] == "name" for e in data["details"]["datum_errors"])

    def test_save_empty_header_map(self, client: TestClient) -> None:
        """Test that an empty header map is a bad request."""
        response = client.post("/records/save", json={"header_map": {}, "records": []})

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ARGUMENT"


class TestParseEndpoint:
    """Tests for parsing uploaded workbooks over HTTP."""

    def test_parse_records(self, client: TestClient, users_file: Path) -> None:
        """Test that rows come back as JSON objects of cell text."""
        response = upload(client, users_file, {"Id": "id", "Name": "name"})

        assert response.status_code == 200
        data = response.json()
        assert data["sheet_name"] == "Users"
        assert data["records"] == [{"id": "1", "name": "Lei"}, {"id": "2", "name": "Jim"}]
        assert data["cell_errors"] == []

    def test_parse_by_sheet_name(self, client: TestClient, make_workbook: Callable[..., Path]) -> None:
        """Test selecting the sheet by name."""
        path = make_workbook({"First": [["Other"]], "Second": [["Code"], ["A1"]]})

        response = upload(client, path, {"Code": "code"}, sheet_name="Second")

        assert response.status_code == 200
        assert response.json()["records"] == [{"code": "A1"}]

    def test_parse_header_not_found(self, client: TestClient, users_file: Path) -> None:
        """Test that an unmatched header row is unprocessable."""
        response = upload(client, users_file, {"Missing": "missing"})

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_HEADER_ROW"

    def test_parse_sheet_not_found(self, client: TestClient, users_file: Path) -> None:
        """Test that a bad sheet index is not found."""
        response = upload(client, users_file, {"Id": "id"}, sheet_index="3")

        assert response.status_code == 404
        assert response.json()["error_code"] == "SHEET_NOT_FOUND"

    def test_parse_invalid_file(self, client: TestClient, temp_dir: Path) -> None:
        """Test that a non-workbook upload is a bad request."""
        path = temp_dir / "notes.xlsx"
        path.write_bytes(b"plain text")

        response = upload(client, path, {"Id": "id"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_FILE_FORMAT"

    def test_parse_invalid_header_map_json(self, client: TestClient, users_file: Path) -> None:
        """Test that a malformed header map is a bad request."""
        with open(users_file, "rb") as f:
            response = client.post(
                "/records/parse",
                files={"file": (users_file.name, f, XLSX_MEDIA_TYPE)},
                data={"reverse_header_map": "{not json"},
            )

        assert response.status_code == 400
