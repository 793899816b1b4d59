# tests/unit/adapters/api/test_export_api.py

"""Tests for the HTTP export surface"""

# Standard library imports
from io import BytesIO
from json import loads
from zipfile import ZipFile

# Third party imports
from fastapi.testclient import TestClient
import pytest

# Local imports
from biblio_export.adapters.api import get_app
from biblio_export.adapters.api import status_code_for
from biblio_export.application.services import ExportDispatcher
from biblio_export.core.domain.errors import ExportError
from biblio_export.core.domain.errors import ExportTimeoutError
from biblio_export.core.domain.errors import GenerationError
from biblio_export.core.domain.errors import PoolExhaustedError
from biblio_export.infrastructure.client import MetadataClient
from tests.fixtures.works import FakeRepository
from tests.fixtures.works import PUBLISHER_ID
from tests.fixtures.works import WorkBuilder


@pytest.fixture
def repository():
    works = WorkBuilder.catalogue(3) + [WorkBuilder.monograph(4, doi=None)]
    return FakeRepository(works)


@pytest.fixture
def api_client(repository, registry, config):
    """TestClient whose dispatcher reads from the in-memory repository"""
    client = MetadataClient(transport=repository.transport(), sleep=lambda seconds: None)
    dispatcher = ExportDispatcher(client, registry, config.processing)
    with TestClient(get_app(dispatcher=dispatcher, config=config)) as test_client:
        yield test_client
    client.close()


def _archive(response) -> ZipFile:
    return ZipFile(BytesIO(response.content))


class TestFormats:
    def test_lists_registered_formats(self, api_client):
        response = api_client.get("/formats")
        assert response.status_code == 200
        formats = response.json()
        assert len(formats) == 11
        assert formats[0]["format_id"] == "bibtex"
        assert {"format_id", "version", "name", "content_type", "file_extension"} <= set(
            formats[0]
        )


class TestWorkEndpoint:
    """Single-work downloads and error bodies"""

    def test_document_download(self, api_client):
        response = api_client.get("/works/work-0001/onix/3.0")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert response.headers["content-disposition"] == 'attachment; filename="work-0001.xml"'
        assert b"ONIXMessage" in response.content

    def test_unknown_work(self, api_client):
        response = api_client.get("/works/work-0404/csv/1.0")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_unknown_format(self, api_client, repository):
        response = api_client.get("/works/work-0001/onix/9.9")
        assert response.status_code == 404
        assert response.json() == {
            "error": "unsupported_format",
            "message": "Unsupported format: onix 9.9",
        }
        assert repository.requests == []

    def test_validation_failure_lists_issues(self, api_client):
        response = api_client.get("/works/work-0004/crossref/5.3.1")
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_failed"
        assert {"field": "doi", "severity": "error"}.items() <= body["issues"][0].items()

    def test_timeout_must_be_positive(self, api_client):
        response = api_client.get("/works/work-0001/csv/1.0", params={"timeout": 0})
        assert response.status_code == 422


class TestCatalogueEndpoint:
    """Catalogue archives"""

    def test_combined_archive(self, api_client):
        response = api_client.get(f"/publishers/{PUBLISHER_ID}/crossref/5.3.1")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert response.headers["x-export-total"] == "4"
        assert response.headers["x-export-generated"] == "3"
        assert response.headers["x-export-rejected"] == "1"
        assert response.headers["x-export-timed-out"] == "0"
        assert response.headers["x-export-complete"] == "true"

        archive = _archive(response)
        assert archive.namelist() == ["manifest.json", "export.xml"]
        manifest = loads(archive.read("manifest.json"))
        assert manifest["total"] == 4
        assert manifest["complete"] is True
        assert [r["status"] for r in manifest["records"]] == [
            "generated",
            "generated",
            "generated",
            "rejected",
        ]
        assert manifest["records"][3]["issues"][0]["field"] == "doi"

    def test_separate_archive(self, api_client):
        response = api_client.get(
            f"/publishers/{PUBLISHER_ID}/csv/1.0", params={"combined": "false"}
        )
        names = _archive(response).namelist()
        assert names == [
            "manifest.json",
            "00000_work-0001.csv",
            "00001_work-0002.csv",
            "00002_work-0003.csv",
            "00003_work-0004.csv",
        ]

    def test_archive_is_deterministic(self, api_client):
        first = api_client.get(f"/publishers/{PUBLISHER_ID}/onix/3.0")
        second = api_client.get(f"/publishers/{PUBLISHER_ID}/onix/3.0")
        assert first.content == second.content

    def test_upstream_failure(self, api_client, repository):
        repository.failing_offsets.add(0)
        response = api_client.get(f"/publishers/{PUBLISHER_ID}/csv/1.0")
        assert response.status_code == 502
        assert response.json()["error"] == "upstream_unavailable"

    def test_unknown_publisher(self, api_client):
        response = api_client.get("/publishers/pub-9999/csv/1.0")
        assert response.status_code == 404


class TestStatusCodes:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (PoolExhaustedError("pool"), 502),
            (ExportTimeoutError("late"), 504),
            (GenerationError("bug"), 500),
            (ExportError("other"), 500),
        ],
    )
    def test_status_code_for(self, error, expected):
        assert status_code_for(error) == expected
