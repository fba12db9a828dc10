"""Integration tests for the DICOMweb and WADO-URI routes.

The full FastAPI application is exercised over httpx's ASGI transport with a
fake protocol engine; transcoding runs for real on synthetic files.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from dicomgate.api.app import create_app
from dicomgate.api.headers import ISOLATION_HEADERS
from dicomgate.services.dicomweb import TranscodeCache
from dicomgate.settings import Settings, get_settings
from tests.conftest import PIXEL_BYTES, SERIES_UID, SOP_UID, STUDY_UID, FakeEngine

pytestmark = pytest.mark.integration


@pytest.fixture
def test_settings(storage_root: Path) -> Settings:
    """Settings pointing at the temporary archive."""
    return Settings(storage_path=str(storage_root), echo_on_startup=False, scp_enabled=False)


@pytest.fixture
def app(test_settings: Settings, fake_engine: FakeEngine) -> FastAPI:
    """Application wired to the fake engine."""
    application = create_app(test_settings)
    application.state.engine = fake_engine
    application.state.transcode_cache = TranscodeCache(fake_engine)
    application.dependency_overrides[get_settings] = lambda: test_settings
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the application."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _instance(number: str) -> dict:
    return {
        "00080018": {"vr": "UI", "Value": [f"{SOP_UID}.{number}"]},
        "00200013": {"vr": "IS", "Value": [number]},
    }


class TestSearchRoutes:
    """QIDO-RS routes."""

    @pytest.mark.asyncio
    async def test_search_studies(self, client: AsyncClient, fake_engine: FakeEngine) -> None:
        fake_engine.records = [{"0020000D": {"vr": "UI", "Value": [STUDY_UID]}}]

        response = await client.get("/rs/studies", params={"PatientName": "DOE*"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/dicom+json"
        assert response.json() == fake_engine.records
        assert fake_engine.find_requests[0].match_keys()["00100010"] == "DOE*"

    @pytest.mark.asyncio
    async def test_engine_failure_is_empty_200(
        self, client: AsyncClient, fake_engine: FakeEngine
    ) -> None:
        async def failing_find(_request: object) -> str:
            return '{"code": 2, "message": "association refused"}'

        fake_engine.find = failing_find  # type: ignore[method-assign]

        response = await client.get("/rs/studies")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_offset(self, client: AsyncClient, fake_engine: FakeEngine) -> None:
        fake_engine.records = [_instance(str(i)) for i in range(1, 4)]

        response = await client.get(
            f"/rs/studies/{STUDY_UID}/series/{SERIES_UID}/instances", params={"offset": "1"}
        )

        assert [r["00200013"]["Value"][0] for r in response.json()] == ["2", "3"]

    @pytest.mark.asyncio
    async def test_instances_sorted(self, client: AsyncClient, fake_engine: FakeEngine) -> None:
        fake_engine.records = [_instance("3"), _instance("1")]

        response = await client.get(f"/rs/studies/{STUDY_UID}/series/{SERIES_UID}/instances")

        assert response.status_code == 200
        assert [r["00200013"]["Value"][0] for r in response.json()] == ["1", "3"]

    @pytest.mark.asyncio
    async def test_invalid_study_uid(self, client: AsyncClient, fake_engine: FakeEngine) -> None:
        response = await client.get("/rs/studies/abc123/series")

        assert response.status_code == 400
        assert response.text == "Invalid UID format"
        assert fake_engine.find_requests == []

    @pytest.mark.asyncio
    async def test_empty_param_name_adds_no_match_key(
        self, client: AsyncClient, fake_engine: FakeEngine
    ) -> None:
        response = await client.get("/rs/studies?=x")

        assert response.status_code == 200
        assert fake_engine.find_requests[0].match_keys() == {"00080052": "STUDY"}


class TestMetadataRoutes:
    """WADO-RS metadata routes."""

    @pytest.mark.asyncio
    async def test_series_metadata_defaults(
        self, client: AsyncClient, fake_engine: FakeEngine
    ) -> None:
        fake_engine.records = [_instance("2"), _instance("1")]

        response = await client.get(f"/rs/studies/{STUDY_UID}/series/{SERIES_UID}/metadata")

        body = response.json()
        assert response.status_code == 200
        assert [r["00200013"]["Value"][0] for r in body] == ["1", "2"]
        for record in body:
            assert record["00281050"] == {"Value": ["100.0"], "vr": "DS"}
            assert record["00281051"] == {"Value": ["100.0"], "vr": "DS"}
            assert record["00281052"] == {"Value": ["1.0"], "vr": "DS"}
            assert record["00281053"] == {"Value": ["1.0"], "vr": "DS"}

    @pytest.mark.asyncio
    async def test_study_metadata(self, client: AsyncClient, fake_engine: FakeEngine) -> None:
        response = await client.get(f"/rs/studies/{STUDY_UID}/metadata")

        assert response.status_code == 200
        assert fake_engine.find_requests[0].level.value == "SERIES"

    @pytest.mark.asyncio
    async def test_instance_metadata(self, client: AsyncClient, fake_engine: FakeEngine) -> None:
        fake_engine.records = [_instance("1")]

        response = await client.get(
            f"/rs/studies/{STUDY_UID}/series/{SERIES_UID}/instances/{SOP_UID}/metadata"
        )

        assert response.status_code == 200
        assert response.json()[0]["00281053"]["Value"] == ["1.0"]


class TestFramesRoute:
    """WADO-RS frame route."""

    @pytest.mark.asyncio
    async def test_frames(self, client: AsyncClient, stored_instance: Path) -> None:
        response = await client.get(
            f"/rs/studies/{STUDY_UID}/series/{SERIES_UID}/instances/{SOP_UID}/frames/1"
        )

        assert response.status_code == 200
        content_type = response.headers["content-type"]
        assert content_type.startswith('multipart/related; type="application/octet-stream"')
        boundary = content_type.rsplit("boundary=", 1)[1]
        assert response.content.endswith(f"\r\n--{boundary}--\r\n".encode())
        assert PIXEL_BYTES in response.content

    @pytest.mark.asyncio
    async def test_frames_not_found(self, client: AsyncClient) -> None:
        response = await client.get(
            f"/rs/studies/{STUDY_UID}/series/{SERIES_UID}/instances/{SOP_UID}/frames/1"
        )

        assert response.status_code == 404
        assert response.text == "File not found"

    @pytest.mark.asyncio
    async def test_frames_invalid_uid(self, client: AsyncClient) -> None:
        response = await client.get(
            f"/rs/studies/{STUDY_UID}/series/{SERIES_UID}/instances/abc/frames/1"
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prefix", ["", "/viewer"])
    async def test_encoded_traversal_is_invalid_uid(
        self, client: AsyncClient, fake_engine: FakeEngine, prefix: str
    ) -> None:
        response = await client.get(
            f"{prefix}/rs/studies/..%2F..%2Fetc/series/1.3/instances/passwd/frames/1"
        )

        assert response.status_code == 400
        assert response.text == "Invalid UID format"
        assert fake_engine.transcode_requests == []

    @pytest.mark.asyncio
    async def test_unknown_study_path_is_404(self, client: AsyncClient) -> None:
        response = await client.get(f"/rs/studies/{STUDY_UID}/series/{SERIES_UID}/thumbnail")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_frames_unreadable_cached_copy(
        self, client: AsyncClient, storage_root: Path
    ) -> None:
        study_dir = storage_root / STUDY_UID
        study_dir.mkdir()
        (study_dir / SOP_UID).write_bytes(b"not dicom")

        response = await client.get(
            f"/rs/studies/{STUDY_UID}/series/{SERIES_UID}/instances/{SOP_UID}/frames/1"
        )

        assert response.status_code == 500
        assert response.text == "Failed to process file"


class TestWadoUri:
    """WADO-URI route."""

    @pytest.mark.asyncio
    async def test_retrieve(self, client: AsyncClient, stored_instance: Path) -> None:
        response = await client.get(
            "/wadouri",
            params={"studyUID": STUDY_UID, "seriesUID": SERIES_UID, "objectUID": SOP_UID},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/dicom+json"
        assert response.content[128:132] == b"DICM"

    @pytest.mark.asyncio
    async def test_missing_parameters(self, client: AsyncClient) -> None:
        response = await client.get("/wadouri", params={"studyUID": STUDY_UID})

        assert response.status_code == 400
        assert response.text == "Error missing parameters."

    @pytest.mark.asyncio
    async def test_traversal_uid(self, client: AsyncClient) -> None:
        response = await client.get(
            "/wadouri",
            params={"studyUID": "../../etc", "seriesUID": SERIES_UID, "objectUID": "passwd"},
        )

        assert response.status_code == 400
        assert response.text == "Invalid UID format"

    @pytest.mark.asyncio
    async def test_dot_only_uids_escape_root(self, client: AsyncClient) -> None:
        response = await client.get(
            "/wadouri", params={"studyUID": "..", "seriesUID": SERIES_UID, "objectUID": ".."}
        )

        assert response.status_code == 400
        assert response.text == "Invalid path"

    @pytest.mark.asyncio
    async def test_not_found(self, client: AsyncClient) -> None:
        response = await client.get(
            "/wadouri",
            params={"studyUID": STUDY_UID, "seriesUID": SERIES_UID, "objectUID": SOP_UID},
        )

        assert response.status_code == 404


class TestApplication:
    """Cross-cutting application behaviour."""

    @pytest.mark.asyncio
    async def test_viewer_prefix(self, client: AsyncClient, fake_engine: FakeEngine) -> None:
        fake_engine.records = [_instance("1")]

        response = await client.get(f"/viewer/rs/studies/{STUDY_UID}/series")

        assert response.status_code == 200
        assert response.json() == fake_engine.records

    @pytest.mark.asyncio
    async def test_isolation_headers(self, client: AsyncClient) -> None:
        response = await client.get("/rs/studies")

        for header, value in ISOLATION_HEADERS.items():
            assert response.headers[header] == value

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic_500(
        self, client: AsyncClient, fake_engine: FakeEngine, stored_instance: Path
    ) -> None:
        async def broken_transcode(_request: object) -> str:
            raise RuntimeError("engine crashed")

        fake_engine.transcode = broken_transcode  # type: ignore[method-assign]

        response = await client.get(
            "/wadouri",
            params={"studyUID": STUDY_UID, "seriesUID": SERIES_UID, "objectUID": SOP_UID},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}
        for header, value in ISOLATION_HEADERS.items():
            assert response.headers[header] == value
