"""Tests for search and lifecycle API routes."""

import base64
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient

from canvas_search.api.app import get_status_code
from canvas_search.api.routes import (
    SearchRequest,
    report_to_response,
    search_response_to_api,
)
from canvas_search.exceptions import (
    ErrorCode,
    IndexUnavailableError,
    InvalidQueryError,
)
from canvas_search.pipeline.models import PipelineReport, Stage, StageResult, StageStatus
from canvas_search.search.models import RankedResult, SearchResponse


def _report(project_id: str = "p-1", *stages: StageResult) -> PipelineReport:
    return PipelineReport(project_id=project_id, stages=list(stages))


class TestConverters:
    """Tests for response converters."""

    def test_search_response_to_api(self) -> None:
        response = SearchResponse(
            query="bee",
            results=[RankedResult(id="a", similarity=0.9)],
            reranked=True,
        )

        result = search_response_to_api(response)

        assert result.query == "bee"
        assert result.results[0].id == "a"
        assert result.reranked is True

    def test_report_to_response(self) -> None:
        report = _report(
            "p-1",
            StageResult(stage=Stage.IMAGE_ANALYSIS, status=StageStatus.OK),
            StageResult(
                stage=Stage.INDEX_WRITE,
                status=StageStatus.ERROR,
                error={"code": "CS-4000", "message": "down", "details": {}},
            ),
        )

        result = report_to_response(report)

        assert result.ok is False
        assert result.failed_stages == ["index_write"]
        assert result.stages[1].error["code"] == "CS-4000"


class TestStatusCodes:
    """Tests for error code to HTTP status mapping."""

    def test_known_codes(self) -> None:
        assert get_status_code(ErrorCode.INVALID_QUERY) == 400
        assert get_status_code(ErrorCode.INDEX_UNAVAILABLE) == 503
        assert get_status_code(ErrorCode.INDEX_TIMEOUT) == 504
        assert get_status_code(ErrorCode.EMBEDDING_FAILED) == 502

    def test_unknown_code_defaults_to_500(self) -> None:
        assert get_status_code(ErrorCode.INTERNAL_ERROR) == 500


class TestSearchEndpoint:
    """Tests for /api/v1/search."""

    def test_request_model(self) -> None:
        assert SearchRequest(query="bee").query == "bee"

    async def test_search(self, client: AsyncClient, fake_services: MagicMock) -> None:
        fake_services.orchestrator.search = AsyncMock(
            return_value=SearchResponse(
                query="bee",
                results=[RankedResult(id="a", similarity=0.9)],
                reranked=True,
            )
        )

        response = await client.post("/api/v1/search", json={"query": "bee"})

        assert response.status_code == 200
        assert response.json() == {
            "query": "bee",
            "results": [{"id": "a", "similarity": 0.9}],
            "reranked": True,
        }
        fake_services.orchestrator.search.assert_awaited_once_with("bee")

    async def test_no_results_is_not_an_error(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/search", json={"query": "nothing here"})

        assert response.status_code == 200
        assert response.json()["results"] == []

    async def test_short_query(self, client: AsyncClient, fake_services: MagicMock) -> None:
        """Invalid queries map to 400 with a structured body."""
        fake_services.orchestrator.search = AsyncMock(
            side_effect=InvalidQueryError("Query must be at least 3 characters")
        )

        response = await client.post("/api/v1/search", json={"query": "ab"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.INVALID_QUERY.value

    async def test_index_unavailable(
        self,
        client: AsyncClient,
        fake_services: MagicMock,
    ) -> None:
        fake_services.orchestrator.search = AsyncMock(
            side_effect=IndexUnavailableError("down")
        )

        response = await client.post("/api/v1/search", json={"query": "bee"})

        assert response.status_code == 503

    async def test_missing_query(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/search", json={})
        assert response.status_code == 422


class TestProjectEndpoints:
    """Tests for lifecycle hook endpoints."""

    async def test_project_created(
        self,
        client: AsyncClient,
        fake_services: MagicMock,
    ) -> None:
        fake_services.pipeline.on_project_created = AsyncMock(
            return_value=_report(
                "p-1",
                StageResult(stage=Stage.INDEX_WRITE, status=StageStatus.OK),
            )
        )

        response = await client.post("/api/v1/projects/p-1")

        assert response.status_code == 201
        assert response.json()["ok"] is True
        fake_services.pipeline.on_project_created.assert_awaited_once_with("p-1")

    async def test_project_saved(
        self,
        client: AsyncClient,
        fake_services: MagicMock,
    ) -> None:
        fake_services.pipeline.on_project_saved = AsyncMock(return_value=_report())
        snapshot = base64.b64encode(b"png-bytes").decode("ascii")
        canvas = {"objects": [{"type": "text", "text": "Hi"}]}

        response = await client.put(
            "/api/v1/projects/p-1/content",
            json={"snapshot": snapshot, "canvas_json": canvas},
        )

        assert response.status_code == 200
        project_id, decoded, canvas_json = fake_services.pipeline.on_project_saved.call_args.args
        assert project_id == "p-1"
        assert decoded.data == b"png-bytes"
        assert decoded.mime_type == "image/png"
        assert canvas_json == canvas

    async def test_project_saved_invalid_snapshot(self, client: AsyncClient) -> None:
        response = await client.put(
            "/api/v1/projects/p-1/content",
            json={"snapshot": "not base64!"},
        )
        assert response.status_code == 400

    async def test_project_saved_empty_snapshot(self, client: AsyncClient) -> None:
        response = await client.put(
            "/api/v1/projects/p-1/content",
            json={"snapshot": ""},
        )
        assert response.status_code == 400

    async def test_partial_failure_is_reported(
        self,
        client: AsyncClient,
        fake_services: MagicMock,
    ) -> None:
        """A failed stage comes back in the body, not as an error status."""
        fake_services.pipeline.on_project_saved = AsyncMock(
            return_value=_report(
                "p-1",
                StageResult(stage=Stage.IMAGE_ANALYSIS, status=StageStatus.OK),
                StageResult(
                    stage=Stage.INDEX_WRITE,
                    status=StageStatus.ERROR,
                    error={"code": "CS-4000", "message": "down", "details": {}},
                ),
                StageResult(stage=Stage.METADATA_PERSIST, status=StageStatus.OK),
            )
        )
        snapshot = base64.b64encode(b"png").decode("ascii")

        response = await client.put(
            "/api/v1/projects/p-1/content",
            json={"snapshot": snapshot},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is False
        assert data["failed_stages"] == ["index_write"]

    async def test_description_refresh(
        self,
        client: AsyncClient,
        fake_services: MagicMock,
    ) -> None:
        fake_services.pipeline.refresh_description = AsyncMock(return_value=_report())

        response = await client.patch(
            "/api/v1/projects/p-1/description",
            json={"description": "honey bee"},
        )

        assert response.status_code == 200
        fake_services.pipeline.refresh_description.assert_awaited_once_with(
            "p-1", "honey bee"
        )

    async def test_description_refresh_rejects_empty(self, client: AsyncClient) -> None:
        response = await client.patch(
            "/api/v1/projects/p-1/description",
            json={"description": ""},
        )
        assert response.status_code == 422

    async def test_project_deleted(
        self,
        client: AsyncClient,
        fake_services: MagicMock,
    ) -> None:
        fake_services.pipeline.on_project_deleted = AsyncMock(return_value=_report())

        response = await client.delete("/api/v1/projects/p-1")

        assert response.status_code == 200
        fake_services.pipeline.on_project_deleted.assert_awaited_once_with("p-1")


class TestIndexEndpoint:
    """Tests for /api/v1/index."""

    async def test_ensure_index(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/index")

        assert response.status_code == 200
        assert response.json() == {"created": True}
