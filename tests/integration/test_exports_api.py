"""End-to-end tests for the /api/v1/exports routes with in-memory collaborators."""

import pytest
from fastapi.testclient import TestClient

from catalog_export.api.deps import get_registry
from catalog_export.core.constants import ExportKind, JobState
from catalog_export.main import app
from catalog_export.pipeline.registry import JobRegistry

from tests.fakes import JobHarness, make_policy, make_record

RECORDS = [
    make_record("P1", shop_name="Main Shop"),
    make_record("CAL", category_id="3", images=("a", "b", "c")),
    make_record("P3"),
]
POLICIES = [make_policy("1"), make_policy("3", ordered=True)]


@pytest.fixture
def registry():
    return JobRegistry(lambda kind: JobHarness(RECORDS, POLICIES, kind=kind).orchestrator)


@pytest.fixture
def client(registry):
    app.dependency_overrides[get_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create(client, kind=ExportKind.DOCUMENT_BATCH) -> str:
    response = client.post("/api/v1/exports", json={"kind": kind})
    assert response.status_code == 201
    return response.json()["job_id"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestJobLifecycle:
    def test_create_and_inspect(self, client):
        job_id = _create(client)

        body = client.get(f"/api/v1/exports/{job_id}").json()

        assert body["state"] == JobState.IDLE
        assert body["kind"] == ExportKind.DOCUMENT_BATCH

    def test_unknown_job_is_404(self, client):
        response = client.get("/api/v1/exports/nope")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "JobNotFoundError"

    def test_delete(self, client):
        job_id = _create(client)

        assert client.delete(f"/api/v1/exports/{job_id}").status_code == 204
        assert client.get(f"/api/v1/exports/{job_id}").status_code == 404


class TestDocumentBatch:
    def _suspended_job(self, client) -> str:
        job_id = _create(client)
        client.post(f"/api/v1/exports/{job_id}/input", json={"text": "P1\nCAL\nP3"})
        resolved = client.post(f"/api/v1/exports/{job_id}/resolve")
        assert resolved.json()["state"] == JobState.GENERATING

        started = client.post(f"/api/v1/exports/{job_id}/generate")
        assert started.status_code == 202
        assert client.get(f"/api/v1/exports/{job_id}").json()["state"] == JobState.SUSPENDED
        return job_id

    def test_review_then_download(self, client):
        job_id = self._suspended_job(client)

        suspension = client.get(f"/api/v1/exports/{job_id}/suspension").json()
        assert suspension["display_code"] == "CAL"
        assert suspension["cursor_index"] == 1

        swapped = client.post(
            f"/api/v1/exports/{job_id}/suspension/swap",
            json={"token": suspension["token"], "first": 0, "second": 2},
        )
        assert swapped.json()["draft_ordering"] == ["c", "b", "a"]

        resolved = client.post(f"/api/v1/exports/{job_id}/suspension", json={"token": suspension["token"]})
        assert resolved.status_code == 200

        assert client.get(f"/api/v1/exports/{job_id}").json()["state"] == JobState.COMPLETED
        summary = client.get(f"/api/v1/exports/{job_id}/summary").json()
        assert summary["succeeded"] == 3
        assert summary["failures"] == []

        archive = client.get(f"/api/v1/exports/{job_id}/archive")
        assert archive.status_code == 200
        assert archive.headers["content-type"] == "application/zip"
        assert "test.zip" in archive.headers["content-disposition"]

    def test_stale_token_conflicts(self, client):
        job_id = self._suspended_job(client)

        response = client.post(f"/api/v1/exports/{job_id}/suspension", json={"token": "old"})

        assert response.status_code == 409

    def test_bad_ordering_is_422(self, client):
        job_id = self._suspended_job(client)
        token = client.get(f"/api/v1/exports/{job_id}/suspension").json()["token"]

        response = client.post(
            f"/api/v1/exports/{job_id}/suspension",
            json={"token": token, "ordering": ["a", "b", "zzz"]},
        )

        assert response.status_code == 422
        assert client.get(f"/api/v1/exports/{job_id}").json()["state"] == JobState.SUSPENDED

    def test_reviewer_cancel(self, client):
        job_id = self._suspended_job(client)
        token = client.get(f"/api/v1/exports/{job_id}/suspension").json()["token"]

        response = client.post(f"/api/v1/exports/{job_id}/suspension", json={"token": token, "cancel": True})

        assert response.json()["state"] == JobState.CANCELLED
        assert client.get(f"/api/v1/exports/{job_id}/archive").status_code == 409
        missing = client.get(f"/api/v1/exports/{job_id}/suspension")
        assert missing.status_code == 404
        assert missing.json()["detail"]["error"] == "SuspensionNotFoundError"
        assert missing.json()["detail"]["message"] == "No suspension is open"

    def test_cancel_endpoint_from_suspended(self, client):
        job_id = self._suspended_job(client)

        response = client.post(f"/api/v1/exports/{job_id}/cancel")

        assert response.json()["state"] == JobState.CANCELLED

    def test_generate_in_wrong_state(self, client):
        job_id = _create(client)

        assert client.post(f"/api/v1/exports/{job_id}/generate").status_code == 409


class TestPreconditionFailures:
    def test_empty_text(self, client):
        job_id = _create(client)

        response = client.post(f"/api/v1/exports/{job_id}/input", json={"text": " , "})

        assert response.status_code == 422
        assert response.json()["detail"]["reason"] == "EmptyIdentifierSet"
        assert client.get(f"/api/v1/exports/{job_id}").json()["state"] == JobState.FAILED_PRECONDITION

    def test_unsupported_upload(self, client):
        job_id = _create(client)

        response = client.post(
            f"/api/v1/exports/{job_id}/input/file",
            files={"file": ("codes.txt", b"P1", "text/plain")},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["reason"] == "InvalidInput"

    def test_no_matches(self, client):
        job_id = _create(client)
        client.post(f"/api/v1/exports/{job_id}/input", json={"text": "GHOST"})

        response = client.post(f"/api/v1/exports/{job_id}/resolve")

        assert response.status_code == 422
        assert response.json()["detail"]["reason"] == "NoMatchingRecords"


class TestLogisticsReport:
    def test_upload_resolve_and_download(self, client):
        job_id = _create(client, ExportKind.LOGISTICS_REPORT)

        uploaded = client.post(
            f"/api/v1/exports/{job_id}/input/file",
            files={"file": ("orders.csv", b"Order,SKU\n1,\"P1,P3\"\n2,CAL\n", "text/csv")},
        )
        assert uploaded.json()["state"] == JobState.INPUT_COLLECTED

        resolved = client.post(f"/api/v1/exports/{job_id}/resolve")
        assert resolved.json()["state"] == JobState.LOGISTICS_READY

        report = client.post(f"/api/v1/exports/{job_id}/report")
        assert report.status_code == 200
        assert report.content == b"xlsx"
        assert client.get(f"/api/v1/exports/{job_id}").json()["state"] == JobState.COMPLETED

    def test_report_before_resolve_conflicts(self, client):
        job_id = _create(client, ExportKind.LOGISTICS_REPORT)

        assert client.post(f"/api/v1/exports/{job_id}/report").status_code == 409
