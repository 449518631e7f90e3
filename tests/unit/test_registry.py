"""Tests for the in-memory JobRegistry."""

import pytest

from catalog_export.core.constants import ExportKind, JobState
from catalog_export.pipeline.errors import JobNotFoundError
from catalog_export.pipeline.registry import JobRegistry

from tests.fakes import JobHarness, make_policy, make_record


@pytest.fixture
def registry():
    return JobRegistry(lambda kind: JobHarness([make_record("A")], [make_policy("1")], kind=kind).orchestrator)


def test_create_and_get(registry):
    job = registry.create(ExportKind.LOGISTICS_REPORT)

    assert registry.get(job.job_id) is job
    assert job.kind == ExportKind.LOGISTICS_REPORT
    assert len(registry) == 1


def test_unknown_job(registry):
    with pytest.raises(JobNotFoundError):
        registry.get("missing")


def test_remove_cancels_active_job(registry):
    job = registry.create(ExportKind.DOCUMENT_BATCH)
    job.submit_input("A")

    removed = registry.remove(job.job_id)

    assert removed.state == JobState.CANCELLED
    assert list(registry) == []


async def test_remove_keeps_completed_state(registry):
    job = registry.create(ExportKind.DOCUMENT_BATCH)
    job.submit_input("A")
    await job.start_resolve()
    await job.start_generate()

    assert registry.remove(job.job_id).state == JobState.COMPLETED
