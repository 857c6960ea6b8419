"""Tests for JobStore."""

from vegscout.jobs import JobStatus, JobStore
from vegscout.schemas.analysis import Friendliness
from vegscout.schemas.responses import BatchAnalysisResponse, ProgressEvent


def _result() -> BatchAnalysisResponse:
    return BatchAnalysisResponse(success=True, min_criteria=Friendliness.good)


def test_job_lifecycle():
    store = JobStore()
    job = store.create_job(restaurant_ids=["r1", "r2"])
    assert job.status == JobStatus.pending

    store.mark_running(job.job_id)
    assert store.get_job(job.job_id).status == JobStatus.running

    store.mark_completed(job.job_id, _result())
    done = store.get_job(job.job_id)
    assert done.status == JobStatus.completed
    assert done.result.success is True
    assert done.finished_at is not None


def test_mark_failed_records_error():
    store = JobStore()
    job = store.create_job()
    store.mark_failed(job.job_id, "boom")

    failed = store.get_job(job.job_id)
    assert failed.status == JobStatus.failed
    assert failed.error == "boom"


def test_record_progress_keeps_latest_event():
    store = JobStore()
    job = store.create_job(restaurant_ids=["r1"])
    for completed in (0, 1):
        store.record_progress(job.job_id, ProgressEvent(
            stage="analyzing", progress=completed * 100, message="...", completed=completed, total=1,
        ))
    assert store.get_job(job.job_id).progress.completed == 1


def test_has_active_job_matches_same_selection_in_any_order():
    store = JobStore()
    job = store.create_job(restaurant_ids=["r1", "r2"])

    assert store.has_active_job(["r2", "r1"]).job_id == job.job_id
    assert store.has_active_job(["r1"]) is None


def test_finished_jobs_are_not_active():
    store = JobStore()
    job = store.create_job(restaurant_ids=["r1"])
    store.mark_completed(job.job_id, None)
    assert store.has_active_job(["r1"]) is None


def test_eviction_drops_oldest_finished_jobs_only():
    store = JobStore(max_jobs=2)
    first = store.create_job(restaurant_ids=["a"])
    store.mark_completed(first.job_id, None)
    active = store.create_job(restaurant_ids=["b"])
    newest = store.create_job(restaurant_ids=["c"])

    assert store.get_job(first.job_id) is None
    assert store.get_job(active.job_id) is not None
    assert store.get_job(newest.job_id) is not None


def test_unknown_job_is_none():
    assert JobStore().get_job("nope") is None
