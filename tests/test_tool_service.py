"""
Unit tests for the tool service.

Most tests use a fake runner so thread behaviour can be checked without
real image processing.
"""

import threading
import time
from datetime import datetime, timedelta, timezone
from io import BytesIO

import pytest
from pypdf import PdfWriter

from models.tool_job import (
    InputFile,
    ToolError,
    ToolJob,
    ToolOperation,
    ToolOutcome,
    ToolOutput,
    ToolStatus,
)
from services.tool_service import ToolService


# Fixtures

@pytest.fixture
def job():
    return ToolJob(ToolOperation.MERGE, (InputFile(b"%PDF-", "application/pdf", "a.pdf"),))


def _ok_runner(job, on_progress=None, limits=None, log=None):
    on_progress(50)
    on_progress(100)
    return ToolOutcome(output=ToolOutput(b"%PDF-1.4 fake", job.operation.default_output_name, 1))


def _failing_runner(job, on_progress=None, limits=None, log=None):
    return ToolOutcome(error=ToolError.MERGE_TOO_LARGE, message="Merged PDF is 900 KB")


def _crashing_runner(job, on_progress=None, limits=None, log=None):
    raise RuntimeError("worker exploded")


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


# Tests for job lifecycle

class TestToolServiceLifecycle:
    """Test submit / status / outcome storage."""

    def test_completed_job(self, job):
        service = ToolService(runner=_ok_runner)
        job_id = service.submit(job)
        result = service.wait(job_id, timeout=2)

        assert result.status is ToolStatus.COMPLETED
        assert result.progress == 100
        status = service.status(job_id)
        assert status["complete"] is True
        assert status["error"] is None
        assert status["suggested_name"] == "Merged_Document.pdf"

    def test_failed_job(self, job):
        service = ToolService(runner=_failing_runner)
        job_id = service.submit(job)
        service.wait(job_id, timeout=2)

        status = service.status(job_id)
        assert status["status"] == "failed"
        assert status["error"] == "merge_too_large"
        assert status["suggestion"] == ToolError.MERGE_TOO_LARGE.suggestion
        assert service.take_output(job_id) is None

    def test_crashing_runner_becomes_processing_failed(self, job):
        service = ToolService(runner=_crashing_runner)
        job_id = service.submit(job)
        result = service.wait(job_id, timeout=2)

        assert result.status is ToolStatus.FAILED
        assert result.error is ToolError.PROCESSING_FAILED
        assert "worker exploded" in result.message

    def test_unknown_job(self):
        service = ToolService(runner=_ok_runner)

        assert service.status("missing") is None
        assert service.take_output("missing") is None

    def test_worker_thread_named_after_job(self, job):
        names = []

        def runner(job, on_progress=None, limits=None, log=None):
            names.append(threading.current_thread().name)
            return _ok_runner(job, on_progress)

        service = ToolService(runner=runner)
        job_id = service.submit(job)
        service.wait(job_id, timeout=2)

        assert names == [f"Tool-{job_id[:8]}"]

    def test_real_runner_merges(self):
        writer = PdfWriter()
        writer.add_blank_page(width=595, height=842)
        buffer = BytesIO()
        writer.write(buffer)

        service = ToolService()
        job_id = service.submit(ToolJob(
            ToolOperation.COMPRESS,
            (InputFile(buffer.getvalue(), "application/pdf", "blank.pdf"),),
        ))
        result = service.wait(job_id, timeout=10)

        assert result.status is ToolStatus.COMPLETED
        assert result.output.page_count == 1


# Tests for serialized execution

class TestToolServiceSerialization:
    """Test that only one job runs at a time."""

    def test_second_job_waits(self, job):
        running = []
        overlap = []
        release_runner = threading.Event()
        lock = threading.Lock()

        def runner(job, on_progress=None, limits=None, log=None):
            with lock:
                running.append(1)
                if len(running) > 1:
                    overlap.append(True)
            release_runner.wait(timeout=2)
            with lock:
                running.pop()
            return _ok_runner(job, on_progress)

        service = ToolService(runner=runner)
        job_ids = [service.submit(job), service.submit(job)]

        def statuses():
            return sorted(service.status(job_id)["status"] for job_id in job_ids)

        # Whichever thread wins the run lock, the other one waits
        assert _wait_for(lambda: "running" in statuses())
        time.sleep(0.05)
        assert statuses() == ["pending", "running"]

        release_runner.set()
        for job_id in job_ids:
            service.wait(job_id, timeout=2)

        assert overlap == []
        assert statuses() == ["completed", "completed"]


# Tests for output release

class TestToolServiceRelease:
    """Test that downloaded output is dropped after the grace period."""

    def test_output_released_after_grace(self, job):
        service = ToolService(runner=_ok_runner, release_grace_seconds=0.05)
        job_id = service.submit(job)
        service.wait(job_id, timeout=2)

        output = service.take_output(job_id)
        assert output.data.startswith(b"%PDF")

        assert _wait_for(lambda: service.status(job_id) is None)
        assert service.take_output(job_id) is None

    def test_output_available_during_grace(self, job):
        service = ToolService(runner=_ok_runner, release_grace_seconds=5)
        job_id = service.submit(job)
        service.wait(job_id, timeout=2)

        assert service.take_output(job_id) is not None
        assert service.take_output(job_id) is not None
        service.shutdown()

    def test_immediate_release(self, job):
        service = ToolService(runner=_ok_runner, release_grace_seconds=5)
        job_id = service.submit(job)
        service.wait(job_id, timeout=2)
        service.take_output(job_id)

        assert service.release(job_id) is True
        assert service.status(job_id) is None
        assert service.release(job_id) is False

    def test_shutdown_without_jobs(self):
        service = ToolService(runner=_ok_runner)
        service.shutdown()

    def test_shutdown_drops_results(self, job):
        service = ToolService(runner=_ok_runner)
        job_id = service.submit(job)
        service.wait(job_id, timeout=2)

        service.shutdown()

        assert service.status(job_id) is None

    def test_failed_jobs_released_after_grace(self, job):
        """Failed jobs have nothing to download and are dropped on their own."""
        service = ToolService(runner=_failing_runner, release_grace_seconds=0.05)
        job_ids = [service.submit(job) for _ in range(20)]

        assert _wait_for(lambda: all(service.status(job_id) is None for job_id in job_ids))

    def test_completed_job_kept_until_downloaded(self, job):
        service = ToolService(runner=_ok_runner, release_grace_seconds=0.05)
        job_id = service.submit(job)
        service.wait(job_id, timeout=2)
        time.sleep(0.2)

        assert service.status(job_id)["status"] == "completed"
        service.shutdown()


# Tests for the max-age sweep

class TestToolServiceSweep:
    """Test that finished jobs nobody collects are swept by age."""

    def test_old_completed_job_swept(self, job):
        service = ToolService(runner=_ok_runner, result_max_age_seconds=60)
        job_id = service.submit(job)
        service.wait(job_id, timeout=2)

        assert service.sweep_expired() == 0
        assert service.status(job_id) is not None

        later = datetime.now(timezone.utc) + timedelta(seconds=120)
        assert service.sweep_expired(now=later) == 1
        assert service.status(job_id) is None

    def test_unfinished_job_not_swept(self, job):
        started = threading.Event()
        finish = threading.Event()

        def runner(job, on_progress=None, limits=None, log=None):
            started.set()
            finish.wait(timeout=2)
            return _ok_runner(job, on_progress)

        service = ToolService(runner=runner, result_max_age_seconds=0)
        job_id = service.submit(job)
        assert started.wait(timeout=2)

        assert service.sweep_expired(now=datetime.now(timezone.utc) + timedelta(hours=1)) == 0
        assert service.status(job_id)["status"] == "running"

        finish.set()
        service.wait(job_id, timeout=2)

    def test_submit_sweeps_old_jobs(self, job):
        service = ToolService(runner=_ok_runner, result_max_age_seconds=0)
        first = service.submit(job)
        service.wait(first, timeout=2)

        second = service.submit(job)
        service.wait(second, timeout=2)

        assert service.status(first) is None
        assert service.status(second)["status"] == "completed"
