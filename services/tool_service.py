"""
Document tool service with thread-per-job architecture.

Image decoding and the compression stage loop can take seconds, so each
tool job runs in its own worker thread instead of the request thread.
Only one job processes at a time: workers take a service-wide run lock,
so a second job waits until the first one finishes. Jobs cannot be
cancelled once started.

Thread Safety:
    - ToolJob is frozen - safe to hand to a worker thread
    - ToolResultStore uses threading.Lock for every access
    - Progress is written by the worker, read by status requests

Flow:
    1. Route builds a ToolJob from the uploaded files
    2. Route calls tool_service.submit(job) and returns the job_id
    3. Worker waits for the run lock, then runs run_document_tool
    4. Worker reports progress and the outcome into ToolResultStore
    5. Client polls tool_service.status(job_id)
    6. Client downloads via tool_service.take_output(job_id)
    7. The output is released RELEASE_GRACE_SECONDS later

Cleanup:
    - Failed jobs are released RELEASE_GRACE_SECONDS after they finish
    - Closing the tool dialog releases a job at once (release)
    - Finished jobs older than TOOL_RESULT_MAX_AGE_SECONDS are swept on
      every submit, so outputs nobody downloads do not pile up

Usage:
    tool_service = ToolService(release_grace_seconds=60)
    job_id = tool_service.submit(job)
    ...
    status = tool_service.status(job_id)
    output = tool_service.take_output(job_id)

    # At app shutdown
    tool_service.shutdown()
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Callable, List, Optional

from models.tool_job import (
    ToolError,
    ToolJob,
    ToolOutcome,
    ToolOutput,
    ToolResult,
    ToolStatus,
)
from modules.document_producer import ProducerLimits, run_document_tool
from logging_config import get_logger, get_tool_logger, set_thread_name


# Module logger
logger = get_logger(__name__)

ToolRunner = Callable[..., ToolOutcome]


class ToolResultStore:
    """
    Thread-safe storage for tool job state.

    The worker thread creates and updates entries; request threads read
    them. Entries are removed when their output is released.
    """

    def __init__(self):
        self._results: Dict[str, ToolResult] = {}
        self._lock = threading.Lock()

    def add(self, result: ToolResult) -> None:
        with self._lock:
            self._results[result.job_id] = result

    def get(self, job_id: str) -> Optional[ToolResult]:
        with self._lock:
            return self._results.get(job_id)

    def update_progress(self, job_id: str, progress: int) -> None:
        with self._lock:
            result = self._results.get(job_id)
            if result and progress > result.progress:
                result.progress = progress

    def mark_running(self, job_id: str) -> None:
        with self._lock:
            result = self._results.get(job_id)
            if result:
                result.status = ToolStatus.RUNNING

    def finish(self, job_id: str, outcome: ToolOutcome) -> None:
        """Store the outcome of a finished job."""
        with self._lock:
            result = self._results.get(job_id)
            if not result:
                return
            if outcome.ok:
                result.status = ToolStatus.COMPLETED
                result.output = outcome.output
                result.progress = 100
                result.message = "Ready for download"
            else:
                result.status = ToolStatus.FAILED
                result.error = outcome.error
                result.message = outcome.message or outcome.error.message

    def release(self, job_id: str) -> bool:
        """
        Drop the output of a job from memory.

        Returns:
            True if an entry was released
        """
        with self._lock:
            result = self._results.pop(job_id, None)
            if not result:
                return False
            result.output = None
            result.status = ToolStatus.RELEASED
            logger.debug(f"Released output of tool job {job_id[:8]}")
            return True

    def expired(self, max_age_seconds: float, now: Optional[datetime] = None) -> List[str]:
        """IDs of finished jobs created more than max_age_seconds ago."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=max_age_seconds)
        with self._lock:
            return [
                job_id for job_id, result in self._results.items()
                if result.is_finished and result.created_at <= cutoff
            ]

    def clear(self) -> int:
        with self._lock:
            count = len(self._results)
            self._results.clear()
            logger.info(f"Cleared {count} tool results from store")
            return count


class ToolService:
    """
    Runs document tool jobs in background threads.

    Attributes:
        result_store: ToolResultStore with the state of every known job
    """

    def __init__(
        self,
        limits: Optional[ProducerLimits] = None,
        release_grace_seconds: float = 60.0,
        runner: ToolRunner = run_document_tool,
        result_max_age_seconds: float = 900.0,
    ):
        self._limits = limits or ProducerLimits()
        self._release_grace_seconds = release_grace_seconds
        self._result_max_age_seconds = result_max_age_seconds
        self._runner = runner
        self._result_store = ToolResultStore()

        # One job processes at a time
        self._run_lock = threading.Lock()

        self._active_threads: Dict[str, threading.Thread] = {}
        self._timers: Dict[str, threading.Timer] = {}
        self._threads_lock = threading.Lock()

        logger.info("ToolService initialized")

    @property
    def result_store(self) -> ToolResultStore:
        return self._result_store

    @property
    def limits(self) -> ProducerLimits:
        return self._limits

    def submit(self, job: ToolJob, job_id: Optional[str] = None) -> str:
        """
        Start a worker thread for a job and return immediately.

        Returns:
            job_id (UUID string)
        """
        if job_id is None:
            job_id = str(uuid.uuid4())

        self.sweep_expired()
        self._result_store.add(ToolResult(job_id=job_id, operation=job.operation))
        logger.info(f"Submitting tool job {job_id[:8]} ({job.operation.value}, {len(job.input_files)} file(s))")

        thread = threading.Thread(
            target=self._job_thread_main,
            args=(job_id, job),
            name=f"Tool-{job_id[:8]}",
            daemon=True,
        )
        with self._threads_lock:
            self._active_threads[job_id] = thread
        thread.start()

        return job_id

    def status(self, job_id: str) -> Optional[Dict[str, Any]]:
        result = self._result_store.get(job_id)
        return result.to_dict() if result else None

    def wait(self, job_id: str, timeout: Optional[float] = None) -> Optional[ToolResult]:
        """Block until a job's thread has finished, then return its result."""
        with self._threads_lock:
            thread = self._active_threads.get(job_id)
        if thread is not None:
            thread.join(timeout=timeout)
        return self._result_store.get(job_id)

    def take_output(self, job_id: str) -> Optional[ToolOutput]:
        """
        Hand out a finished job's PDF and schedule its release.

        The output stays available for the grace period so an interrupted
        download can be retried, then it is dropped from memory.
        """
        result = self._result_store.get(job_id)
        if not result or result.status is not ToolStatus.COMPLETED or result.output is None:
            return None

        self._schedule_release(job_id)
        return result.output

    def release(self, job_id: str) -> bool:
        """Release a job's output immediately (e.g. the dialog was closed)."""
        with self._threads_lock:
            timer = self._timers.pop(job_id, None)
        if timer:
            timer.cancel()
        return self._result_store.release(job_id)

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """
        Release finished jobs older than the result max age.

        Returns:
            Number of jobs released
        """
        released = 0
        for job_id in self._result_store.expired(self._result_max_age_seconds, now):
            if self.release(job_id):
                released += 1
        if released:
            logger.info(f"Swept {released} expired tool job(s)")
        return released

    def _schedule_release(self, job_id: str) -> None:
        with self._threads_lock:
            if job_id in self._timers:
                return
            timer = threading.Timer(
                self._release_grace_seconds, self.release, args=(job_id,)
            )
            timer.daemon = True
            timer.name = f"Release-{job_id[:8]}"
            self._timers[job_id] = timer
            timer.start()
        logger.debug(f"Tool job {job_id[:8]} released in {self._release_grace_seconds}s")

    def shutdown(self, timeout_per_thread: float = 5.0) -> None:
        """Wait for running jobs, cancel release timers and drop all results."""
        with self._threads_lock:
            active = list(self._active_threads.items())
            timers = list(self._timers.values())
            self._timers.clear()

        for timer in timers:
            timer.cancel()

        if active:
            logger.info(f"Waiting for {len(active)} tool threads to complete...")
        for job_id, thread in active:
            if thread.is_alive():
                thread.join(timeout=timeout_per_thread)
                if thread.is_alive():
                    logger.warning(f"Tool thread {job_id[:8]} did not complete in time")

        self._result_store.clear()
        logger.info("Tool service shutdown complete")

    def _job_thread_main(self, job_id: str, job: ToolJob) -> None:
        """Worker thread body: run the producer and record the outcome."""
        set_thread_name(f"Tool-{job_id[:8]}")
        tool_logger = get_tool_logger(job_id)

        try:
            with self._run_lock:
                self._result_store.mark_running(job_id)
                tool_logger.info(f"Tool job starting: {job.operation.value}")

                outcome = self._runner(
                    job,
                    on_progress=lambda pct: self._result_store.update_progress(job_id, pct),
                    limits=self._limits,
                    log=tool_logger,
                )
        except Exception as e:
            tool_logger.error(f"Tool job crashed: {e}", exc_info=True)
            outcome = ToolOutcome(error=ToolError.PROCESSING_FAILED, message=str(e))

        # wait() relies on the result being stored before the thread entry goes
        self._result_store.finish(job_id, outcome)
        tool_logger.info(f"Tool job finished: {'ok' if outcome.ok else outcome.error.value}")

        with self._threads_lock:
            self._active_threads.pop(job_id, None)

        # Nothing to download from a failed job
        if not outcome.ok:
            self._schedule_release(job_id)
