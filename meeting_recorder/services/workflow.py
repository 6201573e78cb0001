"""Background insight workflow.

``InsightWorkflow.run`` drives one finished recording through
mark-processing -> summarize -> mark-result. The summarization call is
declared retryable on transient failures and tenacity runs the retry
loop (bounded attempts, exponential backoff). Whatever happens, a run
ends with the recording in exactly one of *completed* or *error*.

``WorkflowRunner`` is the in-process engine: it schedules runs as
independent ``asyncio.Task`` objects, isolated from the interactive
session, and on startup re-submits recordings left in *processing* by a
previous process, using the persisted status as the checkpoint.

Usage::

    runner = create_runner()
    lifecycle = RecordingLifecycle(on_finished=runner.submit)
    ...
    await runner.drain()
"""

import asyncio
import logging

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from meeting_recorder.core.config import get_settings
from meeting_recorder.core.exceptions import (
    MeetingRecorderError,
    WorkflowTerminalError,
    WorkflowTransientError,
)
from meeting_recorder.core.models import RecordingStatus
from meeting_recorder.services.insights import InsightGenerator
from meeting_recorder.services.lifecycle import RecordingLifecycle
from meeting_recorder.services.llm import create_llm

logger = logging.getLogger(__name__)


class InsightWorkflow:
    """Post-processing for one finished recording.

    Args:
        generator: Produces insight text from a transcript.
        lifecycle: Persists status transitions.
        max_attempts: Total summarization attempts before giving up.
        wait: tenacity wait strategy between attempts.
    """

    def __init__(
        self,
        generator: InsightGenerator,
        lifecycle: RecordingLifecycle,
        max_attempts: int = 3,
        wait: wait_base | None = None,
    ) -> None:
        self._generator = generator
        self._lifecycle = lifecycle
        self._max_attempts = max(max_attempts, 1)
        self._wait = wait if wait is not None else wait_exponential(multiplier=1, min=1, max=16)

    async def _generate(self, recording_id: int, transcript: str) -> str:
        """Call the generator, retrying transient failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(WorkflowTransientError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                number = attempt.retry_state.attempt_number
                if number > 1:
                    logger.info(
                        "Retrying insights for recording %s (attempt %s/%s)",
                        recording_id,
                        number,
                        self._max_attempts,
                    )
                return await self._generator.generate(transcript)

    async def run(self, recording_id: int, transcript: str) -> RecordingStatus:
        """Run the workflow to a terminal status and return it."""
        await self._lifecycle.mark_processing(recording_id)

        try:
            insights = await self._generate(recording_id, transcript)
        except WorkflowTransientError as exc:
            message = (
                f"Insight generation failed after {self._max_attempts} attempts: {exc.detail}"
            )
            await self._lifecycle.fail(recording_id, message)
            return RecordingStatus.error
        except WorkflowTerminalError as exc:
            await self._lifecycle.fail(recording_id, f"Insight generation failed: {exc.detail}")
            return RecordingStatus.error
        except Exception as exc:
            logger.exception("Unexpected insight failure for recording %s", recording_id)
            await self._lifecycle.fail(recording_id, f"Failed to generate insights: {exc}")
            return RecordingStatus.error

        await self._lifecycle.complete(recording_id, insights)
        return RecordingStatus.completed


class WorkflowRunner:
    """Schedules insight workflows as background tasks.

    Args:
        workflow: The workflow each submitted recording runs through.
    """

    def __init__(self, workflow: InsightWorkflow) -> None:
        self._workflow = workflow
        self._tasks: dict[int, asyncio.Task] = {}

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, recording_id: int, transcript: str) -> asyncio.Task:
        """Start the workflow for a recording unless it is already running."""
        existing = self._tasks.get(recording_id)
        if existing is not None and not existing.done():
            return existing

        task = asyncio.create_task(
            self._run(recording_id, transcript),
            name=f"insights-{recording_id}",
        )
        self._tasks[recording_id] = task
        task.add_done_callback(lambda done: self._forget(recording_id, done))
        logger.info("Insight workflow scheduled for recording %s", recording_id)
        return task

    def _forget(self, recording_id: int, task: asyncio.Task) -> None:
        if self._tasks.get(recording_id) is task:
            del self._tasks[recording_id]

    async def _run(self, recording_id: int, transcript: str) -> RecordingStatus | None:
        """Isolate a workflow run: errors are logged, never propagated."""
        try:
            status = await self._workflow.run(recording_id, transcript)
        except MeetingRecorderError as exc:
            # Lifecycle refused the transition or the recording vanished
            logger.error("Insight workflow for recording %s aborted: %s", recording_id, exc)
            return None
        except Exception:
            logger.exception("Insight workflow for recording %s crashed", recording_id)
            return None
        logger.info("Insight workflow for recording %s ended: %s", recording_id, status)
        return status

    async def recover(self, lifecycle: RecordingLifecycle, limit: int = 200) -> int:
        """Re-submit recordings a previous process left in *processing*."""
        stranded = await lifecycle.list_recent(limit=limit, status=RecordingStatus.processing)
        for recording in stranded:
            self.submit(recording.id, recording.transcription or "")
        if stranded:
            logger.info("Recovered %s pending insight workflow(s)", len(stranded))
        return len(stranded)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for every scheduled workflow to finish."""
        tasks = list(self._tasks.values())
        if not tasks:
            return
        _, not_done = await asyncio.wait(tasks, timeout=timeout)
        if not_done:
            logger.warning("%s insight workflow(s) still running after drain", len(not_done))


def create_runner(settings=None) -> WorkflowRunner:
    """Build a runner wired to the configured insight provider."""
    settings = settings or get_settings()
    llm = create_llm(provider=settings.insight_provider)
    workflow = InsightWorkflow(
        generator=InsightGenerator(llm),
        lifecycle=RecordingLifecycle(),
        max_attempts=settings.insight_max_attempts,
        wait=wait_exponential(
            multiplier=1,
            min=settings.insight_retry_min_wait,
            max=settings.insight_retry_max_wait,
        ),
    )
    return WorkflowRunner(workflow)
