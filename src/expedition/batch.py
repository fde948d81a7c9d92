"""Scripted replay and queue-backed batch simulation across seeds."""

from __future__ import annotations

import asyncio
import logging
import re
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from itertools import islice
from typing import Any, Protocol
from uuid import uuid4

from expedition.config import Settings
from expedition.discovery import enrol_exploration_guild, explore_once, survey_once
from expedition.generation import create_world
from expedition.luck import build_luck_summary
from expedition.models import World
from expedition.pathfinding import far_travel, travel
from expedition.telemetry import NullTelemetry

_STEP_SPLIT_RE = re.compile(r"[,;\n]+")


class ScriptAction(str, Enum):
    ENROL = "enrol"
    SURVEY = "survey"
    EXPLORE = "explore"
    TRAVEL = "travel"
    FAR_TRAVEL = "fartravel"
    WAIT = "wait"


_NEEDS_ARGUMENT = {ScriptAction.TRAVEL, ScriptAction.FAR_TRAVEL, ScriptAction.WAIT}


@dataclass(slots=True)
class ScriptStep:
    action: ScriptAction
    argument: str | None = None

    def __str__(self) -> str:
        return self.action.value if self.argument is None else f"{self.action.value} {self.argument}"


@dataclass(slots=True)
class StepResult:
    step: ScriptStep
    outcome: Any
    tick_after: int


@dataclass(slots=True)
class ScriptResult:
    seed: str
    world: World
    steps: list[StepResult] = field(default_factory=list)

    @property
    def luck(self) -> str:
        return build_luck_summary(self.world.roll_history)


def parse_script(text: str) -> list[ScriptStep]:
    """Parse ``"enrol, survey, travel area-d1-i0"`` style scripts.

    ``travel:area-d1-i0`` is accepted as well as the space-separated form.
    """
    steps: list[ScriptStep] = []
    for raw in _STEP_SPLIT_RE.split(text):
        token = raw.strip()
        if not token:
            continue
        verb, _, argument = token.replace(":", " ", 1).partition(" ")
        try:
            action = ScriptAction(verb.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown script action: {verb!r}") from None
        argument = argument.strip() or None
        if action in _NEEDS_ARGUMENT and argument is None:
            raise ValueError(f"Script action {action.value!r} needs an argument")
        if action not in _NEEDS_ARGUMENT and argument is not None:
            raise ValueError(f"Script action {action.value!r} takes no argument")
        if action is ScriptAction.WAIT and not argument.isdigit():
            raise ValueError(f"wait needs a whole number of ticks, got {argument!r}")
        steps.append(ScriptStep(action=action, argument=argument))
    return steps


def apply_step(world: World, step: ScriptStep) -> Any:
    if step.action is ScriptAction.ENROL:
        return enrol_exploration_guild(world)
    if step.action is ScriptAction.SURVEY:
        return survey_once(world)
    if step.action is ScriptAction.EXPLORE:
        return explore_once(world)
    if step.action is ScriptAction.TRAVEL:
        return travel(world, step.argument)
    if step.action is ScriptAction.FAR_TRAVEL:
        return far_travel(world, step.argument)
    waited = min(int(step.argument), world.clock.remaining_ticks)
    world.clock.advance(waited)
    return waited


def run_script(seed: str, steps: list[ScriptStep], *, config: Settings | None = None) -> ScriptResult:
    """Build a fresh world from ``seed`` and apply every step in order."""
    world = create_world(seed, config=config, telemetry=NullTelemetry())
    result = ScriptResult(seed=seed, world=world)
    for step in steps:
        outcome = apply_step(world, step)
        result.steps.append(StepResult(step=step, outcome=outcome, tick_after=world.clock.current_tick))
    return result


class BatchJobStatus(str, Enum):
    """Lifecycle states for submitted batch jobs."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(slots=True)
class BatchJob:
    id: str
    seed: str
    submitted_at: datetime
    status: BatchJobStatus
    result: ScriptResult | None = None
    error: str | None = None


class BatchHistoryStore(Protocol):
    """Storage contract for finished batch jobs."""

    def append(self, job: BatchJob) -> None:
        """Record a finished job."""

    def list_recent(self, limit: int) -> list[BatchJob]:
        """Return up to ``limit`` newest jobs."""


class InMemoryHistoryStore:
    """Keeps the newest finished jobs; the oldest fall off once full."""

    def __init__(self, capacity: int = 1_000) -> None:
        self._finished: deque[BatchJob] = deque(maxlen=capacity)

    def append(self, job: BatchJob) -> None:
        self._finished.append(job)

    def list_recent(self, limit: int) -> list[BatchJob]:
        return list(islice(reversed(self._finished), max(limit, 0)))


class BatchRuntime:
    """Queue-backed async runner; each job replays the script on its own world."""

    def __init__(
        self,
        steps: list[ScriptStep],
        *,
        config: Settings | None = None,
        history_store: BatchHistoryStore | None = None,
        job_timeout_seconds: float = 30.0,
        max_queue_size: int = 1_000,
        logger: logging.Logger | None = None,
    ) -> None:
        self._steps = list(steps)
        self._config = config
        self._history_store = history_store or InMemoryHistoryStore(capacity=max_queue_size)
        self._job_timeout_seconds = job_timeout_seconds
        self._max_tracked_jobs = max_queue_size
        self._logger = logger or logging.getLogger("expedition.batch")

        self._jobs: dict[str, BatchJob] = {}
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_queue_size)
        self._worker_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the worker loop once for this runtime."""
        if self._worker_task and not self._worker_task.done():
            return

        self._worker_task = asyncio.create_task(self._worker_loop(), name="batch-runtime-worker")
        self._logger.info("batch_runtime_started", extra={"steps": len(self._steps)})

    async def stop(self) -> None:
        if not self._worker_task:
            return

        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        finally:
            self._worker_task = None

        self._logger.info("batch_runtime_stopped")

    async def join(self) -> None:
        await self._queue.join()

    def submit_seed(self, seed: str) -> str:
        job_id = uuid4().hex
        self._jobs[job_id] = BatchJob(
            id=job_id,
            seed=seed,
            submitted_at=datetime.now(timezone.utc),
            status=BatchJobStatus.QUEUED,
        )
        self._queue.put_nowait(job_id)
        self._logger.info("batch_job_submitted", extra={"job_id": job_id, "seed": seed})
        return job_id

    def get_job(self, job_id: str) -> BatchJob:
        if job_id not in self._jobs:
            raise KeyError(f"Unknown batch job id: {job_id}")
        return self._jobs[job_id]

    def list_recent_jobs(self, limit: int = 20) -> list[BatchJob]:
        return self._history_store.list_recent(limit)

    async def run_seeds(self, seeds: list[str]) -> list[BatchJob]:
        """Run every seed to completion and return the jobs in submission order."""
        await self.start()
        try:
            jobs = [self._jobs[self.submit_seed(seed)] for seed in seeds]
            await self.join()
        finally:
            await self.stop()
        return jobs

    async def _worker_loop(self) -> None:
        while True:
            job_id = await self._queue.get()
            try:
                await self._execute_job(job_id)
            finally:
                self._queue.task_done()

    async def _execute_job(self, job_id: str) -> None:
        job = self._jobs[job_id]
        job.status = BatchJobStatus.RUNNING
        try:
            job.result = await asyncio.wait_for(
                asyncio.to_thread(run_script, job.seed, self._steps, config=self._config),
                timeout=self._job_timeout_seconds,
            )
            job.status = BatchJobStatus.SUCCEEDED
            self._logger.info("batch_job_succeeded", extra={"job_id": job.id, "seed": job.seed})
        except asyncio.TimeoutError:
            job.status = BatchJobStatus.TIMED_OUT
            job.error = f"Script timed out after {self._job_timeout_seconds}s"
            self._logger.warning("batch_job_timeout", extra={"job_id": job.id, "seed": job.seed})
        except Exception as exc:  # noqa: BLE001 - a broken seed must not stop the batch.
            job.status = BatchJobStatus.FAILED
            job.error = f"{type(exc).__name__}: {exc}"
            self._logger.exception("batch_job_failed", extra={"job_id": job.id, "seed": job.seed})
        self._history_store.append(job)
        self._forget_finished_jobs()

    def _forget_finished_jobs(self) -> None:
        overflow = len(self._jobs) - self._max_tracked_jobs
        if overflow <= 0:
            return
        finished = [
            job_id
            for job_id, job in self._jobs.items()
            if job.status not in (BatchJobStatus.QUEUED, BatchJobStatus.RUNNING)
        ]
        for job_id in finished[:overflow]:
            del self._jobs[job_id]
