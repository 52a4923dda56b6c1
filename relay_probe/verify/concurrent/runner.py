"""Bounded-concurrency verification runner."""

import asyncio
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from relay_probe.verify.factory import ProberFactory
from relay_probe.verify.logging import get_probe_logger
from relay_probe.verify.models import (
  Job,
  ProbeOutcome,
  RunState,
  TargetConfig,
  VerificationStatus,
  mask_key,
  parse_credentials,
  round_half_up,
)
from relay_probe.verify.probes.base import UNKNOWN_ERROR

logger = get_probe_logger(__name__)

CONCURRENCY_LIMIT = 3

UpdateCallback = Callable[[RunState, ProbeOutcome], Any]


class VerificationRun:
  """Handle on one started run.

  ``state`` is live: it is filled in as probes complete and can be read at
  any time. Awaiting the handle (or ``wait()``) returns the finished state.
  """

  def __init__(self, target_id: str, config: TargetConfig, jobs: List[Job], state: RunState):
    self.target_id = target_id
    self.config = config
    self.jobs = jobs
    self.state = state
    self.task: Optional["asyncio.Task[RunState]"] = None

    self.in_flight = 0
    self.max_in_flight = 0
    self.queued = len(jobs)

  async def wait(self) -> RunState:
    return await self.task

  def __await__(self):
    return self.task.__await__()

  @property
  def done(self) -> bool:
    return self.task is not None and self.task.done()

  def get_status(self) -> Dict[str, Any]:
    """Get counters describing the run's progress."""
    return {
      "target_id": self.target_id,
      "queued": self.queued,
      "in_flight": self.in_flight,
      "max_in_flight": self.max_in_flight,
      "completed": self.state.completed_count,
      "total": self.state.total_count,
      "progress": self.state.progress,
      "is_running": self.state.is_running,
    }

  def __repr__(self) -> str:
    return (
      f"VerificationRun(target_id='{self.target_id}', "
      f"completed={self.state.completed_count}/{self.state.total_count})"
    )


class VerificationRunner:
  """Runs probe jobs for one target configuration under a concurrency cap.

  Jobs are pulled from a FIFO queue by a fixed pool of worker tasks, so a
  slot freed by a finished probe is refilled immediately rather than in
  waves. Workers never touch the RunState: they hand outcomes to a
  completion queue drained by a single coordinator, which is the only
  writer of the state. Each run gets its own queues and workers, so runs
  for different targets share nothing mutable.
  """

  def __init__(
    self,
    prober_factory: ProberFactory,
    concurrency_limit: int = CONCURRENCY_LIMIT,
    on_update: Optional[UpdateCallback] = None
  ):
    """Initialize the runner.

    Args:
      prober_factory: Source of protocol probers
      concurrency_limit: Maximum number of probes in flight at once
      on_update: Optional callback invoked after every applied completion

    Raises:
      ValueError: If concurrency_limit is smaller than 1
    """
    if concurrency_limit < 1:
      raise ValueError("Concurrency limit must be at least 1")

    self.prober_factory = prober_factory
    self.concurrency_limit = concurrency_limit
    self.on_update = on_update

  async def run(
    self,
    target_config: TargetConfig,
    credential_text: str,
    target_id: str = "adhoc"
  ) -> Optional[RunState]:
    """Verify every credential in the text and return the finished state.

    Args:
      target_config: Configuration snapshot used for every job of the run
      credential_text: Raw multi-line credential text
      target_id: Identifier of the owning target, used in job ids

    Returns:
      Finished RunState, or None when the text holds no credentials
    """
    handle = self.start(target_config, credential_text, target_id)
    if handle is None:
      return None
    return await handle.wait()

  def start(
    self,
    target_config: TargetConfig,
    credential_text: str,
    target_id: str = "adhoc"
  ) -> Optional[VerificationRun]:
    """Start a run in the background and return its live handle.

    Must be called from inside a running event loop. Returns None without
    creating any state when the text holds no credentials.
    """
    credentials = parse_credentials(credential_text)
    if not credentials:
      logger.info("No credentials to verify, run not started", target_id=target_id)
      return None

    jobs = Job.build_all(credentials, target_config.model, target_id)
    run = VerificationRun(target_id, target_config, jobs, RunState.start(jobs))
    run.task = asyncio.create_task(self._execute(run))

    logger.info(
      "Verification run started",
      target_id=target_id,
      protocol=target_config.protocol.value,
      model=target_config.model,
      base_url=target_config.display_base_url,
      total=len(jobs),
      concurrency_limit=self.concurrency_limit,
    )
    return run

  async def _execute(self, run: VerificationRun) -> RunState:
    """Coordinate workers and apply completions until every job is terminal."""
    job_queue: asyncio.Queue = asyncio.Queue()
    for job in run.jobs:
      job_queue.put_nowait(job)

    completions: asyncio.Queue = asyncio.Queue()
    slots = {job.id: job.index for job in run.jobs}

    workers = [
      asyncio.create_task(self._worker(run, job_queue, completions))
      for _ in range(min(self.concurrency_limit, len(run.jobs)))
    ]

    try:
      for _ in range(len(run.jobs)):
        outcome = await completions.get()
        self._apply_outcome(run, slots, outcome)
    finally:
      for worker in workers:
        if not worker.done():
          worker.cancel()
      await asyncio.gather(*workers, return_exceptions=True)

    run.state.is_running = False
    run.state.last_run_timestamp = datetime.now()

    stats = run.state.stats()
    logger.info(
      "Verification run completed",
      target_id=run.target_id,
      total=stats.total,
      valid=stats.valid,
      invalid=stats.invalid,
      avg_latency_ms=stats.avg_latency_ms,
      max_in_flight=run.max_in_flight,
    )
    return run.state

  async def _worker(
    self,
    run: VerificationRun,
    job_queue: asyncio.Queue,
    completions: asyncio.Queue
  ) -> None:
    """Pull jobs until the queue is empty, one probe at a time."""
    while True:
      try:
        job = job_queue.get_nowait()
      except asyncio.QueueEmpty:
        return

      run.queued -= 1
      run.in_flight += 1
      run.max_in_flight = max(run.max_in_flight, run.in_flight)
      try:
        outcome = await self._probe(run.config, job)
      finally:
        run.in_flight -= 1
        job_queue.task_done()

      completions.put_nowait(outcome)

  async def _probe(self, config: TargetConfig, job: Job) -> ProbeOutcome:
    """Probe one job; a prober that raises still yields an INVALID outcome."""
    start_time = time.perf_counter()
    try:
      return await self.prober_factory.probe(
        job.credential,
        job.model,
        job.id,
        config.base_url,
        config.protocol,
      )
    except Exception as e:
      latency_ms = max(0, round_half_up((time.perf_counter() - start_time) * 1000))
      logger.error(
        "Prober raised instead of returning an outcome",
        job_id=job.id,
        credential=job.credential,
        error=str(e),
        error_type=type(e).__name__,
      )
      return ProbeOutcome(
        id=job.id,
        credential=job.credential,
        credential_masked=mask_key(job.credential),
        status=VerificationStatus.INVALID,
        latency_ms=latency_ms,
        model=job.model,
        error=str(e).strip() or UNKNOWN_ERROR,
        completed_at=datetime.now(),
      )

  def _apply_outcome(
    self,
    run: VerificationRun,
    slots: Dict[str, int],
    outcome: ProbeOutcome
  ) -> None:
    """Write a completion into its slot; only the coordinator calls this."""
    state = run.state
    index = slots.get(outcome.id)
    if index is None or state.results[index].id != outcome.id:
      index = state.index_of(outcome.id)

    entry = state.results[index]
    entry.status = outcome.status
    entry.latency_ms = outcome.latency_ms
    entry.model = outcome.model
    entry.error = outcome.error
    entry.completed_at = outcome.completed_at

    state.completed_count += 1
    state.is_running = state.completed_count < state.total_count

    logger.log_run_progress(
      completed=state.completed_count,
      total=state.total_count,
      progress=state.progress,
      in_flight=run.in_flight,
      target_id=run.target_id,
    )

    if self.on_update is not None:
      try:
        self.on_update(state, entry)
      except Exception as e:
        logger.error("Run update callback failed", target_id=run.target_id, error=str(e))

  def __repr__(self) -> str:
    return f"VerificationRunner(concurrency_limit={self.concurrency_limit})"
