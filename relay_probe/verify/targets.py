"""Named verification targets and their latest run state."""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .concurrent.runner import VerificationRun, VerificationRunner
from .config.models import TargetsFile
from .exceptions import UnknownTargetError
from .logging import get_probe_logger
from .models import RunState, TargetConfig, VerificationStatus, parse_credentials

logger = get_probe_logger(__name__)


@dataclass
class Target:
  """One named test configuration together with its latest results."""

  id: str
  name: str
  config: TargetConfig
  api_keys_text: str = field(default="", repr=False)
  run_state: Optional[RunState] = None
  active_run: Optional[VerificationRun] = field(default=None, repr=False)

  @property
  def is_running(self) -> bool:
    return self.run_state is not None and self.run_state.is_running

  @property
  def status(self) -> VerificationStatus:
    """IDLE before the first run, PENDING while running, else the run's verdict."""
    if self.run_state is None:
      return VerificationStatus.IDLE
    if self.run_state.is_running:
      return VerificationStatus.PENDING
    if self.run_state.stats().valid > 0:
      return VerificationStatus.VALID
    return VerificationStatus.INVALID

  @property
  def credential_count(self) -> int:
    return len(parse_credentials(self.api_keys_text))


class TargetRegistry:
  """Holds the set of targets and starts runs for them.

  Each run takes a snapshot of the target's configuration and credential
  text when it starts; later edits only affect the next run. Starting a new
  run replaces the target's RunState instead of merging into it.
  """

  def __init__(self, runner: VerificationRunner):
    self.runner = runner
    self._targets: Dict[str, Target] = {}

  @classmethod
  def from_targets_file(cls, targets_file: TargetsFile, runner: VerificationRunner) -> "TargetRegistry":
    registry = cls(runner)
    for definition in targets_file.targets.values():
      registry.add_target(
        name=definition.name,
        config=definition.config,
        api_keys_text=definition.api_keys_text,
      )
    return registry

  def add_target(
    self,
    name: Optional[str] = None,
    config: Optional[TargetConfig] = None,
    api_keys_text: str = ""
  ) -> Target:
    """Create a target; unnamed targets are numbered in creation order."""
    target = Target(
      id=str(uuid.uuid4()),
      name=name or f"Test Target {len(self._targets) + 1}",
      config=config or TargetConfig(),
      api_keys_text=api_keys_text,
    )
    self._targets[target.id] = target
    logger.debug("Target added", target_id=target.id, name=target.name)
    return target

  def remove_target(self, target_id: str) -> bool:
    """Remove a target and discard its results.

    The last remaining target is never removed. A run still in flight for
    the removed target completes, but its state is no longer reachable.

    Returns:
      True if the target was removed, False if it was the last one
    """
    self.get(target_id)
    if len(self._targets) == 1:
      logger.warning("Refusing to remove the last target", target_id=target_id)
      return False

    del self._targets[target_id]
    logger.debug("Target removed", target_id=target_id)
    return True

  def get(self, target_id: str) -> Target:
    """Return a target by id.

    Raises:
      UnknownTargetError: If the id is not registered
    """
    if target_id not in self._targets:
      raise UnknownTargetError(target_id)
    return self._targets[target_id]

  def find_by_name(self, name: str) -> Optional[Target]:
    for target in self._targets.values():
      if target.name == name:
        return target
    return None

  def list(self) -> List[Target]:
    return list(self._targets.values())

  def rename_target(self, target_id: str, name: str) -> Target:
    target = self.get(target_id)
    target.name = name
    return target

  def update_config(self, target_id: str, **changes: Any) -> Target:
    """Replace the target's configuration with an edited snapshot.

    Runs already in flight keep the snapshot they started with.
    """
    target = self.get(target_id)
    target.config = target.config.with_changes(**changes)
    return target

  def set_api_keys(self, target_id: str, api_keys_text: str) -> Target:
    target = self.get(target_id)
    target.api_keys_text = api_keys_text
    return target

  def start_target(self, target_id: str) -> Optional[VerificationRun]:
    """Start a run for the target and return its live handle.

    Returns None, leaving the previous RunState untouched, when the target
    has no credentials.
    """
    target = self.get(target_id)
    run = self.runner.start(target.config, target.api_keys_text, target.id)
    if run is None:
      return None

    target.run_state = run.state
    target.active_run = run
    return run

  async def run_target(self, target_id: str) -> Optional[RunState]:
    """Run the target to completion and return its finished state."""
    run = self.start_target(target_id)
    if run is None:
      return None
    return await run.wait()

  async def run_all(self) -> Dict[str, Optional[RunState]]:
    """Run every target concurrently, each with its own worker pool."""
    runs = {target.id: self.start_target(target.id) for target in self.list()}
    pending = {target_id: run for target_id, run in runs.items() if run is not None}

    finished = await asyncio.gather(*(run.wait() for run in pending.values()))
    results: Dict[str, Optional[RunState]] = {target_id: None for target_id in runs}
    results.update(zip(pending.keys(), finished))
    return results

  def __len__(self) -> int:
    return len(self._targets)
