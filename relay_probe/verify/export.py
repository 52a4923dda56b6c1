"""CSV export of finished verification runs."""

import csv
import io
import re
from typing import Dict, List, TextIO

from .models import RunState, TargetConfig

CSV_HEADER = ["Key", "Status", "Latency (ms)", "Model", "Protocol", "BaseURL", "Error"]

def export_csv(run_state: RunState, config: TargetConfig, stream: TextIO) -> int:
  """Write one row per outcome to ``stream``.

  This is the only place credentials leave the process unmasked.

  Returns:
    Number of data rows written
  """
  writer = csv.writer(stream, lineterminator="\n")
  writer.writerow(CSV_HEADER)
  for outcome in run_state.results:
    writer.writerow([
      outcome.credential,
      outcome.status.value,
      outcome.latency_ms,
      outcome.model,
      config.protocol.value,
      config.display_base_url,
      outcome.error or "",
    ])
  return len(run_state.results)

def parse_csv(text: str) -> List[Dict[str, str]]:
  """Read an exported CSV back into row dictionaries keyed by header."""
  return list(csv.DictReader(io.StringIO(text)))

def export_filename(target_name: str) -> str:
  """File name for a target's export, whitespace runs replaced by ``_``."""
  stem = re.sub(r"\s+", "_", target_name)
  return f"{stem}_results.csv"
