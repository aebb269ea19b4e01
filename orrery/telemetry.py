from __future__ import annotations
from collections import deque
from dataclasses import fields
from typing import Deque, Dict, List, Optional

import pandas as pd

from .diagnostics import StatsSnapshot

"""
This module records the statistics snapshots an integrator publishes through its stats callback and exports them for offline inspection. The TelemetryRecorder class is itself a valid stats callback: record appends one snapshot as a flat row, optionally inside a bounded window, to_frame returns the history as a pandas DataFrame with one column per StatsSnapshot field, and save_csv writes that frame to disk. The recorder keeps telemetry only; it never stores or restores simulation state.


"""

COLUMNS = [f.name for f in fields(StatsSnapshot)]


class TelemetryRecorder:
	def __init__(self, max_rows: Optional[int] = None) -> None:
		self.max_rows = max_rows
		self.rows: Deque[Dict[str, object]] = deque(maxlen=max_rows)

	def __call__(self, snapshot: StatsSnapshot) -> None:
		self.record(snapshot)

	def __len__(self) -> int:
		return len(self.rows)

	def record(self, snapshot: StatsSnapshot) -> None:
		self.rows.append(snapshot.as_dict())

	def clear(self) -> None:
		self.rows.clear()

	def latest(self) -> Optional[Dict[str, object]]:
		if not self.rows:
			return None
		return self.rows[-1]

	def to_frame(self) -> pd.DataFrame:
		return pd.DataFrame(list(self.rows), columns=COLUMNS)

	def save_csv(self, filename: str) -> bool:
		if not self.rows:
			print("[error] No telemetry to save. Run the simulation first.")
			return False
		df = self.to_frame()
		df.to_csv(filename, index=False)
		print(f"Saved {len(df)} telemetry rows to {filename}")
		return True

	def column(self, name: str) -> List[object]:
		return [row[name] for row in self.rows]
