"""Append-only run log, one row per grid cell."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterator, Optional

from formgrid.core.classify import AttemptOutcome
from formgrid.core.grid import GridCell

FIELDNAMES = ["region", "year", "month", "status", "attempts", "signals", "downloads"]


class RunLog:
    """Ordered outcomes of a run.

    When ``path`` is given every outcome is written to CSV as soon as it is
    appended, so an aborted run still leaves its partial log on disk.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path
        self._outcomes: list[AttemptOutcome] = []
        self._seen: set[GridCell] = set()
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", newline="", encoding="utf-8") as handle:
                csv.DictWriter(handle, fieldnames=FIELDNAMES).writeheader()

    def append(self, outcome: AttemptOutcome) -> None:
        if outcome.cell in self._seen:
            raise ValueError(f"outcome for {outcome.cell.label()} already logged")
        self._seen.add(outcome.cell)
        self._outcomes.append(outcome)
        if self.path is not None:
            with self.path.open("a", newline="", encoding="utf-8") as handle:
                csv.DictWriter(handle, fieldnames=FIELDNAMES).writerow(outcome.to_record())

    @property
    def outcomes(self) -> tuple[AttemptOutcome, ...]:
        return tuple(self._outcomes)

    def __len__(self) -> int:
        return len(self._outcomes)

    def __iter__(self) -> Iterator[AttemptOutcome]:
        return iter(tuple(self._outcomes))

    def __contains__(self, cell: object) -> bool:
        return cell in self._seen
