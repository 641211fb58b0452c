"""Outcome classification for a single download attempt."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union

from formgrid.browser.driver import ConsoleEntry
from formgrid.core.grid import GridCell

# The portal reports a missing file only through a failed resource load in the console.
ABSENCE_MARKER = "404"

Signal = Union[ConsoleEntry, str]


class Status(str, Enum):
    SUCCESS = "success"
    EXPECTED_ABSENCE = "expected_absence"
    UNEXPECTED_ERROR = "unexpected_error"


def signal_text(signal: Signal) -> str:
    return signal.message if isinstance(signal, ConsoleEntry) else str(signal)


def classify(signals: Sequence[Signal], *, download_observed: Optional[bool] = None) -> Status:
    """Classify the console signals of one attempt.

    ``download_observed`` is only consulted when no signal surfaced: passing
    ``False`` marks a silent attempt without a download as an error instead of
    a success. ``None`` keeps the plain "no signal means success" reading.
    """
    if not signals:
        if download_observed is False:
            return Status.UNEXPECTED_ERROR
        return Status.SUCCESS
    if any(ABSENCE_MARKER in signal_text(signal) for signal in signals):
        return Status.EXPECTED_ABSENCE
    return Status.UNEXPECTED_ERROR


@dataclass(frozen=True)
class AttemptOutcome:
    cell: GridCell
    status: Status
    signals: tuple[str, ...] = ()
    attempts: int = 1
    downloads: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS

    def to_record(self) -> dict[str, object]:
        return {
            "region": self.cell.region,
            "year": self.cell.year,
            "month": self.cell.month,
            "status": self.status.value,
            "attempts": self.attempts,
            "signals": " | ".join(self.signals),
            "downloads": " | ".join(self.downloads),
        }
