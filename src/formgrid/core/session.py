"""Session state threaded through every form operation."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union

from formgrid.browser.driver import Driver
from formgrid.core.grid import Dimension
from formgrid.errors import StaleFrameError


class FrameScope(str, Enum):
    VALID = "valid"
    STALE = "stale"


@dataclass(frozen=True)
class Selections:
    region: Optional[str] = None
    year: Optional[int] = None
    month: Optional[int] = None

    def with_value(self, dimension: Dimension, value: Union[str, int]) -> "Selections":
        # Dropdowns are dependent: picking an outer value clears the inner ones.
        if dimension is Dimension.REGION:
            return Selections(region=str(value))
        if dimension is Dimension.YEAR:
            return Selections(region=self.region, year=int(value))
        return Selections(region=self.region, year=self.year, month=int(value))


@dataclass(frozen=True)
class SessionState:
    """Exclusively owned by one run; every component returns an updated copy."""

    driver: Driver
    scope: FrameScope = FrameScope.STALE
    selections: Selections = field(default_factory=Selections)

    def navigated(self) -> "SessionState":
        """State after a full navigation: scope stale and every selection gone."""
        return replace(self, scope=FrameScope.STALE, selections=Selections())

    def in_frame(self) -> "SessionState":
        return replace(self, scope=FrameScope.VALID)

    def selected(self, dimension: Dimension, value: Union[str, int]) -> "SessionState":
        return replace(self, selections=self.selections.with_value(dimension, value))

    def require_frame(self, action: str) -> None:
        if self.scope is not FrameScope.VALID:
            raise StaleFrameError(f"cannot {action}: frame scope is stale")
