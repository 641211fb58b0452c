"""Selection grid: cells, dimensions and the nested iteration cursor."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from itertools import product
from typing import Iterable, NamedTuple, Sequence


class Dimension(str, Enum):
    REGION = "region"
    YEAR = "year"
    MONTH = "month"


class GridCell(NamedTuple):
    region: str
    year: int
    month: int

    def label(self) -> str:
        return f"{self.region} {self.year}-{self.month:02d}"


@dataclass(frozen=True)
class GridAxes:
    """The three axes of the grid, in iteration order (region outer, month inner)."""

    regions: tuple[str, ...]
    years: tuple[int, ...]
    months: tuple[int, ...]

    def __post_init__(self) -> None:
        if not self.regions:
            raise ValueError("grid needs at least one region")
        if len(set(self.regions)) != len(self.regions):
            raise ValueError(f"regions contain duplicates: {list(self.regions)}")
        if not self.years:
            raise ValueError("grid needs at least one year")
        if list(self.years) != list(range(self.years[0], self.years[0] + len(self.years))):
            raise ValueError(f"years must be a contiguous ascending range, got {list(self.years)}")
        if not self.months or any(month < 1 or month > 12 for month in self.months):
            raise ValueError(f"months must be within 1..12, got {list(self.months)}")
        if len(set(self.months)) != len(self.months):
            raise ValueError(f"months contain duplicates: {list(self.months)}")

    @property
    def shape(self) -> tuple[int, int, int]:
        return (len(self.regions), len(self.years), len(self.months))

    def __len__(self) -> int:
        r, y, m = self.shape
        return r * y * m

    def cells(self) -> list[GridCell]:
        return [GridCell(r, y, m) for r, y, m in product(self.regions, self.years, self.months)]


def build_grid(regions: Iterable[str], years: Iterable[int], months: Iterable[int] = range(1, 13)) -> GridAxes:
    return GridAxes(tuple(regions), tuple(years), tuple(months))


class IterationCursor(NamedTuple):
    region_index: int = 0
    year_index: int = 0
    month_index: int = 0

    def cell(self, axes: GridAxes) -> GridCell:
        return GridCell(
            axes.regions[self.region_index],
            axes.years[self.year_index],
            axes.months[self.month_index],
        )

    def advance(self, shape: Sequence[int]) -> "IterationCursor | None":
        """Next position with month fastest, then year, then region; None past the end."""
        n_regions, n_years, n_months = shape
        region, year, month = self
        month += 1
        if month == n_months:
            month = 0
            year += 1
            if year == n_years:
                year = 0
                region += 1
                if region == n_regions:
                    return None
        return IterationCursor(region, year, month)
