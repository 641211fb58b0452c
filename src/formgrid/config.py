"""Configuration loader for formgrid."""
from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib


class SiteConfig(BaseModel):
    url: str
    frame_selector: str = "iframe"
    region_selector: str = "select#region"
    year_selector: str = "select#year"
    month_selector: str = "select#month"
    download_selector: str = "text=Download"
    month_format: str = "{:02d}"
    ready_timeout_ms: int = 15000
    signal_window_ms: int = 3000
    settle_ms: int = 0
    require_download_event: bool = False


class GridConfig(BaseModel):
    regions: List[str] = Field(default_factory=lambda: ["NSW", "QLD", "SA", "TAS", "VIC"])
    year_start: int
    year_end: int
    months: List[int] = Field(default_factory=lambda: list(range(1, 13)))

    @field_validator("regions")
    @classmethod
    def _regions_not_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("grid.regions must list at least one region")
        if len(set(value)) != len(value):
            raise ValueError("grid.regions contains duplicates")
        return value

    @field_validator("months")
    @classmethod
    def _months_in_range(cls, value: List[int]) -> List[int]:
        if not value or any(month < 1 or month > 12 for month in value):
            raise ValueError("grid.months must be within 1..12")
        return sorted(set(value))

    @model_validator(mode="after")
    def _years_contiguous(self) -> "GridConfig":
        if self.year_end < self.year_start:
            raise ValueError("grid.year_end must not precede grid.year_start")
        return self

    @property
    def years(self) -> List[int]:
        return list(range(self.year_start, self.year_end + 1))


class BrowserConfig(BaseModel):
    mode: Literal["launch", "connect", "cdp"] = "launch"
    endpoint: Optional[str] = None
    headless: bool = True
    timeout_ms: int = 30000

    @model_validator(mode="after")
    def _endpoint_for_remote(self) -> "BrowserConfig":
        if self.mode != "launch" and not self.endpoint:
            raise ValueError(f"browser.endpoint is required when browser.mode is '{self.mode}'")
        return self


class RetryConfig(BaseModel):
    attempts: int = Field(default=2, ge=1)
    backoff_seconds: float = Field(default=2.0, ge=0)
    max_backoff_seconds: float = Field(default=30.0, ge=0)


class PathsConfig(BaseModel):
    downloads: str
    output: str


class AppConfig(BaseModel):
    site: SiteConfig
    grid: GridConfig
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    paths: PathsConfig

    model_config = {
        "extra": "allow",
    }


def load_config(path: str | Path) -> AppConfig:
    """Load TOML config into AppConfig."""
    path = Path(path)
    with path.open("rb") as handle:
        payload = tomllib.load(handle)
    return AppConfig.model_validate(payload)
