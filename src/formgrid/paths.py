"""Path management for downloads and run outputs."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from formgrid.config import AppConfig


@dataclass(frozen=True)
class Paths:
    root: Path
    downloads: Path
    output: Path

    @classmethod
    def from_config(cls, config: AppConfig, root: Path | None = None) -> "Paths":
        root = root or Path.cwd()
        return cls(
            root=root,
            downloads=root / config.paths.downloads,
            output=root / config.paths.output,
        )

    def ensure(self) -> None:
        for path in [self.downloads, self.output]:
            path.mkdir(parents=True, exist_ok=True)

    def runs_dir(self) -> Path:
        path = self.output / "runs"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def debug_dir(self) -> Path:
        path = self.output / "_debug"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def run_log_path(self, started: datetime) -> Path:
        return self.runs_dir() / f"run_{started.strftime('%Y%m%dT%H%M%S')}.csv"

    def log_file_path(self, started: datetime) -> Path:
        return self.runs_dir() / f"run_{started.strftime('%Y%m%dT%H%M%S')}.log"
