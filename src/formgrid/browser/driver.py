"""Driver handle contract shared by the grid core and the browser backends.

The grid core only talks to a browser through this protocol. The Playwright
backend implements it for real runs and the test suite implements it with an
in-memory form.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol


@dataclass(frozen=True)
class ConsoleEntry:
    level: str
    message: str


class Driver(Protocol):
    def navigate(self, url: str) -> None:
        """Load ``url`` in the top-level page; resets the search scope to the page."""

    def find_element(self, selector: str) -> Any:
        """Return the first match in the current scope or raise ElementNotFound."""

    def find_elements(self, selector: str) -> list[Any]:
        ...

    def click(self, element: Any) -> None:
        ...

    def select_option(self, selector: str, value: str) -> None:
        ...

    def switch_to_frame(self, element: Any) -> None:
        ...

    def wait_until_ready(self, selector: str, timeout_ms: int) -> bool:
        """Poll until ``selector`` is visible and enabled; False on timeout."""

    def pause(self, ms: int) -> None:
        ...

    def read_console_log(self, wait_ms: int = 0) -> list[ConsoleEntry]:
        """Drain buffered console entries, waiting up to ``wait_ms`` for the first one."""

    def drain_downloads(self) -> list[str]:
        ...

    def capture_debug(self, prefix: Path) -> None:
        ...

    def close(self) -> None:
        ...
