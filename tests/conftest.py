import re
from pathlib import Path

import pytest

from formgrid.browser.driver import ConsoleEntry
from formgrid.config import RetryConfig, SiteConfig
from formgrid.core.grid import GridCell
from formgrid.errors import ElementNotFound

NOT_FOUND = "Failed to load resource: the server responded with a status of 404 (Not Found)"
SCRIPT_ERROR = "Uncaught TypeError: Cannot read properties of undefined (reading 'href')"

OPTION_PATTERN = re.compile(r"^(?P<select>.+) option\[value='(?P<value>[^']*)'\]$")


class FakeElement:
    def __init__(self, kind: str) -> None:
        self.kind = kind


class FakeFormDriver:
    """In-memory stand-in for the iframe form.

    Navigation drops the frame scope and every dropdown value; the download
    control reads whatever the dropdowns hold at click time.
    """

    def __init__(
        self,
        site: SiteConfig,
        regions=("NSW", "QLD", "SA", "TAS", "VIC"),
        years=range(1998, 2025),
        responses=None,
        flaky=None,
        frame_loads=None,
        missing_options=(),
        ready=True,
    ) -> None:
        self.site = site
        self.options = {
            site.region_selector: [str(region) for region in regions],
            site.year_selector: [str(year) for year in years],
            site.month_selector: [site.month_format.format(month) for month in range(1, 13)],
        }
        self.responses = dict(responses or {})
        self.flaky = dict(flaky or {})
        self.frame_loads = frame_loads
        self.missing_options = set(missing_options)
        self.ready = ready
        self.in_frame = False
        self.values: dict[str, str] = {}
        self.console: list[ConsoleEntry] = []
        self.saved: list[str] = []
        self.navigations = 0
        self.clicked_cells: list[GridCell] = []
        self.debug_captures: list[Path] = []
        self.pauses: list[int] = []
        self.closed = False

    def _frame_available(self) -> bool:
        return self.frame_loads is None or self.navigations <= self.frame_loads

    def navigate(self, url):
        assert url == self.site.url
        self.navigations += 1
        self.in_frame = False
        self.values = {}

    def find_element(self, selector):
        if not self.in_frame:
            if selector == self.site.frame_selector and self._frame_available():
                return FakeElement("frame")
        elif selector == self.site.download_selector:
            return FakeElement("download")
        raise ElementNotFound(f"no element matches {selector!r}")

    def find_elements(self, selector):
        match = OPTION_PATTERN.match(selector)
        if not self.in_frame or match is None:
            return []
        value = match.group("value")
        if value in self.options.get(match.group("select"), []) and value not in self.missing_options:
            return [FakeElement("option")]
        return []

    def select_option(self, selector, value):
        assert self.in_frame
        if selector == self.site.region_selector:
            self.values = {}
        elif selector == self.site.year_selector:
            self.values.pop(self.site.month_selector, None)
        self.values[selector] = value

    def switch_to_frame(self, element):
        assert element.kind == "frame"
        self.in_frame = True

    def wait_until_ready(self, selector, timeout_ms):
        return self.ready and self.in_frame and selector == self.site.download_selector

    def pause(self, ms):
        self.pauses.append(ms)

    def click(self, element):
        assert element.kind == "download"
        region = self.values.get(self.site.region_selector)
        year = self.values.get(self.site.year_selector)
        month = self.values.get(self.site.month_selector)
        if region is None or year is None or month is None:
            self.console.append(ConsoleEntry("error", SCRIPT_ERROR))
            return
        cell = GridCell(region, int(year), int(month))
        self.clicked_cells.append(cell)
        if self.flaky.get(cell, 0) > 0:
            self.flaky[cell] -= 1
            self.console.append(ConsoleEntry("error", SCRIPT_ERROR))
            return
        messages = self.responses.get(cell, [])
        if messages:
            self.console.extend(ConsoleEntry("error", message) for message in messages)
        else:
            self.saved.append(f"PRICE_AND_DEMAND_{cell.year}{cell.month:02d}_{cell.region}1.csv")

    def read_console_log(self, wait_ms=0):
        entries = list(self.console)
        self.console.clear()
        return entries

    def drain_downloads(self):
        names = list(self.saved)
        self.saved.clear()
        return names

    def capture_debug(self, prefix):
        self.debug_captures.append(prefix)

    def close(self):
        self.closed = True


@pytest.fixture
def site():
    return SiteConfig(url="https://example.test/aggregated-data")


@pytest.fixture
def no_wait_retry():
    return RetryConfig(attempts=2, backoff_seconds=0, max_backoff_seconds=0)


@pytest.fixture
def make_driver(site):
    def factory(**kwargs):
        return FakeFormDriver(site, **kwargs)

    return factory
