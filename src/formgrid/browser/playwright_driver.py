"""Playwright implementation of the driver handle."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from playwright.sync_api import Browser, BrowserContext, ConsoleMessage, Download, Frame, Page, Playwright
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from formgrid.browser.driver import ConsoleEntry
from formgrid.config import BrowserConfig
from formgrid.errors import DriverError, ElementNotFound

logger = logging.getLogger("formgrid.browser")

POLL_MS = 250


@contextmanager
def _backend_call(action: str) -> Iterator[None]:
    try:
        yield
    except PlaywrightError as exc:
        raise DriverError(f"{action} failed: {exc}") from exc


class PlaywrightDriver:
    """Driver handle over a single Playwright page.

    Console messages from every frame, uncaught page errors and download events
    are buffered by page listeners; ``read_console_log`` and ``drain_downloads``
    hand them to the caller and clear the buffers.
    """

    def __init__(self, page: Page, downloads_dir: Path, timeout_ms: int = 30000) -> None:
        self._page = page
        self._scope: Page | Frame = page
        self._downloads_dir = downloads_dir
        self._console: list[ConsoleEntry] = []
        self._pending: list[Download] = []
        self._saved: list[str] = []
        page.set_default_timeout(timeout_ms)
        page.on("console", self._on_console)
        page.on("pageerror", self._on_pageerror)
        page.on("download", self._on_download)

    def _on_console(self, message: ConsoleMessage) -> None:
        self._console.append(ConsoleEntry(level=message.type, message=message.text))

    def _on_pageerror(self, error: PlaywrightError) -> None:
        self._console.append(ConsoleEntry(level="pageerror", message=str(error)))

    def _on_download(self, download: Download) -> None:
        self._pending.append(download)

    def navigate(self, url: str) -> None:
        with _backend_call(f"navigate to {url}"):
            self._page.goto(url, wait_until="domcontentloaded")
        self._scope = self._page

    def find_element(self, selector: str) -> Any:
        with _backend_call(f"lookup of {selector!r}"):
            handle = self._scope.query_selector(selector)
        if handle is None:
            raise ElementNotFound(f"no element matches {selector!r}")
        return handle

    def find_elements(self, selector: str) -> list[Any]:
        with _backend_call(f"lookup of {selector!r}"):
            return self._scope.query_selector_all(selector)

    def click(self, element: Any) -> None:
        with _backend_call("click"):
            element.click()

    def select_option(self, selector: str, value: str) -> None:
        with _backend_call(f"select {value!r} in {selector!r}"):
            self._scope.select_option(selector, value=value)

    def switch_to_frame(self, element: Any) -> None:
        with _backend_call("frame switch"):
            frame = element.content_frame()
            if frame is None:
                raise ElementNotFound("element does not host a frame")
            frame.wait_for_load_state("domcontentloaded")
        self._scope = frame

    def wait_until_ready(self, selector: str, timeout_ms: int) -> bool:
        deadline = time.monotonic() + timeout_ms / 1000
        locator = self._scope.locator(selector).first
        with _backend_call(f"readiness wait on {selector!r}"):
            try:
                locator.wait_for(state="visible", timeout=timeout_ms)
            except PlaywrightTimeoutError:
                return False
            while time.monotonic() < deadline:
                if locator.is_enabled():
                    return True
                self._page.wait_for_timeout(POLL_MS)
        return False

    def pause(self, ms: int) -> None:
        if ms > 0:
            self._page.wait_for_timeout(ms)

    def read_console_log(self, wait_ms: int = 0) -> list[ConsoleEntry]:
        deadline = time.monotonic() + wait_ms / 1000
        with _backend_call("console wait"):
            while not self._console and not self._pending and time.monotonic() < deadline:
                self._page.wait_for_timeout(POLL_MS)
        self._flush_downloads()
        entries = list(self._console)
        self._console.clear()
        return entries

    def _flush_downloads(self) -> None:
        while self._pending:
            download = self._pending.pop(0)
            target = self._downloads_dir / download.suggested_filename
            target.parent.mkdir(parents=True, exist_ok=True)
            with _backend_call(f"saving {download.suggested_filename}"):
                download.save_as(target)
            logger.debug("Saved %s", target)
            self._saved.append(target.name)

    def drain_downloads(self) -> list[str]:
        self._flush_downloads()
        names = list(self._saved)
        self._saved.clear()
        return names

    def capture_debug(self, prefix: Path) -> None:
        prefix.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._page.screenshot(path=str(prefix.with_suffix(".png")), full_page=True)
        except PlaywrightError as exc:
            logger.debug("Screenshot failed: %s", exc)
        try:
            prefix.with_suffix(".html").write_text(self._scope.content(), encoding="utf-8")
        except PlaywrightError as exc:
            logger.debug("HTML dump failed: %s", exc)

    def close(self) -> None:
        try:
            self._page.close()
        except PlaywrightError as exc:
            logger.debug("Page close failed: %s", exc)


def _open_browser(p: Playwright, config: BrowserConfig) -> Browser:
    if config.mode == "connect":
        return p.chromium.connect(config.endpoint)
    if config.mode == "cdp":
        return p.chromium.connect_over_cdp(config.endpoint)
    try:
        return p.chromium.launch(headless=config.headless)
    except PlaywrightError as exc:
        message = str(exc)
        if "Executable doesn't exist" in message:
            raise RuntimeError(
                "Playwright Chromium executable is missing. Run `playwright install chromium` "
                "or point browser.mode/browser.endpoint at a running browser, then re-run."
            ) from exc
        raise


@contextmanager
def open_driver(config: BrowserConfig, downloads_dir: Path) -> Iterator[PlaywrightDriver]:
    """Open a browser per ``config`` and yield a driver owned by the caller's run."""
    downloads_dir.mkdir(parents=True, exist_ok=True)
    with sync_playwright() as p:
        browser = _open_browser(p, config)
        owns_context = True
        context: BrowserContext
        if config.mode == "cdp" and browser.contexts:
            context = browser.contexts[0]
            owns_context = False
        else:
            context = browser.new_context(accept_downloads=True)
        page = context.new_page()
        driver = PlaywrightDriver(page, downloads_dir, timeout_ms=config.timeout_ms)
        try:
            yield driver
        finally:
            driver.close()
            if owns_context:
                try:
                    context.close()
                except PlaywrightError as exc:
                    logger.debug("Context close failed: %s", exc)
            browser.close()
