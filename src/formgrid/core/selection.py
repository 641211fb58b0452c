"""Dropdown selection and the download trigger."""
from __future__ import annotations

import logging
from typing import Union

from formgrid.browser.driver import ConsoleEntry
from formgrid.config import SiteConfig
from formgrid.core.grid import Dimension
from formgrid.core.session import SessionState
from formgrid.errors import ElementNotFound, OptionNotFound

logger = logging.getLogger("formgrid.selection")


def dropdown_selector(site: SiteConfig, dimension: Dimension) -> str:
    return {
        Dimension.REGION: site.region_selector,
        Dimension.YEAR: site.year_selector,
        Dimension.MONTH: site.month_selector,
    }[dimension]


def option_value(site: SiteConfig, dimension: Dimension, value: Union[str, int]) -> str:
    if dimension is Dimension.MONTH:
        return site.month_format.format(int(value))
    return str(value)


def select(
    session: SessionState, site: SiteConfig, dimension: Dimension, value: Union[str, int]
) -> SessionState:
    session.require_frame(f"select {dimension.value}")
    selector = dropdown_selector(site, dimension)
    rendered = option_value(site, dimension, value)
    options = session.driver.find_elements(f"{selector} option[value='{rendered}']")
    if not options:
        raise OptionNotFound(f"{dimension.value} dropdown has no option {rendered!r}")
    session.driver.select_option(selector, rendered)
    logger.debug("Selected %s=%s", dimension.value, rendered)
    return session.selected(dimension, value)


def wait_until_ready(session: SessionState, site: SiteConfig) -> None:
    """Block until the download control accepts clicks."""
    session.require_frame("wait for the download control")
    session.driver.pause(site.settle_ms)
    if not session.driver.wait_until_ready(site.download_selector, site.ready_timeout_ms):
        raise ElementNotFound(
            f"download control {site.download_selector!r} not ready after {site.ready_timeout_ms} ms"
        )


def trigger_download(
    session: SessionState, site: SiteConfig
) -> tuple[SessionState, list[ConsoleEntry], list[str]]:
    """Click the download control and return the raw console signals it produced."""
    session.require_frame("trigger the download")
    driver = session.driver
    element = driver.find_element(site.download_selector)
    # Only signals raised after the click belong to this attempt.
    stale = driver.read_console_log()
    late = driver.drain_downloads()
    if stale or late:
        logger.debug(
            "Discarded %d earlier console entries and %d late downloads before clicking",
            len(stale),
            len(late),
        )
    driver.click(element)
    signals = driver.read_console_log(wait_ms=site.signal_window_ms)
    downloads = driver.drain_downloads()
    return session, signals, downloads
