"""Keep the driver's search scope inside the form's embedded frame."""
from __future__ import annotations

import logging

from formgrid.config import SiteConfig
from formgrid.core.session import SessionState
from formgrid.errors import DriverError, FrameNotFound

logger = logging.getLogger("formgrid.frames")


def enter_frame(session: SessionState, site: SiteConfig) -> SessionState:
    """Navigate to the form page and switch into its frame.

    Always performs the full navigation, even when the scope looks valid: after a
    UI error only a fresh page is trustworthy.
    """
    driver = session.driver
    try:
        driver.navigate(site.url)
    except DriverError as exc:
        raise FrameNotFound(f"navigation to {site.url} failed: {exc}") from exc
    session = session.navigated()
    try:
        frame = driver.find_element(site.frame_selector)
        driver.switch_to_frame(frame)
    except DriverError as exc:
        raise FrameNotFound(f"form frame {site.frame_selector!r} not found on {site.url}") from exc
    logger.debug("Entered frame %s", site.frame_selector)
    return session.in_frame()
