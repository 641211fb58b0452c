"""Restore the form after a failed attempt."""
from __future__ import annotations

import logging

from formgrid.config import SiteConfig
from formgrid.core.frames import enter_frame
from formgrid.core.grid import Dimension, GridCell
from formgrid.core.selection import select
from formgrid.core.session import SessionState
from formgrid.errors import FormGridError, RecoveryFailed

logger = logging.getLogger("formgrid.recovery")


def recover(session: SessionState, site: SiteConfig, cell: GridCell) -> SessionState:
    """Reload the form and reselect region and year for ``cell``.

    Month is left unselected; the runner sets it first thing on its next attempt.
    Failures here are not retried.
    """
    logger.info("Recovering form state for %s", cell.label())
    try:
        session = enter_frame(session, site)
        session = select(session, site, Dimension.REGION, cell.region)
        session = select(session, site, Dimension.YEAR, cell.year)
    except FormGridError as exc:
        raise RecoveryFailed(f"recovery for {cell.label()} failed: {exc}") from exc
    return session
