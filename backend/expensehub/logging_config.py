from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from expensehub.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging once per process."""
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logging.getLogger("expensehub").setLevel(settings.log_level)
    # SQL echo is governed by the engine's `echo` flag, keep the logger quiet otherwise.
    if not settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
