"""Logging setup shared by the CLI and the migration environment."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once.

    A thin wrapper over ``logging.basicConfig``. Pass ``force=True`` to replace handlers
    installed earlier (for instance by Alembic's environment script).
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, force=force)
