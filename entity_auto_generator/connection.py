"""
Database connection scope.

Django is configured at runtime from the validated ``databases`` section;
its connection wrapper then provides the DB-API cursor the schema reader
needs, with psycopg2 as the driver.
"""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator

import django
from django.conf import settings
from django.db import connections

from .constants import DefaultConfig
from .exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


def setup_django(db_settings: Dict[str, Any]) -> None:
    """Configures minimal Django settings and runs django.setup()."""
    if settings.configured:
        logger.debug("Django setup already performed.")
        return

    plain_db_settings: Dict[str, Dict[str, Any]] = {}
    for alias, db_model in db_settings.items():
        if hasattr(db_model, "model_dump"):
            plain_db_settings[alias] = db_model.model_dump(exclude_none=True)
        elif isinstance(db_model, dict):
            plain_db_settings[alias] = db_model
        else:
            raise TypeError(f"Invalid database settings type for alias '{alias}': {type(db_model).__name__}")

    logger.debug(f"Configuring Django with database aliases: {', '.join(plain_db_settings)}")
    settings.configure(
        SECRET_KEY=os.urandom(50).hex(),
        DATABASES=plain_db_settings,
        TIME_ZONE="UTC",
        USE_TZ=True,
        DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
    )
    django.setup()
    logger.debug("Django setup complete.")


@contextmanager
def open_connection(alias: str = DefaultConfig.DB_ALIAS) -> Iterator[Any]:
    """
    Yield an open connection for ``alias``; it is closed on exit, whatever happens.

    Raises:
        DatabaseConnectionError: If the connection cannot be established
    """
    conn = connections[alias]
    try:
        try:
            conn.ensure_connection()
        except Exception as e:
            raise DatabaseConnectionError(
                f"Could not connect to database '{alias}': {e}",
                engine=conn.settings_dict.get("ENGINE"),
                context={"alias": alias, "host": conn.settings_dict.get("HOST") or "localhost"},
            ) from e
        logger.debug(f"Opened connection '{alias}'")
        yield conn
    finally:
        conn.close()
        logger.debug(f"Closed connection '{alias}'")
