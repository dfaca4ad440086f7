"""
Database configuration module.
Reads DATABASE_URL and hands out short-lived psycopg2 connections.
"""

import os
import logging
from typing import Optional
from urllib.parse import urlparse, unquote

import psycopg2
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5


class DBConfig:
    """Database configuration from DATABASE_URL"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url if database_url is not None else os.getenv("DATABASE_URL")

        # Log the configured database URL (mask password for security)
        if self.database_url:
            try:
                parsed = urlparse(self.database_url)
                logger.info(
                    f"[db_config] DATABASE_URL configured: {parsed.scheme}://{parsed.username}:***@"
                    f"{parsed.hostname}:{parsed.port or 5432}{parsed.path}"
                )
            except ValueError as e:
                logger.info(f"[db_config] DATABASE_URL configured (unable to parse for logging: {e})")
        else:
            logger.warning("[db_config] DATABASE_URL not set - database connections will fail")

    @property
    def is_db_enabled(self) -> bool:
        return bool(self.database_url)

    def get_connection_params(self) -> Optional[dict]:
        """
        Get database connection parameters.
        Returns dict with host, port, database, user, password.
        """
        if not self.database_url:
            return None

        try:
            parsed = urlparse(self.database_url)
        except ValueError as e:
            logger.error(f"Failed to parse DATABASE_URL: {e}")
            return None

        if not parsed.hostname:
            return None

        params = {
            "host": parsed.hostname,
            "port": parsed.port or 5432,
            "database": parsed.path.lstrip('/') or 'postgres',
            "user": parsed.username or 'postgres',
        }

        # URL-decode the password to handle special characters
        if parsed.password:
            params["password"] = unquote(parsed.password)

        logger.debug(
            f"[db_config] Database connection params: host={params['host']}, port={params['port']}, "
            f"database={params['database']}, user={params['user']}"
        )
        return params


# Global instance
db_config = DBConfig()


@retry(
    retry=retry_if_exception_type(psycopg2.OperationalError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, max=4),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
def get_db_connection(database_url: Optional[str] = None):
    """
    Open a new psycopg2 connection.

    Connection failures (server restarting, pool exhausted) are retried a
    few times before the OperationalError is re-raised.

    Raises:
        RuntimeError: if no database is configured
    """
    url = database_url or db_config.database_url
    if not url:
        raise RuntimeError("DATABASE_URL is not configured")
    return psycopg2.connect(url, connect_timeout=CONNECT_TIMEOUT)
