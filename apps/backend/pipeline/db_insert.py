"""
Database reconciliation for scraped listings.

Upserts ListingCard objects into scraped_jobs keyed by source_url.
"""

import logging
from enum import Enum
from typing import Callable, Optional, Any

import psycopg2
from psycopg2.extras import RealDictCursor

from app.db_config import get_db_connection
from crawler.plugins.base import ListingCard
from metrics import incr_inserted, incr_updated, incr_failed

logger = logging.getLogger(__name__)

JOBS_TABLE = 'scraped_jobs'

# Columns written on both insert and update
MUTABLE_COLUMNS = [
    'title',
    'company',
    'location',
    'job_type',
    'posted_date',
    'deadline',
    'description',
    'requirements',
    'responsibilities',
    'category',
    'experience_level',
    'salary',
]


class ReconcileOutcome(str, Enum):
    INSERTED = 'inserted'
    UPDATED = 'updated'
    FAILED = 'failed'


def _build_update_sql() -> str:
    assignments = ', '.join(f"{col} = %s" for col in MUTABLE_COLUMNS)
    return f"""
        UPDATE {JOBS_TABLE}
        SET {assignments}, last_fetched = NOW(), updated_at = NOW()
        WHERE source_url = %s
    """


def _build_insert_sql() -> str:
    columns = ['source_url', 'source'] + MUTABLE_COLUMNS
    placeholders = ', '.join(['%s'] * len(columns))
    # A concurrent run may insert the same URL between our SELECT and INSERT
    conflict_updates = ', '.join(f"{col} = EXCLUDED.{col}" for col in MUTABLE_COLUMNS)
    return f"""
        INSERT INTO {JOBS_TABLE} ({', '.join(columns)}, is_active, last_fetched)
        VALUES ({placeholders}, TRUE, NOW())
        ON CONFLICT (source_url) DO UPDATE
        SET {conflict_updates}, last_fetched = NOW(), updated_at = NOW()
    """


UPDATE_SQL = _build_update_sql()
INSERT_SQL = _build_insert_sql()


class ListingReconciler:
    """Inserts unseen listings and overwrites known ones."""

    def __init__(self, db_url: Optional[str] = None, source: str = 'JobinRwanda',
                 conn_factory: Optional[Callable[[], Any]] = None):
        """
        Args:
            db_url: PostgreSQL connection string (default: DATABASE_URL)
            source: Value stored in the source column of new rows
            conn_factory: Zero-arg callable returning a DB-API connection
        """
        self.db_url = db_url
        self.source = source
        self._conn_factory = conn_factory

    def _get_db_conn(self):
        if self._conn_factory is not None:
            return self._conn_factory()
        return get_db_connection(self.db_url)

    def reconcile(self, card: ListingCard) -> ReconcileOutcome:
        """
        Upsert a single listing.

        Never raises for storage problems; those are logged and reported as
        ReconcileOutcome.FAILED so the rest of the batch keeps going.
        """
        row = card.to_row()
        values = [row[col] for col in MUTABLE_COLUMNS]

        conn = None
        try:
            conn = self._get_db_conn()
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"SELECT id FROM {JOBS_TABLE} WHERE source_url = %s",
                    (card.source_url,)
                )
                existing = cur.fetchone()

                if existing:
                    cur.execute(UPDATE_SQL, values + [card.source_url])
                    outcome = ReconcileOutcome.UPDATED
                else:
                    cur.execute(INSERT_SQL, [card.source_url, self.source] + values)
                    outcome = ReconcileOutcome.INSERTED

            conn.commit()
            logger.debug(f"[db_insert] {outcome.value} {card.source_url}")
        except psycopg2.Error as e:
            logger.error(f"[db_insert] Error saving job {card.source_url}: {e}")
            if conn:
                conn.rollback()
            outcome = ReconcileOutcome.FAILED
        except Exception as e:
            logger.error(f"[db_insert] Unexpected error saving job {card.source_url}: {e}", exc_info=True)
            if conn:
                conn.rollback()
            outcome = ReconcileOutcome.FAILED
        finally:
            if conn:
                conn.close()

        if outcome is ReconcileOutcome.INSERTED:
            incr_inserted()
        elif outcome is ReconcileOutcome.UPDATED:
            incr_updated()
        else:
            incr_failed()
        return outcome
