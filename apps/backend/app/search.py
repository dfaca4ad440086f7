import uuid
import math
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from psycopg2.extras import RealDictCursor

from app.db_config import get_db_connection

logger = logging.getLogger(__name__)

JOBS_TABLE = "scraped_jobs"

# Must match the expression of the GIN index in migrations/001_scraped_jobs.sql
FTS_DOCUMENT = (
    "to_tsvector('english', title || ' ' || company || ' ' || description || ' ' || location)"
)

# column -> API field
FIELD_NAMES = {
    "id": "id",
    "source_url": "sourceUrl",
    "title": "title",
    "company": "company",
    "location": "location",
    "job_type": "jobType",
    "posted_date": "postedDate",
    "deadline": "deadline",
    "description": "description",
    "requirements": "requirements",
    "responsibilities": "responsibilities",
    "category": "category",
    "experience_level": "experienceLevel",
    "salary": "salary",
    "source": "source",
    "is_active": "isActive",
    "last_fetched": "lastFetched",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

SELECT_COLUMNS = ", ".join(FIELD_NAMES.keys())

# API sort field -> column
SORT_FIELDS = {
    "postedDate": "posted_date",
    "deadline": "deadline",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "lastFetched": "last_fetched",
    "title": "title",
    "company": "company",
    "location": "location",
}
DEFAULT_SORT_FIELD = "postedDate"
DEFAULT_SORT_ORDER = "desc"

# Facet name -> column
FACET_COLUMNS = {
    "categories": "category",
    "jobTypes": "job_type",
    "experienceLevels": "experience_level",
    "locations": "location",
}


def split_values(values: Optional[Iterable[str]]) -> List[str]:
    """
    Flatten repeated and comma-joined query values.

    ["Kigali,Musanze", " Huye "] -> ["Kigali", "Musanze", "Huye"]
    """
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    result = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if part and part not in result:
                result.append(part)
    return result


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass
class JobFilters:
    search: Optional[str] = None
    location: List[str] = field(default_factory=list)
    job_type: List[str] = field(default_factory=list)
    experience_level: List[str] = field(default_factory=list)
    category: List[str] = field(default_factory=list)

    @classmethod
    def from_params(
        cls,
        search: Optional[str] = None,
        location: Optional[Iterable[str]] = None,
        job_type: Optional[Iterable[str]] = None,
        experience_level: Optional[Iterable[str]] = None,
        category: Optional[Iterable[str]] = None,
    ) -> "JobFilters":
        return cls(
            search=(search or "").strip() or None,
            location=split_values(location),
            job_type=split_values(job_type),
            experience_level=split_values(experience_level),
            category=split_values(category),
        )


def build_where(filters: JobFilters) -> Tuple[str, List[Any]]:
    """
    Compose the WHERE clause for a listing query.

    All filters are ANDed; values within one filter are ORed. Inactive
    listings are always excluded.
    """
    where_conditions = ["is_active = TRUE"]
    params: List[Any] = []

    if filters.search:
        where_conditions.append(f"{FTS_DOCUMENT} @@ plainto_tsquery('english', %s)")
        params.append(filters.search)

    if filters.location:
        where_conditions.append(
            "(" + " OR ".join(["location ILIKE %s"] * len(filters.location)) + ")"
        )
        params.extend(_like_pattern(value) for value in filters.location)

    for column, values in (
        ("job_type", filters.job_type),
        ("experience_level", filters.experience_level),
        ("category", filters.category),
    ):
        if values:
            where_conditions.append(f"{column} = ANY(%s)")
            params.append(list(values))

    return " AND ".join(where_conditions), params


def build_order_by(sort_by: Optional[str], sort_order: Optional[str]) -> str:
    """Whitelisted ORDER BY; unknown fields fall back to postedDate."""
    column = SORT_FIELDS.get(sort_by or "", SORT_FIELDS[DEFAULT_SORT_FIELD])
    direction = "ASC" if (sort_order or "").lower() == "asc" else "DESC"
    # Stable paging when many rows share a sort value
    return f"{column} {direction}, id {direction}"


def serialize_job(row: Dict[str, Any]) -> Dict[str, Any]:
    job = {}
    for column, name in FIELD_NAMES.items():
        if column not in row:
            continue
        value = row[column]
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, uuid.UUID):
            value = str(value)
        elif column in ("requirements", "responsibilities") and value is None:
            value = []
        job[name] = value
    return job


class JobQueryService:
    """Read-only access to scraped listings."""

    def __init__(self, conn_factory: Optional[Callable[[], Any]] = None):
        self._conn_factory = conn_factory or get_db_connection

    async def search(
        self,
        filters: JobFilters,
        page: int = 1,
        limit: int = 10,
        sort_by: str = DEFAULT_SORT_FIELD,
        sort_order: str = DEFAULT_SORT_ORDER,
    ) -> Dict[str, Any]:
        """
        Filtered, sorted, paginated listing search plus facets.

        Returns:
            {jobs, total, page, limit, totalPages, filters}

        Raises:
            psycopg2.Error: storage failure (the API layer turns this into a 500)
        """
        return await asyncio.to_thread(self._search_sync, filters, page, limit, sort_by, sort_order)

    async def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get a single listing by id; None if unknown or not a UUID."""
        try:
            uuid.UUID(str(job_id))
        except ValueError:
            return None
        return await asyncio.to_thread(self._get_job_sync, str(job_id))

    def _search_sync(self, filters: JobFilters, page: int, limit: int,
                     sort_by: str, sort_order: str) -> Dict[str, Any]:
        page = max(1, page)
        limit = max(1, limit)
        where_clause, params = build_where(filters)
        order_by = build_order_by(sort_by, sort_order)

        conn = None
        cursor = None
        try:
            conn = self._conn_factory()
            cursor = conn.cursor(cursor_factory=RealDictCursor)

            count_query = f"SELECT COUNT(*) AS total FROM {JOBS_TABLE} WHERE {where_clause}"
            cursor.execute(count_query, params)
            total = cursor.fetchone()["total"]

            offset = (page - 1) * limit
            select_query = f"""
                SELECT {SELECT_COLUMNS}
                FROM {JOBS_TABLE}
                WHERE {where_clause}
                ORDER BY {order_by}
                LIMIT %s OFFSET %s
            """
            cursor.execute(select_query, params + [limit, offset])
            jobs = [serialize_job(row) for row in cursor.fetchall()]

            facets = self._get_facets(cursor)
        finally:
            if cursor:
                cursor.close()
            if conn:
                conn.close()

        logger.info(
            f"[search] search={filters.search!r} page={page} limit={limit} total={total}"
        )
        return {
            "jobs": jobs,
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if total else 0,
            "filters": facets,
        }

    def _get_facets(self, cursor) -> Dict[str, List[str]]:
        """Distinct values of each facet column among active listings"""
        facets = {}
        for name, column in FACET_COLUMNS.items():
            cursor.execute(f"""
                SELECT DISTINCT {column} AS value
                FROM {JOBS_TABLE}
                WHERE is_active = TRUE
                AND {column} IS NOT NULL
                AND {column} <> ''
                ORDER BY {column}
            """)
            facets[name] = [row["value"] for row in cursor.fetchall()]
        return facets

    def _get_job_sync(self, job_id: str) -> Optional[Dict[str, Any]]:
        conn = None
        cursor = None
        try:
            conn = self._conn_factory()
            cursor = conn.cursor(cursor_factory=RealDictCursor)
            cursor.execute(
                f"SELECT {SELECT_COLUMNS} FROM {JOBS_TABLE} WHERE id = %s",
                (job_id,)
            )
            row = cursor.fetchone()
        finally:
            if cursor:
                cursor.close()
            if conn:
                conn.close()

        return serialize_job(row) if row else None
