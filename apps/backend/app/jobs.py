"""
Public job listing endpoints and the admin scrape trigger.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from app.config import is_dev_mode
from app.rate_limit import limiter, RATE_LIMIT_SEARCH
from app.search import (
    JobFilters,
    JobQueryService,
    DEFAULT_SORT_FIELD,
    DEFAULT_SORT_ORDER,
)
from security.admin_auth import SessionUser, admin_required

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/jobs", tags=["jobs"])

# Global instance
query_service = JobQueryService()


def get_query_service() -> JobQueryService:
    return query_service


def _error_response(status_code: int, message: str, error: Optional[Exception] = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None and is_dev_mode():
        content["error"] = str(error)
    return JSONResponse(status_code=status_code, content=content)


@router.get("")
@limiter.limit(RATE_LIMIT_SEARCH)
async def list_jobs(
    request: Request,
    page: int = Query(1, description="Page number", ge=1),
    limit: int = Query(10, description="Page size", ge=1, le=100),
    search: Optional[str] = Query(None, description="Full-text search"),
    location: Optional[List[str]] = Query(None, description="Location substring(s)"),
    job_type: Optional[List[str]] = Query(None, alias="jobType"),
    experience_level: Optional[List[str]] = Query(None, alias="experienceLevel"),
    category: Optional[List[str]] = Query(None),
    sort_by: str = Query(DEFAULT_SORT_FIELD, alias="sortBy"),
    sort_order: str = Query(DEFAULT_SORT_ORDER, alias="sortOrder"),
    service: JobQueryService = Depends(get_query_service),
):
    """List active jobs with filters, sorting, pagination and facets."""
    filters = JobFilters.from_params(
        search=search,
        location=location,
        job_type=job_type,
        experience_level=experience_level,
        category=category,
    )
    try:
        result = await service.search(
            filters,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except Exception as e:
        logger.error(f"[api/jobs] Error fetching jobs: {e}", exc_info=True)
        return _error_response(500, "Failed to fetch jobs", e)

    return {
        "success": True,
        "data": {
            "jobs": result["jobs"],
            "filters": result["filters"],
        },
        "pagination": {
            "total": result["total"],
            "page": result["page"],
            "limit": result["limit"],
            "totalPages": result["totalPages"],
        },
    }


@router.post("/scrape", status_code=202)
async def trigger_scrape(
    request: Request,
    admin: SessionUser = Depends(admin_required),
):
    """Start a scrape run in the background (ADMIN only)."""
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        return _error_response(503, "Scraper is not available")

    scheduler.trigger_now()
    logger.info(f"[api/jobs] Scrape triggered by user {admin.user_id}")
    return {"success": True, "message": "Job scraping started in the background"}


@router.get("/{job_id}")
async def get_job(
    job_id: str,
    service: JobQueryService = Depends(get_query_service),
):
    try:
        job = await service.get_job(job_id)
    except Exception as e:
        logger.error(f"[api/jobs] Error fetching job {job_id}: {e}", exc_info=True)
        return _error_response(500, "Failed to fetch job", e)

    if job is None:
        return _error_response(404, "Job not found")
    return {"success": True, "data": job}
