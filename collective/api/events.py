from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from collective.api.responses import json_response, preflight
from collective.application.use_cases.list_events import ListEventsUseCase
from collective.application.use_cases.migrate_contacts import MigrateContactsUseCase
from collective.wiring.dependencies import get_list_events_use_case, get_migrate_contacts_use_case


router = APIRouter()
logger = logging.getLogger(__name__)

METHODS = "GET, OPTIONS"


def _int_param(value: str | None, default: int) -> int:
    try:
        return int(value or 0) or default
    except ValueError:
        return default


@router.options("/events")
def events_preflight() -> Response:
    return preflight(METHODS)


@router.get("/events")
async def list_events(
    status: str = Query("live"),
    limit: str | None = Query(None),
    include_venues: str | None = Query(None, alias="includeVenues"),
    use_case: ListEventsUseCase = Depends(get_list_events_use_case),
) -> JSONResponse:
    try:
        events = await run_in_threadpool(
            use_case.execute,
            status=status,
            limit=_int_param(limit, 10),
            include_venues=include_venues != "false",
        )
    except Exception as e:
        logger.exception("Failed to fetch events", extra={"error": str(e)})
        return json_response({"error": "Failed to fetch events", "message": str(e)}, 500, METHODS)

    return json_response(
        {"success": True, "count": len(events), "events": events},
        methods=METHODS,
        headers={"Cache-Control": "public, max-age=300"},
    )


@router.options("/migrate-contacts")
def migrate_preflight() -> Response:
    return preflight(METHODS)


@router.get("/migrate-contacts")
async def migrate_contacts(
    run: str | None = Query(None),
    limit: str | None = Query(None),
    use_case: MigrateContactsUseCase = Depends(get_migrate_contacts_use_case),
) -> JSONResponse:
    dry_run = run != "true"
    try:
        report = await run_in_threadpool(use_case.execute, dry_run=dry_run, limit=_int_param(limit, 0))
    except Exception as e:
        logger.exception("Migration failed", extra={"error": str(e)})
        return json_response({"success": False, "error": "Migration failed", "details": str(e)}, 500, METHODS)

    return json_response(
        {
            "success": True,
            "message": "Dry run complete. Add ?run=true to execute updates." if dry_run else "Migration complete!",
            "results": report.as_response(),
        },
        methods=METHODS,
    )
