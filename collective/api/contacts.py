from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from collective.api.responses import json_response, preflight, read_json_body
from collective.api.schemas import (
    EMAIL_RE,
    JOIN_REQUIRED_FIELDS,
    JoinRequestSchema,
    ProfileUpdateSchema,
    missing_fields,
)
from collective.application.use_cases.join_community import JoinCommunityUseCase
from collective.application.use_cases.update_profile import UpdateProfileUseCase
from collective.wiring.dependencies import get_join_community_factory, get_update_profile_use_case


router = APIRouter()
logger = logging.getLogger(__name__)

METHODS = "POST, GET, OPTIONS"


def _status(name: str) -> JSONResponse:
    return json_response(
        {"status": f"{name} function is running", "timestamp": datetime.now(timezone.utc).isoformat()},
        methods=METHODS,
    )


@router.options("/join")
def join_preflight() -> Response:
    return preflight(METHODS)


@router.get("/join")
def join_status() -> JSONResponse:
    return _status("Join")


@router.post("/join")
async def join(
    request: Request,
    use_case_factory: Callable[[], JoinCommunityUseCase] = Depends(get_join_community_factory),
) -> JSONResponse:
    payload = await read_json_body(request)

    missing = missing_fields(payload, JOIN_REQUIRED_FIELDS)
    if missing:
        return json_response({"error": f"Missing required fields: {', '.join(missing)}"}, 400, METHODS)
    if not EMAIL_RE.match(str(payload.get("email")).strip()):
        return json_response({"error": "Invalid email address"}, 400, METHODS)

    try:
        join_request = JoinRequestSchema.model_validate(payload).to_entity()
    except ValidationError as e:
        return json_response({"error": str(e.errors()[0].get("msg"))}, 400, METHODS)

    use_case = use_case_factory()
    try:
        contact_id = await run_in_threadpool(use_case.execute, join_request)
    except Exception as e:
        logger.exception("Join failed", extra={"error": str(e)})
        return json_response(
            {"success": False, "error": "Failed to process signup. Please try again.", "details": str(e)},
            500,
            METHODS,
        )

    return json_response(
        {"success": True, "message": "Welcome to COLLECTIVE!", "contactId": contact_id},
        methods=METHODS,
    )


@router.options("/update-profile")
def update_profile_preflight() -> Response:
    return preflight(METHODS)


@router.get("/update-profile")
def update_profile_status() -> JSONResponse:
    return _status("Update profile")


@router.post("/update-profile")
async def update_profile(
    request: Request,
    use_case: UpdateProfileUseCase = Depends(get_update_profile_use_case),
) -> JSONResponse:
    payload = await read_json_body(request)
    try:
        update = ProfileUpdateSchema.model_validate(payload).to_entity()
    except ValidationError as e:
        return json_response({"error": str(e.errors()[0].get("msg"))}, 400, METHODS)

    if not update.contact_id:
        return json_response({"error": "Contact ID is required"}, 400, METHODS)

    try:
        await run_in_threadpool(use_case.execute, update)
    except Exception as e:
        logger.exception("Profile update failed", extra={"contact_id": update.contact_id, "error": str(e)})
        return json_response(
            {"success": False, "error": "Failed to update profile. Please try again.", "details": str(e)},
            500,
            METHODS,
        )

    return json_response({"success": True, "message": "Profile updated successfully"}, methods=METHODS)
