from __future__ import annotations

import json
from typing import Any

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse


def cors_headers(methods: str = "POST, OPTIONS") -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": methods,
        "Access-Control-Allow-Headers": "Content-Type",
    }


def json_response(
    body: dict[str, Any],
    status_code: int = 200,
    methods: str = "POST, OPTIONS",
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers={**cors_headers(methods), **(headers or {})})


def preflight(methods: str = "POST, OPTIONS") -> Response:
    return Response(status_code=204, headers=cors_headers(methods))


async def read_json_body(request: Request) -> dict[str, Any]:
    body = await request.body()
    if not body:
        return {}
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return payload
