import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from collective.api.bookings import router as bookings_router
from collective.api.contacts import router as contacts_router
from collective.api.events import router as events_router
from collective.api.responses import cors_headers
from collective.application.exceptions import ConfigurationError
from collective.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in (
            "contact_id",
            "appointment_id",
            "calendar_id",
            "email",
            "strategy",
            "attempt",
            "status",
            "reason",
            "error",
        ):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="COLLECTIVE. Events API", version="1.0.0")

app.include_router(bookings_router, tags=["bookings"])
app.include_router(contacts_router, tags=["contacts"])
app.include_router(events_router, tags=["events"])


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = "Method not allowed" if exc.status_code == 405 else exc.detail
    return JSONResponse(
        {"error": detail},
        status_code=exc.status_code,
        headers={**cors_headers(), **(exc.headers or {})},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    logging.getLogger(__name__).error("Configuration error", extra={"error": str(exc)})
    return JSONResponse({"error": "Server configuration error"}, status_code=500, headers=cors_headers())


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
