import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

from hoteltax.core.config import configure_logging, settings
from hoteltax.core.errors import TransientError, register_exception_handlers
from hoteltax.routers import api_keys, audit_logs, clients, establishments, stays, taxes

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Establishments", "description": "Hotels and other lodging establishments."},
    {"name": "Clients", "description": "Guests registered by an establishment."},
    {"name": "Stays", "description": "Guest stays with check-in and check-out dates."},
    {
        "name": "Taxes",
        "description": "Tax configurations, exemptions, calculations and collection reports.",
    },
    {"name": "API Keys", "description": "Issue, rotate and revoke platform API keys."},
    {"name": "Audit Logs", "description": "Change history of tax configurations and exemptions."},
]

configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Hotel tax service. Computes per-stay taxes from each establishment's "
        "rate catalog, applies client exemptions, records every calculation "
        "and reports on collected taxes."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count", "Idempotency-Replayed"],
)

register_exception_handlers(app)


@app.exception_handler(DBAPIError)
async def database_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    error = TransientError("The database is unavailable, retry later")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.include_router(establishments.router, prefix="/establishments", tags=["Establishments"])
app.include_router(clients.router, prefix="/clients", tags=["Clients"])
app.include_router(stays.router, prefix="/stays", tags=["Stays"])
app.include_router(taxes.router, prefix="/taxes", tags=["Taxes"])
app.include_router(api_keys.router, prefix="/api_keys", tags=["API Keys"])
app.include_router(audit_logs.router, prefix="/audit_logs", tags=["Audit Logs"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
