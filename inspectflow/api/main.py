import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inspectflow import __version__
from inspectflow.core.config import get_settings
from inspectflow.core.errors import InspectFlowError, ValidationFailure
from inspectflow.core.logger import configure_from_settings
from inspectflow.api.routers import health, inspections, approvals, organization

settings = get_settings()
configure_from_settings(settings)

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Inspection records with an organization approval workflow",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InspectFlowError)
async def inspectflow_error_handler(request: Request, exc: InspectFlowError):
    """Translate classified workflow errors into JSON responses."""
    logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def validation_message(errors) -> str:
    """Message for the first request validation error, named by its top-level field."""
    if not errors:
        return ValidationFailure.default_message
    first = errors[0]
    # loc is like ("body", "action") or ("body", "users", 0, "approval_level", "int")
    fields = [part for part in first.get("loc", ()) if isinstance(part, str)][1:]
    field = fields[0] if fields else "request body"
    if first.get("type") == "missing":
        return f"{field} must be provided"
    return f"Invalid {field}"


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400 ValidationFailure rather than FastAPI's 422."""
    return await inspectflow_error_handler(request, ValidationFailure(validation_message(exc.errors())))


# Include routers
app.include_router(health.router)
app.include_router(inspections.router, prefix="/api")
app.include_router(approvals.router, prefix="/api")
app.include_router(organization.router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
