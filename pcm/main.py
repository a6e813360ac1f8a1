"""
FastAPI application entrypoint.

Run locally:  uvicorn pcm.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pcm.api.routes import router
from pcm.config import settings
from pcm.exceptions import (
    CategoryInUseError,
    ConsentStateError,
    DuplicateRecordError,
    NotFoundError,
    PcmError,
    UniqueValueGenerationExhaustedError,
    ValidationFailedError,
)
from pcm.models.database import Base, SessionLocal, engine
from pcm.services.reference import seed_reference_data

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Patient Consent Management API",
    description=(
        "Create, attest, revoke and query patient data-sharing consent "
        "directives and publish them as FHIR Consent resources to a health "
        "information exchange."
    ),
    version="1.0.0",
)

app.include_router(router, prefix="/api/v1")


@app.exception_handler(PcmError)
def handle_pcm_error(request: Request, exc: PcmError):
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, (ConsentStateError, DuplicateRecordError, CategoryInUseError)):
        status_code = 409
    elif isinstance(exc, UniqueValueGenerationExhaustedError):
        # Retryable: a later attempt draws fresh suffixes
        status_code = 503
    elif isinstance(exc, ValidationFailedError):
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "messages": exc.messages},
        )
    else:
        status_code = 400
    logger.warning("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed_reference_data(db)
        db.commit()
