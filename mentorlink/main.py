# mentorlink/main.py
import logging
from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from .constants import ErrorMessages
from .database import create_db_and_tables, get_db
from .exceptions import BusinessLogicError, StoreUnavailableError
from .schemas import ApiResponse, ErrorBody
from .routers import profile_router, mentorship_router, matching_router, admin_router

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Mentorship Lifecycle and Matching API",
    description="Mentor discovery, request/accept/terminate lifecycle and capacity tracking for mentorship programmes.",
    version="1.0.0",
)

# Include routers
app.include_router(profile_router.router)
app.include_router(mentorship_router.router)
app.include_router(matching_router.router)
app.include_router(admin_router.router)


def _error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    body = ApiResponse(success=False, error=ErrorBody(code=code, message=message, details=details or {}))
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(by_alias=True, mode="json")),
    )


@app.exception_handler(BusinessLogicError)
async def business_logic_error_handler(request: Request, exc: BusinessLogicError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code} {exc.message}")
    return _error_response(exc.status_code, exc.code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error_response(
        422, "VALIDATION_ERROR", "Request validation failed",
        {"errors": [{"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")} for err in exc.errors()]},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


@app.on_event("startup")
def startup_event():
    """Initialize application on startup"""
    logger.info("Application startup event triggered.")
    try:
        create_db_and_tables()
        logger.info("Startup sequence completed successfully.")
    except SQLAlchemyError as e:
        # The service still starts; /health reports the store as down
        logger.critical(f"Critical error during startup: {e}", exc_info=True)


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        raise StoreUnavailableError(ErrorMessages.STORE_UNAVAILABLE)
    return ApiResponse(success=True, data={"status": "healthy"})
