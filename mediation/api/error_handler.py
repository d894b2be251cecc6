"""
API error handlers
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from mediation.utils.exceptions import MediationError, DatabaseError
from mediation.utils.response import error_response, error_from_exception
from mediation.utils.logger import get_logger

logger = get_logger(__name__)

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED"
}


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request body / parameter validation errors"""
    errors = exc.errors()
    error_details = {
        "field": errors[0].get("loc")[-1] if errors else None,
        "message": errors[0].get("msg") if errors else "Validation error"
    }
    
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response(
            code="VALIDATION_ERROR",
            message="Request validation failed",
            details=error_details
        )
    )


async def mediation_error_handler(request: Request, exc: MediationError):
    """Business-rule violations raised by the services"""
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    
    return JSONResponse(
        status_code=exc.status_code,
        content=error_from_exception(exc)
    )


async def database_error_handler(request: Request, exc: DatabaseError):
    """Database errors (details are not exposed)"""
    logger.error(f"Database error: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(
            code="DATABASE_ERROR",
            message="A database error occurred"
        )
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Auth and routing errors in the common envelope"""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            code=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            message=str(exc.detail)
        ),
        headers=getattr(exc, "headers", None)
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Anything else"""
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(
            code="INTERNAL_SERVER_ERROR",
            message="Internal server error"
        )
    )
