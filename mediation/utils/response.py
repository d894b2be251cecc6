"""
Common response envelope

    {"success": bool, "data": ..., "error": {"code", "message", "details"} | None}
"""
from typing import Any, Optional, Dict, TypedDict
from mediation.utils.exceptions import MediationError


class ErrorBody(TypedDict):
    code: str
    message: str
    details: Optional[Dict[str, Any]]


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """
    Wrap a service result

    Args:
        data: payload (serialised dicts from the services)
        message: optional human-readable message

    Returns:
        success envelope
    """
    envelope: Dict[str, Any] = {"success": True, "data": data, "error": None}
    if message:
        envelope["message"] = message
    return envelope


def error_response(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build a failure envelope

    Args:
        code: machine-readable error code, e.g. PANELIST_AT_CAPACITY
        message: human-readable message
        details: structured context such as the offending ids

    Returns:
        error envelope
    """
    error: ErrorBody = {"code": code, "message": message, "details": details}
    return {"success": False, "data": None, "error": error}


def error_from_exception(exc: MediationError) -> Dict[str, Any]:
    """Failure envelope for a business-rule violation"""
    return error_response(exc.code, exc.message, exc.details)
