"""
API authentication

The gateway authenticates with a shared bearer key; the caller identity
issued by the identity service is forwarded in X-Caller-Id / X-Caller-Role.
"""
from typing import Optional
from fastapi import Depends, Header, HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from config.settings import settings
from mediation.types import Caller
from mediation.utils.logger import get_logger

logger = get_logger(__name__)

security = HTTPBearer()

ROLES = ("admin", "panelist", "client")


def verify_api_key(credentials: HTTPAuthorizationCredentials = Security(security)) -> str:
    """
    Verify the API key
    
    Args:
        credentials: HTTP Bearer token
    
    Returns:
        the verified key
    
    Raises:
        HTTPException: key mismatch
    """
    token = credentials.credentials
    
    if token != settings.api_secret_key:
        logger.warning(f"Invalid API key attempt: {token[:10]}...")
        raise HTTPException(
            status_code=401,
            detail="Invalid API key"
        )
    
    return token


def get_caller(
    _: str = Depends(verify_api_key),
    x_caller_id: Optional[str] = Header(default=None),
    x_caller_role: Optional[str] = Header(default=None)
) -> Caller:
    """
    Caller identity forwarded by the gateway
    
    Missing headers yield an anonymous client.
    """
    role = (x_caller_role or "client").lower()
    if role not in ROLES:
        raise HTTPException(status_code=403, detail=f"Unknown role: {role}")
    return {"caller_id": x_caller_id or "", "role": role}


def require_role(*roles: str):
    """
    Dependency factory restricting a route to the given roles
    
    Example:
        @router.get("/", dependencies=[Depends(require_role("admin"))])
    """
    def dependency(caller: Caller = Depends(get_caller)) -> Caller:
        if caller["role"] not in roles:
            logger.warning(f"Role {caller['role']} denied, requires {roles}")
            raise HTTPException(status_code=403, detail="Not authorized to perform this action")
        return caller
    return dependency
