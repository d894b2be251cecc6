"""
Helper functions
"""
import re
import uuid
import secrets
from datetime import datetime, timezone
from typing import Optional

from mediation.types import SessionId, CaseId, PanelistId


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime (matches the DateTime columns)
    
    Returns:
        datetime without tzinfo
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_text(text: str) -> str:
    """
    Collapse whitespace
    
    Args:
        text: source text
    
    Returns:
        normalized text
    """
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def mask_personal_info(text: str, mask_char: str = "*") -> str:
    """
    Mask personal information before it reaches the logs
    
    Args:
        text: source text
        mask_char: mask character
    
    Returns:
        masked text
    """
    # Phone numbers (555-123-4567 -> 555-***-4567)
    text = re.sub(r'(\d{3})[-. ](\d{3,4})[-. ](\d{4})', r'\1-' + mask_char * 3 + r'-\3', text)
    
    # E-mail (user@example.com -> u***@example.com)
    text = re.sub(r'([\w.+-])[\w.+-]*(@[\w-]+\.[\w.-]+)', r'\1' + mask_char * 3 + r'\2', text)
    
    return text


def generate_session_id() -> SessionId:
    """
    Generate an intake session id (sess_ prefix)
    
    Returns:
        opaque session id
    """
    return SessionId(f"sess_{uuid.uuid4().hex}")


def generate_panelist_id() -> PanelistId:
    """
    Generate a panelist id (pnl_ prefix)
    
    Returns:
        panelist id
    """
    return PanelistId(f"pnl_{uuid.uuid4().hex[:16]}")


def generate_case_id(prefix: str = "CASE", year: Optional[int] = None, digits: int = 6) -> CaseId:
    """
    Generate a human-readable case id, e.g. CASE-2026-048213
    
    Args:
        prefix: id prefix
        year: year component (defaults to the current year)
        digits: length of the random numeric suffix
    
    Returns:
        case id
    """
    year = year or utcnow().year
    suffix = str(secrets.randbelow(10 ** digits)).zfill(digits)
    return CaseId(f"{prefix}-{year}-{suffix}")


def validate_session_id(session_id: str) -> bool:
    """
    Check the session id format
    
    Args:
        session_id: session id
    
    Returns:
        True when the id looks like one we issued
    """
    if not session_id:
        return False
    
    if not session_id.startswith("sess_"):
        return False
    
    return len(session_id) > 10


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """ISO-format a datetime, passing None through"""
    return value.isoformat() if value else None
