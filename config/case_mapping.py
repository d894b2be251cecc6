"""
Intake field mapping
Lookup tables that turn free-text intake answers into canonical case fields
"""
from typing import Dict, Optional
from mediation.utils.constants import CasePriority, CaseType


FALLBACK_CASE_TYPE = CaseType.FAMILY.value
FALLBACK_PRIORITY = CasePriority.MEDIUM.value

# Conflict type (step 1) -> case type
CONFLICT_TYPE_MAPPING: Dict[str, str] = {
    "Marriage/Divorce": CaseType.MARRIAGE.value,
    "Marriage": CaseType.MARRIAGE.value,
    "Divorce": CaseType.MARRIAGE.value,
    "Land Dispute": CaseType.LAND.value,
    "Land": CaseType.LAND.value,
    "Property Dispute": CaseType.PROPERTY.value,
    "Property": CaseType.PROPERTY.value,
    "Family Dispute": CaseType.FAMILY.value,
    "Family": CaseType.FAMILY.value,
    "Other": CaseType.FAMILY.value
}

# Urgency level (step 1, lower-cased) -> case priority
URGENCY_PRIORITY_MAPPING: Dict[str, str] = {
    "low": CasePriority.LOW.value,
    "medium": CasePriority.MEDIUM.value,
    "high": CasePriority.HIGH.value,
    "urgent": CasePriority.URGENT.value,
    "critical": CasePriority.URGENT.value
}


def map_conflict_type(conflict_type: Optional[str]) -> str:
    """
    Map a conflict type answer to a case type

    Args:
        conflict_type: conflict type as entered in step 1

    Returns:
        case type, FALLBACK_CASE_TYPE when unmapped
    """
    if not conflict_type:
        return FALLBACK_CASE_TYPE

    return CONFLICT_TYPE_MAPPING.get(conflict_type.strip(), FALLBACK_CASE_TYPE)


def map_urgency_level(urgency_level: Optional[str]) -> str:
    """
    Map an urgency level answer to a case priority

    Args:
        urgency_level: urgency level as entered in step 1

    Returns:
        case priority, FALLBACK_PRIORITY when unmapped
    """
    if not urgency_level:
        return FALLBACK_PRIORITY

    return URGENCY_PRIORITY_MAPPING.get(urgency_level.strip().lower(), FALLBACK_PRIORITY)
