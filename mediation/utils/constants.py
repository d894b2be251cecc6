"""
Constants
Enumerations and limits shared across the case workflow
"""
from enum import Enum
from typing import Dict, List


# ============================================================================
# Intake sessions
# ============================================================================

class SessionRole(str, Enum):
    """Submitter role of an intake session"""
    PARTY_A = "party_a"
    PARTY_B = "party_b"


class SessionStatus(str, Enum):
    """Intake session status"""
    DRAFT = "draft"
    SUBMITTED = "submitted"


FIRST_STEP = 1
LAST_STEP = 6
ALL_STEPS: List[int] = list(range(FIRST_STEP, LAST_STEP + 1))

# Step number -> key used when step data is returned to clients
STEP_NAMES: Dict[int, str] = {
    1: "case_overview",
    2: "parties_involved",
    3: "conflict_background",
    4: "desired_outcomes",
    5: "scheduling_preferences",
    6: "documents"
}


# ============================================================================
# Cases
# ============================================================================

class CaseStatus(str, Enum):
    """Case lifecycle status"""
    OPEN = "open"
    ASSIGNED = "assigned"
    PANEL_ASSIGNED = "panel_assigned"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class CaseType(str, Enum):
    MARRIAGE = "marriage"
    LAND = "land"
    PROPERTY = "property"
    FAMILY = "family"


class CasePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class CaseResolutionStatus(str, Enum):
    """Aggregated resolution progress of a case"""
    NOT_STARTED = "not_started"
    PARTIAL = "partial"
    COMPLETE = "complete"


# Statuses after which a case no longer counts as active work
FINISHED_CASE_STATUSES = (CaseStatus.RESOLVED.value, CaseStatus.CLOSED.value)


# ============================================================================
# Panel
# ============================================================================

class AssignmentStatus(str, Enum):
    ACTIVE = "active"
    REMOVED = "removed"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


SPECIALIZATIONS: List[str] = [
    "marriage",
    "land",
    "property",
    "family",
    "divorce",
    "custody",
    "financial",
    "general"
]


# ============================================================================
# Resolutions
# ============================================================================

class ResolutionStatus(str, Enum):
    """Outcome recorded by a single panelist"""
    PENDING = "pending"
    RESOLVED = "resolved"
    NO_OUTCOME = "no_outcome"


# Values a panelist may submit as final
SUBMITTABLE_RESOLUTION_STATUSES = (ResolutionStatus.RESOLVED.value, ResolutionStatus.NO_OUTCOME.value)


# ============================================================================
# Activity log
# ============================================================================

class ActivityType(str, Enum):
    CASE_CREATED = "case_created"
    PARTY_JOINED = "party_joined"
    CASE_ASSIGNED = "case_assigned"
    CASE_UNASSIGNED = "case_unassigned"
    PANEL_ASSIGNED = "panel_assigned"
    PANELIST_REMOVED = "panelist_removed"
    STATUS_CHANGED = "status_changed"
    PRIORITY_CHANGED = "priority_changed"
    NOTE_ADDED = "note_added"
    RESOLUTION_UPDATED = "resolution_updated"
    RESOLUTION_SUBMITTED = "resolution_submitted"
    CASE_RESOLVED = "case_resolved"
    PARTY_B_SUBMITTED = "party_b_submitted"


class ActorType(str, Enum):
    ADMIN = "admin"
    PANELIST = "panelist"
    CLIENT = "client"
    SYSTEM = "system"


# ============================================================================
# Limits
# ============================================================================

class Limits:
    """Limit constants"""
    
    # String lengths
    TITLE_DESCRIPTION_PREVIEW = 50
    NOTE_MAX_LENGTH = 5000
    RESOLUTION_NOTES_MAX_LENGTH = 5000
    OUTCOME_MAX_LENGTH = 2000
    RECOMMENDATIONS_MAX_LENGTH = 2000
    ACTIVITY_DESCRIPTION_MAX_LENGTH = 1000
    
    # Panel capacity
    MIN_MAX_CASES = 1
    MAX_MAX_CASES = 50
    
    # Case id generation
    CASE_ID_DIGITS = 6
    CASE_ID_ATTEMPTS = 5


def enum_values(enum_cls) -> List[str]:
    """Return the string values of an Enum class"""
    return [member.value for member in enum_cls]
