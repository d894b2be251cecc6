"""Database Models"""

from mediation.db.models.submission_session import SubmissionSession
from mediation.db.models.submission_step_data import SubmissionStepData
from mediation.db.models.case_record import CaseRecord
from mediation.db.models.case_party import CaseParty
from mediation.db.models.case_note import CaseNote
from mediation.db.models.case_panelist_assignment import CasePanelistAssignment
from mediation.db.models.panelist import Panelist
from mediation.db.models.case_resolution import CaseResolution
from mediation.db.models.case_activity import CaseActivity

__all__ = [
    "SubmissionSession",
    "SubmissionStepData",
    "CaseRecord",
    "CaseParty",
    "CaseNote",
    "CasePanelistAssignment",
    "Panelist",
    "CaseResolution",
    "CaseActivity",
]
