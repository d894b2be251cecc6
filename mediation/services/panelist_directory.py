"""
Panelist directory

Panelist records, their self-declared availability and their capacity.
The derived availability status is always written by the same UPDATE that
changes one of its inputs.
"""
from typing import Any, Dict, List, Optional
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from config.settings import settings
from mediation.db.connection import db_manager
from mediation.db.models import CasePanelistAssignment, CaseRecord, Panelist
from mediation.db.models.panelist import availability_expression, derive_availability_status
from mediation.utils.constants import (
    FINISHED_CASE_STATUSES,
    SPECIALIZATIONS,
    AssignmentStatus,
    AvailabilityStatus,
    Limits,
)
from mediation.utils.exceptions import (
    PanelistAlreadyExistsError,
    PanelistHasActiveCasesError,
    PanelistNotFoundError,
    ValidationError,
)
from mediation.utils.helpers import generate_panelist_id, utcnow
from mediation.utils.logger import get_logger

logger = get_logger(__name__)

panelist_table = Panelist.__table__

AVAILABILITY_PREFERENCES = (AvailabilityStatus.AVAILABLE.value, AvailabilityStatus.UNAVAILABLE.value)


def serialize_panelist(panelist: Panelist) -> Dict[str, Any]:
    data = panelist.to_json(exclude=("id",))
    data["specializations"] = list(panelist.specializations or [])
    return data


def load_panelist(db_session: Session, panelist_id: str) -> Panelist:
    panelist = db_session.query(Panelist).filter(Panelist.panelist_id == panelist_id).first()
    if panelist is None:
        raise PanelistNotFoundError(panelist_id)
    return panelist


def _validate_max_cases(max_cases: int):
    if not isinstance(max_cases, int) or not Limits.MIN_MAX_CASES <= max_cases <= Limits.MAX_MAX_CASES:
        raise ValidationError(
            f"max_cases must be between {Limits.MIN_MAX_CASES} and {Limits.MAX_MAX_CASES}",
            "max_cases"
        )


def _open_assignment_criteria(panelist_id: str):
    return (
        CasePanelistAssignment.panelist_id == panelist_id,
        CasePanelistAssignment.status == AssignmentStatus.ACTIVE.value,
        CaseRecord.id == CasePanelistAssignment.case_pk,
        CaseRecord.status.notin_(FINISHED_CASE_STATUSES)
    )


def _count_open_assignments(db_session: Session, panelist_id: str) -> int:
    """Active assignments on cases that are not resolved or closed"""
    return db_session.query(func.count(CasePanelistAssignment.id)).filter(
        *_open_assignment_criteria(panelist_id)
    ).scalar() or 0


class PanelistDirectory:
    """Panelist record operations"""

    @staticmethod
    def create_panelist(
        name: str,
        email: str,
        occupation: Optional[str] = None,
        phone: Optional[str] = None,
        specializations: Optional[List[str]] = None,
        max_cases: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Register a panelist

        Args:
            name: full name
            email: contact e-mail, unique across panelists
            occupation: occupation
            phone: phone number
            specializations: subset of the known specializations
            max_cases: capacity (defaults to settings.default_max_cases)

        Returns:
            serialised panelist

        Raises:
            ValidationError: missing name/email, unknown specialization or bad capacity
            PanelistAlreadyExistsError: e-mail already registered
        """
        if not name or not name.strip():
            raise ValidationError("Name is required", "name")
        if not email or "@" not in email:
            raise ValidationError("A valid email is required", "email")

        specializations = list(dict.fromkeys(specializations or []))
        unknown = [s for s in specializations if s not in SPECIALIZATIONS]
        if unknown:
            raise ValidationError(
                f"Unknown specializations: {', '.join(unknown)}",
                details={"field": "specializations", "allowed": SPECIALIZATIONS}
            )

        max_cases = settings.default_max_cases if max_cases is None else max_cases
        _validate_max_cases(max_cases)
        email = email.strip().lower()

        def work(db_session: Session) -> Dict[str, Any]:
            if db_session.query(Panelist.id).filter(Panelist.email == email).first():
                raise PanelistAlreadyExistsError(email)

            panelist = Panelist(
                panelist_id=generate_panelist_id(),
                name=name.strip(),
                email=email,
                phone=phone,
                occupation=occupation,
                specializations=specializations,
                is_active=True,
                max_cases=max_cases,
                current_case_load=0,
                availability_preference=AvailabilityStatus.AVAILABLE.value,
                availability_status=derive_availability_status(0, max_cases)
            )
            db_session.add(panelist)
            try:
                db_session.flush()
            except IntegrityError as e:
                raise PanelistAlreadyExistsError(email) from e

            logger.info(f"Panelist created: {panelist.panelist_id}")
            return serialize_panelist(panelist)

        return db_manager.run_in_transaction(work, resource="Panelist")

    @staticmethod
    def get_panelist(panelist_id: str) -> Dict[str, Any]:
        with db_manager.get_db_session() as db_session:
            return serialize_panelist(load_panelist(db_session, panelist_id))

    @staticmethod
    def update_availability(panelist_id: str, preference: str) -> Dict[str, Any]:
        """
        Record the panelist's own availability choice

        Args:
            panelist_id: panelist id
            preference: available or unavailable

        Returns:
            serialised panelist
        """
        if preference not in AVAILABILITY_PREFERENCES:
            raise ValidationError("Availability must be available or unavailable", "availability")

        def work(db_session: Session) -> Dict[str, Any]:
            panelist = load_panelist(db_session, panelist_id)
            c = panelist_table.c
            db_session.execute(
                update(panelist_table)
                .where(c.panelist_id == panelist_id)
                .values(
                    availability_status=availability_expression(preference=preference),
                    availability_preference=preference,
                    updated_at=utcnow()
                )
            )
            db_session.refresh(panelist)

            logger.info(f"Panelist availability: {panelist_id} -> {panelist.availability_status}")
            return serialize_panelist(panelist)

        return db_manager.run_in_transaction(work, resource="Panelist")

    @staticmethod
    def update_capacity(panelist_id: str, max_cases: int) -> Dict[str, Any]:
        """
        Change a panelist's maximum case load

        Args:
            panelist_id: panelist id
            max_cases: new capacity, not below the current load

        Returns:
            serialised panelist
        """
        _validate_max_cases(max_cases)

        def work(db_session: Session) -> Dict[str, Any]:
            panelist = load_panelist(db_session, panelist_id)
            c = panelist_table.c
            result = db_session.execute(
                update(panelist_table)
                .where(c.panelist_id == panelist_id, c.current_case_load <= max_cases)
                .values(
                    availability_status=availability_expression(max_cases=max_cases),
                    max_cases=max_cases,
                    updated_at=utcnow()
                )
            )
            if result.rowcount != 1:
                db_session.refresh(panelist)
                raise ValidationError(
                    f"max_cases cannot be below the current case load ({panelist.current_case_load})",
                    "max_cases"
                )
            db_session.refresh(panelist)

            logger.info(f"Panelist capacity: {panelist_id} -> {max_cases}")
            return serialize_panelist(panelist)

        return db_manager.run_in_transaction(work, resource="Panelist")

    @staticmethod
    def deactivate_panelist(panelist_id: str) -> Dict[str, Any]:
        """
        Deactivate a panelist with no open cases

        Raises:
            PanelistNotFoundError: unknown panelist
            PanelistHasActiveCasesError: still sitting on an unfinished case
        """
        def work(db_session: Session) -> Dict[str, Any]:
            panelist = load_panelist(db_session, panelist_id)
            open_cases = _count_open_assignments(db_session, panelist_id)
            if open_cases:
                logger.warning(f"Deactivation rejected: {panelist_id} has {open_cases} open case(s)")
                raise PanelistHasActiveCasesError(panelist_id, open_cases)

            # an assignment committed after the count above blocks the update
            c = panelist_table.c
            open_assignment = select(CasePanelistAssignment.id).where(
                *_open_assignment_criteria(panelist_id)
            ).exists()
            result = db_session.execute(
                update(panelist_table)
                .where(c.panelist_id == panelist_id, ~open_assignment)
                .values(
                    availability_status=availability_expression(is_active=False),
                    is_active=False,
                    updated_at=utcnow()
                )
            )
            if result.rowcount != 1:
                open_cases = _count_open_assignments(db_session, panelist_id)
                logger.warning(f"Deactivation lost a race with an assignment: {panelist_id}")
                raise PanelistHasActiveCasesError(panelist_id, max(open_cases, 1))
            db_session.refresh(panelist)

            logger.info(f"Panelist deactivated: {panelist_id}")
            return serialize_panelist(panelist)

        return db_manager.run_in_transaction(work, resource="Panelist")
