"""
Intake step payload schemas

Each step number owns one fixed schema; drafts are validated against it
before they are stored.
"""
from typing import Dict, List, Literal, Optional, Type
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from mediation.utils.constants import STEP_NAMES
from mediation.utils.exceptions import InvalidStepError, ValidationError


class StepPayload(BaseModel):
    """Base class for step payloads"""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class CaseOverview(StepPayload):
    """Step 1"""
    conflict_type: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=5000)
    urgency_level: str = Field(min_length=1, max_length=20)
    estimated_value: Optional[str] = None


class PartyEntry(StepPayload):
    name: str = Field(min_length=1, max_length=255)
    role: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    phone: Optional[str] = None
    relationship: Optional[str] = None


class PartiesInvolved(StepPayload):
    """Step 2"""
    parties: List[PartyEntry] = Field(min_length=1)


class ConflictBackground(StepPayload):
    """Step 3"""
    timeline: str = Field(min_length=1)
    key_issues: List[str] = Field(min_length=1)
    previous_attempts: Optional[str] = None
    emotional_impact: Optional[str] = None


class DesiredOutcomes(StepPayload):
    """Step 4"""
    primary_goals: List[str] = Field(min_length=1)
    success_metrics: Optional[str] = None
    constraints: Optional[str] = None
    timeline: Optional[str] = None


class SchedulingPreferences(StepPayload):
    """Step 5"""
    availability: List[str] = Field(min_length=1)
    preferred_location: Literal["online", "in-person", "hybrid"]
    time_zone: str = Field(min_length=1)
    communication_preference: Literal["email", "phone", "text", "app"]


class UploadedDocument(StepPayload):
    """Reference returned by the object-storage service"""
    file_name: str = Field(min_length=1, max_length=255)
    file_size: int = Field(ge=0)
    file_type: str
    upload_url: str
    storage_key: str
    description: Optional[str] = None


class Documents(StepPayload):
    """Step 6"""
    uploaded_files: List[UploadedDocument] = Field(default_factory=list)


STEP_SCHEMAS: Dict[int, Type[StepPayload]] = {
    1: CaseOverview,
    2: PartiesInvolved,
    3: ConflictBackground,
    4: DesiredOutcomes,
    5: SchedulingPreferences,
    6: Documents
}


def parse_step_payload(step_number: int, payload) -> StepPayload:
    """
    Validate a raw payload against the schema of its step
    
    Args:
        step_number: step number 1..6
        payload: dict or an already-built StepPayload
    
    Returns:
        validated StepPayload of the step's type
    
    Raises:
        InvalidStepError: unknown step number
        ValidationError: payload does not match the step schema
    """
    schema = STEP_SCHEMAS.get(step_number)
    if schema is None:
        raise InvalidStepError(step_number)
    
    if isinstance(payload, StepPayload):
        if not isinstance(payload, schema):
            raise ValidationError(
                f"Payload for step {step_number} must be {schema.__name__}",
                STEP_NAMES[step_number]
            )
        return payload
    
    try:
        return schema.model_validate(payload or {})
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Invalid {STEP_NAMES[step_number]} data: {first.get('msg')}",
            details={"field": location or STEP_NAMES[step_number], "step": step_number}
        ) from e
