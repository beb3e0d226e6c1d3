from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, Iterable, List, Optional, Set, TypeVar, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import MentorshipStatus, UserType
from .constants import BusinessRules

T = TypeVar("T")


def normalize_tags(value: Union[str, Iterable[str], None]) -> Set[str]:
    """
    Normalizes skills/interests/expertise into a set of lower-cased, trimmed tags.
    Accepts a comma-separated string or any iterable of strings.
    """
    if value is None:
        return set()
    if isinstance(value, str):
        value = value.split(',')
    return {str(tag).strip().lower() for tag in value if str(tag).strip()}


class ApiModel(BaseModel):
    """Base for every API payload: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Tagged result envelope ---

class ErrorBody(ApiModel):
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

class ApiResponse(ApiModel, Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[ErrorBody] = None


# --- Profile inputs ---

class _TagFields(ApiModel):
    @field_validator('skills', 'interests', 'expertise_categories', mode='before', check_fields=False)
    @classmethod
    def _normalize(cls, value):
        if value is None:
            return value
        return normalize_tags(value)

class UserCreate(_TagFields):
    uid: str = Field(..., min_length=1, max_length=128, description="Stable identity issued by the auth service.")
    type: UserType
    name: str = Field(..., min_length=BusinessRules.MIN_NAME_LENGTH, max_length=BusinessRules.MAX_NAME_LENGTH)
    bio: Optional[str] = None
    skills: Set[str] = Field(default_factory=set)
    interests: Set[str] = Field(default_factory=set)
    # Mentor-only
    expertise_categories: Set[str] = Field(default_factory=set)
    years_of_experience: int = Field(0, ge=0)
    max_mentees: Optional[int] = Field(None, ge=0, description="Defaults to DEFAULT_MAX_MENTEES for mentors.")
    rating: float = Field(0.0, ge=0.0, le=BusinessRules.MAX_RATING)
    is_active: bool = True

class UserUpdate(_TagFields):
    name: Optional[str] = Field(None, min_length=BusinessRules.MIN_NAME_LENGTH, max_length=BusinessRules.MAX_NAME_LENGTH)
    bio: Optional[str] = None
    skills: Optional[Set[str]] = None
    interests: Optional[Set[str]] = None
    expertise_categories: Optional[Set[str]] = None
    years_of_experience: Optional[int] = Field(None, ge=0)
    max_mentees: Optional[int] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0.0, le=BusinessRules.MAX_RATING)
    is_active: Optional[bool] = None


# --- Mentorship inputs ---

class Decision(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"

class MentorshipPair(ApiModel):
    student_uid: str = Field(..., min_length=1)
    mentor_uid: str = Field(..., min_length=1)

class MentorshipRequestCreate(MentorshipPair):
    pass

class MentorshipRespond(MentorshipPair):
    decision: Decision

class MentorshipTerminate(MentorshipPair):
    reason: str = Field(..., min_length=1, max_length=BusinessRules.MAX_TEXT_ENTRY_LENGTH)
    graceful: bool = Field(False, description="Ends as COMPLETED instead of TERMINATED.")

class MentorshipEntry(MentorshipPair):
    text: str = Field(..., min_length=1, max_length=BusinessRules.MAX_TEXT_ENTRY_LENGTH)


# --- Outputs ---

class UserResponse(ApiModel):
    uid: str
    type: UserType
    name: str
    bio: Optional[str]
    skills: List[str]
    interests: List[str]
    expertise_categories: List[str]
    years_of_experience: int
    max_mentees: int
    current_mentees: int
    rating: float
    total_mentees_ever: int
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

class ProfileSummary(ApiModel):
    uid: str
    name: str
    bio_excerpt: str
    skills: List[str]
    interests: List[str]

class MentorSummary(ApiModel):
    uid: str
    name: str
    bio_excerpt: str
    expertise_categories: List[str]
    skills: List[str]
    rating: float
    years_of_experience: int
    current_mentees: int
    max_mentees: int
    free_slots: int
    score: Optional[float] = None
    common_skills: List[str] = Field(default_factory=list)
    common_interests: List[str] = Field(default_factory=list)
    explanations: List[str] = Field(default_factory=list)

class MentorshipEdgeResponse(ApiModel):
    id: int
    student_uid: str
    mentor_uid: str
    status: MentorshipStatus
    start_date: datetime
    goals: List[str]
    notes: List[str]
    last_decision_at: Optional[datetime]
    ended_at: Optional[datetime]
    end_reason: Optional[str]

class PendingRequestView(ApiModel):
    edge_id: int
    student_uid: str
    mentor_uid: str
    status: MentorshipStatus
    start_date: datetime
    goals: List[str]
    notes: List[str]
    counterpart: ProfileSummary

class StatusResult(ApiModel):
    student_uid: str
    mentor_uid: str
    status: MentorshipStatus
    current_mentees: int
    max_mentees: int

class CapacityAuditEntry(ApiModel):
    mentor_uid: str
    recorded_mentees: int
    active_edges: int
    max_mentees: int
    drift: int
    over_capacity: bool
