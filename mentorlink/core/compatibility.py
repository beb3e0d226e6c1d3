import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..models import User

logger = logging.getLogger(__name__)

# Default weights for the compatibility score
# Overlap dominates; rating is a minority contribution
WEIGHTS = {
    "overlap": 0.7,
    "availability": 0.15,
    "rating": 0.15,
}

MAX_RATING = 5.0

# Free slots beyond this many earn no extra availability bonus
AVAILABILITY_SLOT_CAP = 5


@dataclass(frozen=True)
class CompatibilityBreakdown:
    score: float
    overlap_ratio: float
    availability: float
    rating_component: float
    common_skills: List[str] = field(default_factory=list)
    common_interests: List[str] = field(default_factory=list)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _availability_ratio(mentor: User, slot_cap: int = AVAILABILITY_SLOT_CAP) -> float:
    """Free slots counted up to ``slot_cap``, in [0, 1]. More open slots score higher."""
    if slot_cap <= 0:
        return 0.0
    return _clamp(min(mentor.free_slots, slot_cap) / slot_cap, 0.0, 1.0)


def breakdown(student: User, mentor: User, weights: Optional[Dict[str, float]] = None,
              slot_cap: int = AVAILABILITY_SLOT_CAP) -> CompatibilityBreakdown:
    """
    Computes the compatibility score and its components for a student/mentor pair.

    overlap = |student.skills & mentor.skills| + |student.interests & mentor.expertise_categories|,
    normalized by max(1, |student.skills| + |student.interests|), then combined with
    the mentor's free slots (capped at ``slot_cap``) and rating, both scaled to [0, 1].

    Never raises on well-formed profiles; missing collections count as empty.
    """
    weights = weights or WEIGHTS

    student_skills = student.skill_set
    student_interests = student.interest_set

    common_skills = sorted(student_skills & mentor.skill_set)
    common_interests = sorted(student_interests & mentor.expertise_set)

    overlap = len(common_skills) + len(common_interests)
    overlap_ratio = overlap / max(1, len(student_skills) + len(student_interests))

    availability = _availability_ratio(mentor, slot_cap)
    rating_component = _clamp(float(mentor.rating or 0.0), 0.0, MAX_RATING) / MAX_RATING

    score = (
        weights["overlap"] * overlap_ratio +
        weights["availability"] * availability +
        weights["rating"] * rating_component
    )
    return CompatibilityBreakdown(
        score=score,
        overlap_ratio=overlap_ratio,
        availability=availability,
        rating_component=rating_component,
        common_skills=common_skills,
        common_interests=common_interests,
    )


def score(student: User, mentor: User, weights: Optional[Dict[str, float]] = None,
          slot_cap: int = AVAILABILITY_SLOT_CAP) -> float:
    """Pure compatibility score for a student/mentor pair."""
    return breakdown(student, mentor, weights, slot_cap).score


def rank_key(candidate_score: float, mentor: User) -> Tuple[float, int, str]:
    """Sort key: higher score first, then less-loaded mentor, then uid."""
    return (-candidate_score, mentor.current_mentees or 0, mentor.uid)
