import logging
from typing import Iterable, List, Optional

from ..models import User, UserType
from ..schemas import normalize_tags

logger = logging.getLogger(__name__)


def normalize_category(category: Optional[str]) -> Optional[str]:
    """Brings a category filter into the same form as stored expertise tags."""
    if category is None:
        return None
    tags = normalize_tags([category])
    return next(iter(tags)) if tags else None


def is_eligible(mentor: User, category: Optional[str] = None) -> bool:
    """A mentor can be suggested if active, not full, and (optionally) covers the category."""
    mentor_id = mentor.uid # For logging

    # 1. Type / Active Check
    if mentor.type != UserType.MENTOR.value or not mentor.is_active:
        logger.debug(f"Mentor {mentor_id} filtered out: inactive or not a mentor.")
        return False

    # 2. Capacity Check
    if (mentor.current_mentees or 0) >= (mentor.max_mentees or 0):
        logger.debug(f"Mentor {mentor_id} filtered out: Exceeded capacity.")
        return False

    # 3. Category Check (exact membership)
    if category is not None and category not in mentor.expertise_set:
        logger.debug(f"Mentor {mentor_id} filtered out: no '{category}' expertise.")
        return False

    return True


def apply_filters(candidate_mentors: Iterable[User], category: Optional[str] = None,
                  exclude_uids: Iterable[str] = ()) -> List[User]:
    """
    Applies the eligibility rules to a list of candidate mentors.

    Args:
        candidate_mentors: Mentor profiles to check.
        category: Optional expertise category the mentor must list.
        exclude_uids: Mentors to leave out regardless of eligibility.

    Returns:
        List[User]: Eligible mentors, input order preserved.
    """
    category = normalize_category(category)
    excluded = set(exclude_uids)
    candidates = list(candidate_mentors)

    filtered_mentors = [
        mentor for mentor in candidates
        if mentor.uid not in excluded and is_eligible(mentor, category)
    ]

    logger.info(f"Filtered {len(candidates)} candidates down to {len(filtered_mentors)}.")
    return filtered_mentors
