import logging
from typing import List, Tuple

from ..models import User
from ..schemas import MentorSummary
from ..utils.response_enricher import ResponseEnricher
from .compatibility import CompatibilityBreakdown

logger = logging.getLogger(__name__)


def explain(mentor: User, match: CompatibilityBreakdown) -> List[str]:
    """Human-readable reasons behind a compatibility score."""
    explanations = []

    if match.common_skills:
        explanations.append(f"Shared skills: {', '.join(match.common_skills)}.")

    if match.common_interests:
        explanations.append(f"Mentors in your areas of interest: {', '.join(match.common_interests)}.")

    free_slots = mentor.free_slots
    if free_slots > 0:
        explanations.append(f"{free_slots} open mentee slot{'s' if free_slots > 1 else ''}.")

    if mentor.rating:
        explanations.append(f"Rated {mentor.rating:.1f} / 5 by past mentees.")

    return explanations


def mentor_summary(mentor: User, match: CompatibilityBreakdown = None) -> MentorSummary:
    """Builds the MentorSummary shown in candidate and directory listings."""
    summary = MentorSummary(
        uid=mentor.uid,
        name=mentor.name,
        bio_excerpt=ResponseEnricher.bio_excerpt(mentor.bio),
        expertise_categories=sorted(mentor.expertise_set),
        skills=sorted(mentor.skill_set),
        rating=mentor.rating or 0.0,
        years_of_experience=mentor.years_of_experience or 0,
        current_mentees=mentor.current_mentees or 0,
        max_mentees=mentor.max_mentees or 0,
        free_slots=mentor.free_slots,
    )
    if match is not None:
        summary.score = round(match.score, 6)
        summary.common_skills = match.common_skills
        summary.common_interests = match.common_interests
        summary.explanations = explain(mentor, match)
    return summary


def post_process_matches(ranked: List[Tuple[User, CompatibilityBreakdown]]) -> List[MentorSummary]:
    """Turns ranked (mentor, breakdown) pairs into MentorSummary objects."""
    final_recommendations = [mentor_summary(mentor, match) for mentor, match in ranked]
    logger.info(f"Post-processed to {len(final_recommendations)} recommendations.")
    return final_recommendations
