# mentorlink/services/matching_service.py
import heapq
import logging
from itertools import islice
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..config import get_settings
from ..core import compatibility, filtering, post_processing
from ..core.compatibility import CompatibilityBreakdown
from ..graph_store import GraphStore
from ..models import User
from ..schemas import MentorSummary
from ..utils.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)


class RankedCandidates:
    """
    Eligible mentors for one student, yielded best match first.

    Scores are computed once; ordering is produced lazily from a heap on each
    iteration, so the sequence can be walked again from the start.
    """

    def __init__(self, student: User, mentors: Iterable[User], weights: Dict[str, float],
                 slot_cap: int = compatibility.AVAILABILITY_SLOT_CAP):
        self.student = student
        self._scored: List[Tuple[Tuple[float, int, str], User, CompatibilityBreakdown]] = []
        for mentor in mentors:
            match = compatibility.breakdown(student, mentor, weights, slot_cap)
            self._scored.append((compatibility.rank_key(match.score, mentor), mentor, match))

    def __len__(self) -> int:
        return len(self._scored)

    def __iter__(self) -> Iterator[Tuple[User, CompatibilityBreakdown]]:
        heap = [(key, index) for index, (key, _, _) in enumerate(self._scored)]
        heapq.heapify(heap)
        while heap:
            _, index = heapq.heappop(heap)
            _, mentor, match = self._scored[index]
            yield mentor, match


class MatchingService:
    def __init__(self, store: GraphStore):
        self.store = store
        self.settings = get_settings()
        self.validator = ValidationUtils(store)

    def _weights(self) -> Dict[str, float]:
        return {
            "overlap": self.settings.SCORE_OVERLAP_WEIGHT,
            "availability": self.settings.SCORE_AVAILABILITY_WEIGHT,
            "rating": self.settings.SCORE_RATING_WEIGHT,
        }

    def _clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.settings.MATCH_DEFAULT_LIMIT
        return max(0, min(limit, self.settings.MATCH_MAX_LIMIT))

    def rank_candidates(
        self,
        student_uid: str,
        category: Optional[str] = None,
        exclude_uids: Iterable[str] = (),
    ) -> RankedCandidates:
        """Scores every eligible mentor for the student. Raises NotFoundError for an unknown student."""
        student = self.validator.get_student_or_404(student_uid)

        # 1. Retrieval: active mentors with a free slot
        mentors = self.store.list_mentors(active_only=True, with_free_slot=True)

        # 2. Filtering: capacity re-check, category membership, exclusions
        eligible = filtering.apply_filters(mentors, category=category, exclude_uids=exclude_uids)

        # 3. Scoring
        return RankedCandidates(student, eligible, self._weights(), self.settings.SCORE_AVAILABILITY_SLOT_CAP)

    def find_candidates(
        self,
        student_uid: str,
        category: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[MentorSummary]:
        """
        Returns up to ``limit`` mentor suggestions for a student, best first.
        An empty list means no mentor is currently eligible.
        """
        logger.info(f"Starting matching process for student {student_uid} (category={category}).")
        limit = self._clamp_limit(limit)

        ranked = self.rank_candidates(student_uid, category=category)
        recommendations = post_processing.post_process_matches(list(islice(ranked, limit)))

        logger.info(f"Matching process completed. Found {len(recommendations)} recommendations out of {len(ranked)} eligible.")
        return recommendations

    def next_best_candidate(self, student_uid: str, exclude_mentor_uid: str) -> Optional[MentorSummary]:
        """Top suggestion for the student other than ``exclude_mentor_uid``, if any."""
        ranked = self.rank_candidates(student_uid, exclude_uids=[exclude_mentor_uid])
        for mentor, match in ranked:
            return post_processing.mentor_summary(mentor, match)
        return None

    def list_mentors(self, category: Optional[str] = None, limit: Optional[int] = None) -> List[MentorSummary]:
        """Mentor directory: active mentors (full or not), highest rated first."""
        limit = self._clamp_limit(limit)
        category = filtering.normalize_category(category)

        mentors = [
            mentor for mentor in self.store.list_mentors(active_only=True)
            if category is None or category in mentor.expertise_set
        ]
        mentors.sort(key=lambda m: (-(m.rating or 0.0), m.uid))
        return [post_processing.mentor_summary(mentor) for mentor in mentors[:limit]]
