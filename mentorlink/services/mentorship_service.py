# mentorlink/services/mentorship_service.py
import logging
from typing import List, Optional

from ..config import get_settings
from ..constants import ErrorMessages
from ..exceptions import ConflictError, InvalidStatusTransitionError, NotFoundError
from ..graph_store import GraphStore
from ..models import MentorshipEdge, MentorshipStatus, UserType
from ..schemas import CapacityAuditEntry, Decision
from ..utils.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)


class MentorshipService:
    """
    Owns the mentorship state machine and the mentor capacity counter.

        NONE -> PENDING -> ACTIVE -> COMPLETED | TERMINATED
                        -> REJECTED

    Every status change and every change to current_mentees goes through
    GraphStore.transition_edge, which applies both in one transaction.
    """

    def __init__(self, store: GraphStore):
        self.store = store
        self.settings = get_settings()
        self.validator = ValidationUtils(store)

    def _validate_pair(self, student_uid: str, mentor_uid: str):
        self.validator.get_student_or_404(student_uid)
        return self.validator.get_mentor_or_404(mentor_uid)

    def request_mentorship(self, student_uid: str, mentor_uid: str) -> MentorshipEdge:
        """Creates a PENDING edge. The mentor's counter is only reserved on acceptance."""
        self._validate_pair(student_uid, mentor_uid)

        existing = self.store.get_open_edge(student_uid, mentor_uid)
        if existing:
            logger.warning(f"Duplicate request {student_uid} -> {mentor_uid}: edge {existing.id} is {existing.status}")
            raise ConflictError(ErrorMessages.ALREADY_OPEN, details={"current_status": existing.status})

        edge = self.store.create_edge(student_uid, mentor_uid)
        logger.info(f"Mentorship requested: student {student_uid} -> mentor {mentor_uid} (edge {edge.id})")
        return edge

    def _get_edge_in_state(self, student_uid: str, mentor_uid: str, expected: MentorshipStatus) -> MentorshipEdge:
        """
        The pair's open edge, which must be in ``expected``. Without one, the
        latest edge only decides between NotFound and InvalidTransition.
        """
        edge = self.store.get_open_edge(student_uid, mentor_uid)
        if edge is None:
            edge = self.validator.get_latest_edge_or_404(student_uid, mentor_uid)
        self.validator.validate_edge_status(edge, expected)
        return edge

    def respond_to_mentorship(self, student_uid: str, mentor_uid: str, decision: Decision) -> MentorshipEdge:
        """Accepts (reserving a slot) or rejects the pair's PENDING request"""
        self._validate_pair(student_uid, mentor_uid)
        edge = self._get_edge_in_state(student_uid, mentor_uid, MentorshipStatus.PENDING)

        if Decision(decision) == Decision.ACCEPT:
            return self.store.transition_edge(
                edge.id, mentor_uid, MentorshipStatus.PENDING, MentorshipStatus.ACTIVE, counter_delta=1
            )
        return self.store.transition_edge(
            edge.id, mentor_uid, MentorshipStatus.PENDING, MentorshipStatus.REJECTED
        )

    def terminate_mentorship(
        self, student_uid: str, mentor_uid: str, reason: str, graceful: bool = False
    ) -> MentorshipEdge:
        """Ends an ACTIVE mentorship and frees the mentor's slot"""
        self._validate_pair(student_uid, mentor_uid)
        edge = self._get_edge_in_state(student_uid, mentor_uid, MentorshipStatus.ACTIVE)

        target = MentorshipStatus.COMPLETED if graceful else MentorshipStatus.TERMINATED
        return self.store.transition_edge(
            edge.id, mentor_uid, MentorshipStatus.ACTIVE, target, counter_delta=-1, reason=reason
        )

    # --- Queries ---

    def list_pending_for_mentor(self, mentor_uid: str) -> List[MentorshipEdge]:
        """PENDING requests addressed to a mentor, oldest first"""
        self.validator.get_mentor_or_404(mentor_uid)
        return self.store.list_edges_for_user(mentor_uid, UserType.MENTOR, MentorshipStatus.PENDING)

    def list_pending_for_student(self, student_uid: str) -> List[MentorshipEdge]:
        """PENDING requests a student has sent, oldest first"""
        self.validator.get_student_or_404(student_uid)
        return self.store.list_edges_for_user(student_uid, UserType.STUDENT, MentorshipStatus.PENDING)

    def list_active_for_mentor(self, mentor_uid: str) -> List[MentorshipEdge]:
        self.validator.get_mentor_or_404(mentor_uid)
        return self.store.list_edges_for_user(mentor_uid, UserType.MENTOR, MentorshipStatus.ACTIVE)

    def list_active_for_student(self, student_uid: str) -> List[MentorshipEdge]:
        self.validator.get_student_or_404(student_uid)
        return self.store.list_edges_for_user(student_uid, UserType.STUDENT, MentorshipStatus.ACTIVE)

    def get_history(self, student_uid: str, mentor_uid: str) -> List[MentorshipEdge]:
        """Every edge ever created for the pair, oldest first"""
        self._validate_pair(student_uid, mentor_uid)
        return self.store.list_edges_for_pair(student_uid, mentor_uid)

    # --- Goals and notes ---

    def _get_open_edge(self, student_uid: str, mentor_uid: str) -> MentorshipEdge:
        self._validate_pair(student_uid, mentor_uid)
        edge = self.store.get_open_edge(student_uid, mentor_uid)
        if edge:
            return edge
        latest = self.store.get_edge(student_uid, mentor_uid)
        if latest is None:
            raise NotFoundError(ErrorMessages.MENTORSHIP_NOT_FOUND)
        raise InvalidStatusTransitionError(ErrorMessages.INVALID_TRANSITION, details={"current_status": latest.status})

    def add_goal(self, student_uid: str, mentor_uid: str, goal: str) -> MentorshipEdge:
        edge = self._get_open_edge(student_uid, mentor_uid)
        return self.store.append_to_edge(edge.id, "goals", goal.strip())

    def add_note(self, student_uid: str, mentor_uid: str, note: str) -> MentorshipEdge:
        edge = self._get_open_edge(student_uid, mentor_uid)
        return self.store.append_to_edge(edge.id, "notes", note.strip())

    # --- Counter consistency ---

    def audit_capacity(self, mentor_uid: Optional[str] = None) -> List[CapacityAuditEntry]:
        """Compares every mentor's current_mentees with the count of ACTIVE edges"""
        if mentor_uid is not None:
            mentors = [self.validator.get_mentor_or_404(mentor_uid)]
        else:
            mentors = self.store.list_mentors(active_only=False)

        active_counts = self.store.count_active_edges_by_mentor()
        report = []
        for mentor in mentors:
            active = active_counts.get(mentor.uid, 0)
            report.append(CapacityAuditEntry(
                mentor_uid=mentor.uid,
                recorded_mentees=mentor.current_mentees,
                active_edges=active,
                max_mentees=mentor.max_mentees,
                drift=mentor.current_mentees - active,
                over_capacity=active > mentor.max_mentees,
            ))
        drifting = [entry for entry in report if entry.drift]
        if drifting:
            logger.warning(f"Capacity audit found {len(drifting)} mentor(s) with counter drift: {[e.mentor_uid for e in drifting]}")
        return report

    def repair_capacity(self, mentor_uid: Optional[str] = None) -> List[CapacityAuditEntry]:
        """Recomputes drifting counters from ACTIVE edges; returns the entries that were fixed"""
        repaired = []
        for entry in self.audit_capacity(mentor_uid):
            if not entry.drift:
                continue
            new_value = self.store.recompute_current_mentees(entry.mentor_uid)
            logger.warning(f"Repaired mentor {entry.mentor_uid} counter: {entry.recorded_mentees} -> {new_value}")
            repaired.append(entry)
        return repaired
