# mentorlink/utils/validation_utils.py
from ..graph_store import GraphStore
from ..models import User, UserType, MentorshipEdge, MentorshipStatus
from ..constants import ErrorMessages
from ..exceptions import NotFoundError, InvalidStatusTransitionError

class ValidationUtils:
    def __init__(self, store: GraphStore):
        self.store = store

    def get_user_or_404(self, uid: str) -> User:
        user = self.store.get_user(uid)
        if not user:
            raise NotFoundError(ErrorMessages.USER_NOT_FOUND, details={"uid": uid})
        return user

    def get_student_or_404(self, student_uid: str) -> User:
        student = self.store.get_user(student_uid)
        if not student or student.type != UserType.STUDENT.value:
            raise NotFoundError(ErrorMessages.STUDENT_NOT_FOUND, details={"uid": student_uid})
        return student

    def get_mentor_or_404(self, mentor_uid: str) -> User:
        mentor = self.store.get_user(mentor_uid)
        if not mentor or mentor.type != UserType.MENTOR.value:
            raise NotFoundError(ErrorMessages.MENTOR_NOT_FOUND, details={"uid": mentor_uid})
        return mentor

    def get_latest_edge_or_404(self, student_uid: str, mentor_uid: str) -> MentorshipEdge:
        edge = self.store.get_edge(student_uid, mentor_uid)
        if not edge:
            raise NotFoundError(
                ErrorMessages.MENTORSHIP_NOT_FOUND,
                details={"student_uid": student_uid, "mentor_uid": mentor_uid},
            )
        return edge

    def validate_edge_status(self, edge: MentorshipEdge, expected_status: MentorshipStatus):
        if edge.status != expected_status.value:
            raise InvalidStatusTransitionError(
                ErrorMessages.INVALID_TRANSITION,
                details={"current_status": edge.status, "expected_status": expected_status.value},
            )
