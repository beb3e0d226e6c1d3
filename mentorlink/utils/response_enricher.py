# mentorlink/utils/response_enricher.py
from typing import List
from ..config import get_settings
from ..models import MentorshipEdge, User, UserType
from ..schemas import ProfileSummary, PendingRequestView, MentorshipEdgeResponse

class ResponseEnricher:
    @staticmethod
    def bio_excerpt(bio: str) -> str:
        """Cuts a bio down to BIO_EXCERPT_LENGTH characters"""
        limit = get_settings().BIO_EXCERPT_LENGTH
        raw_bio = bio or ''
        snippet = raw_bio[:limit]
        if len(raw_bio) > limit:
            snippet += '...'
        return snippet

    @staticmethod
    def profile_summary(user: User) -> ProfileSummary:
        return ProfileSummary(
            uid=user.uid,
            name=user.name,
            bio_excerpt=ResponseEnricher.bio_excerpt(user.bio),
            skills=sorted(user.skill_set),
            interests=sorted(user.interest_set | user.expertise_set),
        )

    @staticmethod
    def edge_view(edge: MentorshipEdge, viewer_role: UserType) -> PendingRequestView:
        """Joins an edge with the profile of the side the viewer is not on"""
        counterpart = edge.student if viewer_role == UserType.MENTOR else edge.mentor
        return PendingRequestView(
            edge_id=edge.id,
            student_uid=edge.student_uid,
            mentor_uid=edge.mentor_uid,
            status=edge.status,
            start_date=edge.start_date,
            goals=list(edge.goals or []),
            notes=list(edge.notes or []),
            counterpart=ResponseEnricher.profile_summary(counterpart),
        )

    @staticmethod
    def edge_views(edges: List[MentorshipEdge], viewer_role: UserType) -> List[PendingRequestView]:
        return [ResponseEnricher.edge_view(edge, viewer_role) for edge in edges]

    @staticmethod
    def edge_response(edge: MentorshipEdge) -> MentorshipEdgeResponse:
        return MentorshipEdgeResponse.model_validate(edge)
