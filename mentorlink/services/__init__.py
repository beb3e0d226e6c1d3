# mentorlink/services/__init__.py
from .mentorship_service import MentorshipService
from .profile_service import ProfileService
from .matching_service import MatchingService

__all__ = ["MentorshipService", "ProfileService", "MatchingService"]
