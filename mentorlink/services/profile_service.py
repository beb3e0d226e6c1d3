# mentorlink/services/profile_service.py
from typing import Dict, Any
from datetime import datetime, timezone
import logging

from ..config import get_settings
from ..constants import ErrorMessages
from ..exceptions import ProfileAlreadyExistsError, BusinessLogicError
from ..graph_store import GraphStore
from ..models import User, UserType
from ..schemas import UserCreate, UserUpdate
from ..utils.validation_utils import ValidationUtils

logger = logging.getLogger(__name__)

# Counters are owned by MentorshipService and never written through profiles
_PROTECTED_FIELDS = {"uid", "type", "current_mentees", "total_mentees_ever", "max_mentees"}
_TAG_FIELDS = {"skills", "interests", "expertise_categories"}
_MENTOR_ONLY_FIELDS = {"expertise_categories", "years_of_experience", "max_mentees", "rating"}

class ProfileService:
    def __init__(self, store: GraphStore):
        self.store = store
        self.settings = get_settings()
        self.validator = ValidationUtils(store)

    def create_user(self, data: UserCreate) -> User:
        """Registers a user node; tags are stored as sorted, de-duplicated lists"""
        if self.store.get_user(data.uid):
            raise ProfileAlreadyExistsError(ErrorMessages.DUPLICATE_PROFILE, details={"uid": data.uid})

        fields = data.model_dump()
        is_mentor = data.type == UserType.MENTOR
        if not is_mentor:
            # Non-mentors carry no capacity or expertise
            for key in _MENTOR_ONLY_FIELDS:
                fields.pop(key, None)
        elif fields.get("max_mentees") is None:
            fields["max_mentees"] = self.settings.DEFAULT_MAX_MENTEES

        user = User(
            uid=data.uid,
            type=data.type.value,
            **self._prepare_profile_data({k: v for k, v in fields.items() if k not in ("uid", "type")}),
        )
        user = self.store.add_user(user)
        logger.info(f"{user.type.capitalize()} {user.uid} ({user.name}) created")
        return user

    def get_user(self, uid: str) -> User:
        return self.validator.get_user_or_404(uid)

    def update_user(self, uid: str, data: UserUpdate) -> User:
        """Updates mutable profile fields; mentor counters are left alone"""
        user = self.validator.get_user_or_404(uid)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        if user.type != UserType.MENTOR.value:
            ignored = _MENTOR_ONLY_FIELDS & updates.keys()
            if ignored:
                raise BusinessLogicError(f"Fields only apply to mentors: {', '.join(sorted(ignored))}")

        for key, value in self._prepare_profile_data(updates).items():
            if key in _PROTECTED_FIELDS or not hasattr(user, key):
                continue
            setattr(user, key, value)

        user.updated_at = datetime.now(timezone.utc)
        # Capacity goes through the store's conditional update, in the same commit
        user = self.store.save_user(user, max_mentees=updates.get("max_mentees"))
        logger.info(f"User {user.uid} ({user.name}) updated: {sorted(updates)}")
        return user

    def _prepare_profile_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Prepares profile data for database insertion"""
        prepared = {}
        for key, value in data.items():
            prepared[key] = self._process_field_value(key, value)
        return prepared

    def _process_field_value(self, key: str, value: Any) -> Any:
        """Processes field values based on their type"""
        if key in _TAG_FIELDS and value is not None:
            return sorted(value if not isinstance(value, str) else [value])
        return value
