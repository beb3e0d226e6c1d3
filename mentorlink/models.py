# mentorlink/models.py
from enum import Enum
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Boolean, Float, ForeignKey, Sequence, Index, text
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from .database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class UserType(str, Enum):
    STUDENT = "student"
    MENTOR = "mentor"
    ADMIN = "admin"
    DONOR = "donor"


class MentorshipStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    COMPLETED = "completed"
    TERMINATED = "terminated"


# A pair may hold at most one edge in these states
OPEN_STATUSES = (MentorshipStatus.PENDING, MentorshipStatus.ACTIVE)

_OPEN_STATUS_CLAUSE = text("status IN ('pending', 'active')")


class User(Base):
    __tablename__ = "users"

    uid = Column(String, primary_key=True, index=True)
    type = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    bio = Column(Text, nullable=True)

    # Stored as sorted lists; exposed to the domain as sets
    skills = Column(JSONType, nullable=False, default=list)
    interests = Column(JSONType, nullable=False, default=list)

    # Mentor-only fields
    expertise_categories = Column(JSONType, nullable=False, default=list)
    years_of_experience = Column(Integer, nullable=False, default=0)
    max_mentees = Column(Integer, nullable=False, default=0)
    current_mentees = Column(Integer, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=0.0)
    total_mentees_ever = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    edges_as_student = relationship(
        "MentorshipEdge", back_populates="student", foreign_keys="MentorshipEdge.student_uid"
    )
    edges_as_mentor = relationship(
        "MentorshipEdge", back_populates="mentor", foreign_keys="MentorshipEdge.mentor_uid"
    )

    @property
    def skill_set(self) -> frozenset:
        return frozenset(self.skills or [])

    @property
    def interest_set(self) -> frozenset:
        return frozenset(self.interests or [])

    @property
    def expertise_set(self) -> frozenset:
        return frozenset(self.expertise_categories or [])

    @property
    def free_slots(self) -> int:
        return max(0, (self.max_mentees or 0) - (self.current_mentees or 0))

    def __repr__(self):
        return f"<User(uid='{self.uid}', type='{self.type}', name='{self.name}')>"


class MentorshipEdge(Base):
    __tablename__ = "mentorship_edges"

    id = Column(Integer, Sequence('mentorship_edge_id_seq'), primary_key=True, index=True)

    student_uid = Column(String, ForeignKey("users.uid"), nullable=False, index=True)
    mentor_uid = Column(String, ForeignKey("users.uid"), nullable=False, index=True)

    status = Column(String, default=MentorshipStatus.PENDING.value, nullable=False)

    start_date = Column(DateTime(timezone=True), nullable=False)
    goals = Column(JSONType, nullable=False, default=list)
    notes = Column(JSONType, nullable=False, default=list)
    last_decision_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    end_reason = Column(Text, nullable=True)

    student = relationship("User", back_populates="edges_as_student", foreign_keys=[student_uid])
    mentor = relationship("User", back_populates="edges_as_mentor", foreign_keys=[mentor_uid])

    __table_args__ = (
        Index(
            "uq_mentorship_open_pair",
            "student_uid",
            "mentor_uid",
            unique=True,
            postgresql_where=_OPEN_STATUS_CLAUSE,
            sqlite_where=_OPEN_STATUS_CLAUSE,
        ),
        Index("ix_mentorship_mentor_status", "mentor_uid", "status"),
    )

    def __repr__(self):
        return f"<MentorshipEdge(id={self.id}, student_uid='{self.student_uid}', mentor_uid='{self.mentor_uid}', status='{self.status}')>"
