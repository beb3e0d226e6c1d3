# mentorlink/graph_store.py
"""
Profile and relationship store contract.

The lifecycle and matching services only talk to a ``GraphStore``. The one
implementation here keeps users and edges in two SQLAlchemy tables; a graph
database driver can replace it as long as ``transition_edge`` keeps its
compare-and-swap semantics on edge status and mentor counter together.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select, update, func, case
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .models import User, MentorshipEdge, MentorshipStatus, UserType, OPEN_STATUSES
from .exceptions import (
    BusinessLogicError,
    NotFoundError,
    ConflictError,
    InvalidStatusTransitionError,
    CapacityExceededError,
    StoreUnavailableError,
)
from .constants import ErrorMessages
from .utils.retry import store_retry

logger = logging.getLogger(__name__)

_OPEN_VALUES = [s.value for s in OPEN_STATUSES]


class GraphStore(ABC):
    """Read and conditional-write access to user nodes and mentorship edges."""

    @abstractmethod
    def get_user(self, uid: str) -> Optional[User]: ...

    @abstractmethod
    def get_edge(self, student_uid: str, mentor_uid: str) -> Optional[MentorshipEdge]:
        """Most recently created edge for the pair (highest id), whatever its status."""

    @abstractmethod
    def get_open_edge(self, student_uid: str, mentor_uid: str) -> Optional[MentorshipEdge]: ...

    @abstractmethod
    def list_edges_for_pair(self, student_uid: str, mentor_uid: str) -> List[MentorshipEdge]: ...

    @abstractmethod
    def create_edge(self, student_uid: str, mentor_uid: str) -> MentorshipEdge: ...

    @abstractmethod
    def transition_edge(
        self,
        edge_id: int,
        mentor_uid: str,
        expected: MentorshipStatus,
        new: MentorshipStatus,
        counter_delta: int = 0,
        reason: Optional[str] = None,
    ) -> MentorshipEdge:
        """
        Atomically move an edge from ``expected`` to ``new`` and apply
        ``counter_delta`` (-1, 0 or +1) to the mentor's current_mentees.
        A +1 only applies while current_mentees < max_mentees; a -1 never
        takes the counter below zero. Nothing is written if any check fails.
        """

    @abstractmethod
    def append_to_edge(self, edge_id: int, field: str, entry: str) -> MentorshipEdge: ...

    @abstractmethod
    def list_edges_for_user(self, uid: str, role: UserType, status: MentorshipStatus) -> List[MentorshipEdge]: ...

    @abstractmethod
    def list_mentors(self, active_only: bool = True, with_free_slot: bool = False) -> List[User]: ...

    @abstractmethod
    def count_active_edges_by_mentor(self) -> Dict[str, int]: ...

    @abstractmethod
    def recompute_current_mentees(self, mentor_uid: str) -> int:
        """Reset current_mentees to the number of active edges, in one statement."""

    @abstractmethod
    def add_user(self, user: User) -> User: ...

    @abstractmethod
    def save_user(self, user: User, max_mentees: Optional[int] = None) -> User:
        """
        Persist profile edits. A new ``max_mentees`` is applied in the same
        transaction and only if it stays at or above current_mentees.
        """


class SqlAlchemyGraphStore(GraphStore):
    """GraphStore backed by the ``users`` and ``mentorship_edges`` tables."""

    def __init__(self, db: Session):
        self.db = db

    def rollback(self):
        self.db.rollback()

    # --- Reads ---

    @store_retry()
    def get_user(self, uid: str) -> Optional[User]:
        return self.db.query(User).filter(User.uid == uid).first()

    @store_retry()
    def get_edge(self, student_uid: str, mentor_uid: str) -> Optional[MentorshipEdge]:
        return self.db.query(MentorshipEdge).filter(
            MentorshipEdge.student_uid == student_uid,
            MentorshipEdge.mentor_uid == mentor_uid,
        ).order_by(MentorshipEdge.id.desc()).first()

    @store_retry()
    def get_open_edge(self, student_uid: str, mentor_uid: str) -> Optional[MentorshipEdge]:
        return self.db.query(MentorshipEdge).filter(
            MentorshipEdge.student_uid == student_uid,
            MentorshipEdge.mentor_uid == mentor_uid,
            MentorshipEdge.status.in_(_OPEN_VALUES),
        ).first()

    @store_retry()
    def list_edges_for_pair(self, student_uid: str, mentor_uid: str) -> List[MentorshipEdge]:
        return self.db.query(MentorshipEdge).filter(
            MentorshipEdge.student_uid == student_uid,
            MentorshipEdge.mentor_uid == mentor_uid,
        ).order_by(MentorshipEdge.id.asc()).all()

    @store_retry()
    def list_edges_for_user(self, uid: str, role: UserType, status: MentorshipStatus) -> List[MentorshipEdge]:
        """Edges in ``status`` where ``uid`` plays ``role``, counterpart eagerly loaded, oldest first."""
        if role == UserType.MENTOR:
            query = self.db.query(MentorshipEdge).options(
                joinedload(MentorshipEdge.student)
            ).filter(MentorshipEdge.mentor_uid == uid)
        else:
            query = self.db.query(MentorshipEdge).options(
                joinedload(MentorshipEdge.mentor)
            ).filter(MentorshipEdge.student_uid == uid)

        return query.filter(MentorshipEdge.status == status.value).order_by(
            MentorshipEdge.start_date.asc(), MentorshipEdge.id.asc()
        ).all()

    @store_retry()
    def list_mentors(self, active_only: bool = True, with_free_slot: bool = False) -> List[User]:
        query = self.db.query(User).filter(User.type == UserType.MENTOR.value)
        if active_only:
            query = query.filter(User.is_active == True)  # noqa: E712
        if with_free_slot:
            query = query.filter(User.current_mentees < User.max_mentees)
        return query.order_by(User.uid.asc()).all()

    @store_retry()
    def count_active_edges_by_mentor(self) -> Dict[str, int]:
        rows = self.db.query(
            MentorshipEdge.mentor_uid, func.count(MentorshipEdge.id)
        ).filter(
            MentorshipEdge.status == MentorshipStatus.ACTIVE.value
        ).group_by(MentorshipEdge.mentor_uid).all()
        return {mentor_uid: count for mentor_uid, count in rows}

    # --- Writes ---

    def create_edge(self, student_uid: str, mentor_uid: str) -> MentorshipEdge:
        edge = MentorshipEdge(
            student_uid=student_uid,
            mentor_uid=mentor_uid,
            status=MentorshipStatus.PENDING.value,
            start_date=datetime.now(timezone.utc),
            goals=[],
            notes=[],
        )
        try:
            self.db.add(edge)
            self.db.commit()
        except IntegrityError as e:
            # Lost a race against another request for the same pair
            self.db.rollback()
            logger.warning(f"Open edge already exists for student {student_uid} -> mentor {mentor_uid}: {e.orig}")
            raise ConflictError(ErrorMessages.ALREADY_OPEN)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error creating edge {student_uid} -> {mentor_uid}: {e}")
            raise StoreUnavailableError(ErrorMessages.STORE_UNAVAILABLE) from e

        self.db.refresh(edge)
        return edge

    def transition_edge(
        self,
        edge_id: int,
        mentor_uid: str,
        expected: MentorshipStatus,
        new: MentorshipStatus,
        counter_delta: int = 0,
        reason: Optional[str] = None,
    ) -> MentorshipEdge:
        if counter_delta not in (-1, 0, 1):
            raise ValueError(f"counter_delta must be -1, 0 or 1 (got {counter_delta})")

        now = datetime.now(timezone.utc)
        values = {"status": new.value}
        if new in (MentorshipStatus.ACTIVE, MentorshipStatus.REJECTED):
            values["last_decision_at"] = now
        if new in (MentorshipStatus.COMPLETED, MentorshipStatus.TERMINATED):
            values["ended_at"] = now
            values["end_reason"] = reason

        try:
            # 1. Compare-and-swap on the edge status; the edge row is always locked first
            result = self.db.execute(
                update(MentorshipEdge)
                .where(
                    MentorshipEdge.id == edge_id,
                    MentorshipEdge.mentor_uid == mentor_uid,
                    MentorshipEdge.status == expected.value,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                self._raise_failed_transition(edge_id, expected, new)

            # 2. Conditional counter update on the mentor row
            if counter_delta > 0:
                result = self.db.execute(
                    update(User)
                    .where(User.uid == mentor_uid, User.current_mentees < User.max_mentees)
                    .values(
                        current_mentees=User.current_mentees + 1,
                        total_mentees_ever=User.total_mentees_ever + 1,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    self.db.rollback()
                    logger.warning(f"Mentor {mentor_uid} is full; edge {edge_id} stays {expected.value}")
                    raise CapacityExceededError(ErrorMessages.CAPACITY_EXCEEDED)
            elif counter_delta < 0:
                self.db.execute(
                    update(User)
                    .where(User.uid == mentor_uid)
                    .values(current_mentees=case((User.current_mentees > 0, User.current_mentees - 1), else_=0))
                    .execution_options(synchronize_session=False)
                )

            self.db.commit()
        except BusinessLogicError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error transitioning edge {edge_id} to {new.value}: {e}")
            raise StoreUnavailableError(ErrorMessages.STORE_UNAVAILABLE) from e

        logger.info(f"Edge {edge_id} moved {expected.value} -> {new.value} (mentor {mentor_uid}, counter {counter_delta:+d})")
        if counter_delta:
            self.db.get(User, mentor_uid, populate_existing=True)
        return self.db.get(MentorshipEdge, edge_id, populate_existing=True)

    def _raise_failed_transition(self, edge_id: int, expected: MentorshipStatus, new: MentorshipStatus):
        current = self.db.get(MentorshipEdge, edge_id, populate_existing=True)
        if current is None:
            raise NotFoundError(ErrorMessages.MENTORSHIP_NOT_FOUND)
        logger.warning(f"Edge {edge_id} is {current.status}, expected {expected.value} for -> {new.value}")
        raise InvalidStatusTransitionError(
            ErrorMessages.INVALID_TRANSITION,
            details={"current_status": current.status, "expected_status": expected.value},
        )

    def append_to_edge(self, edge_id: int, field: str, entry: str) -> MentorshipEdge:
        if field not in ("goals", "notes"):
            raise ValueError(f"Cannot append to edge field '{field}'")
        try:
            edge = self.db.query(MentorshipEdge).filter(
                MentorshipEdge.id == edge_id
            ).with_for_update().populate_existing().first()
            if edge is None:
                raise NotFoundError(ErrorMessages.MENTORSHIP_NOT_FOUND)
            # Reassign so the JSON column is flagged dirty
            setattr(edge, field, [*(getattr(edge, field) or []), entry])
            self.db.commit()
        except BusinessLogicError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error appending to edge {edge_id}.{field}: {e}")
            raise StoreUnavailableError(ErrorMessages.STORE_UNAVAILABLE) from e

        self.db.refresh(edge)
        return edge

    def recompute_current_mentees(self, mentor_uid: str) -> int:
        active_count = (
            select(func.count(MentorshipEdge.id))
            .where(
                MentorshipEdge.mentor_uid == User.uid,
                MentorshipEdge.status == MentorshipStatus.ACTIVE.value,
            )
            .scalar_subquery()
        )
        try:
            self.db.execute(
                update(User)
                .where(User.uid == mentor_uid)
                .values(current_mentees=active_count)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error resetting counter for mentor {mentor_uid}: {e}")
            raise StoreUnavailableError(ErrorMessages.STORE_UNAVAILABLE) from e
        mentor = self.db.get(User, mentor_uid, populate_existing=True)
        return mentor.current_mentees if mentor else 0

    def add_user(self, user: User) -> User:
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"User {user.uid} already exists: {e.orig}")
            raise ConflictError(ErrorMessages.DUPLICATE_PROFILE)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error creating user {user.uid}: {e}")
            raise StoreUnavailableError(ErrorMessages.STORE_UNAVAILABLE) from e
        self.db.refresh(user)
        return user

    def save_user(self, user: User, max_mentees: Optional[int] = None) -> User:
        try:
            if max_mentees is not None:
                # Checked against the live counter, committed with the other edits
                result = self.db.execute(
                    update(User)
                    .where(User.uid == user.uid, User.current_mentees <= max_mentees)
                    .values(max_mentees=max_mentees)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    details = {"current_mentees": user.current_mentees, "requested_max_mentees": max_mentees}
                    self.db.rollback()
                    logger.warning(f"Mentor {user.uid} capacity {max_mentees} is below current mentees")
                    raise BusinessLogicError(ErrorMessages.CAPACITY_BELOW_CURRENT, details=details)
            self.db.add(user)
            self.db.commit()
        except BusinessLogicError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error updating user {user.uid}: {e}")
            raise StoreUnavailableError(ErrorMessages.STORE_UNAVAILABLE) from e
        self.db.refresh(user)
        return user
