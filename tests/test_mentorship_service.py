from datetime import datetime, timedelta, timezone

import pytest

from mentorlink.exceptions import (
    CapacityExceededError,
    ConflictError,
    InvalidStatusTransitionError,
    NotFoundError,
)
from mentorlink.models import MentorshipStatus
from mentorlink.schemas import Decision


@pytest.fixture
def pair(make_student, make_mentor):
    student = make_student("s1", skills=["python"])
    mentor = make_mentor("m1", skills=["python"], max_mentees=2)
    return student.uid, mentor.uid


def _mentor_counter(store, mentor_uid):
    return store.get_user(mentor_uid).current_mentees


def test_request_creates_pending_edge_without_touching_counter(pair, mentorship_service, store):
    student_uid, mentor_uid = pair

    edge = mentorship_service.request_mentorship(student_uid, mentor_uid)

    assert edge.status == MentorshipStatus.PENDING.value
    assert edge.goals == [] and edge.notes == []
    assert edge.start_date is not None
    assert _mentor_counter(store, mentor_uid) == 0


def test_request_requires_both_parties(make_student, make_mentor, mentorship_service):
    make_student("s1")
    make_mentor("m1")

    with pytest.raises(NotFoundError):
        mentorship_service.request_mentorship("s1", "ghost")
    with pytest.raises(NotFoundError):
        mentorship_service.request_mentorship("ghost", "m1")
    # Roles must match too
    with pytest.raises(NotFoundError):
        mentorship_service.request_mentorship("m1", "s1")


def test_duplicate_request_conflicts(pair, mentorship_service, store):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)

    with pytest.raises(ConflictError) as exc_info:
        mentorship_service.request_mentorship(student_uid, mentor_uid)

    assert exc_info.value.details["current_status"] == MentorshipStatus.PENDING.value
    assert len(store.list_edges_for_pair(student_uid, mentor_uid)) == 1


def test_store_index_rejects_second_open_edge(pair, store, mentorship_service):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)

    # Bypass the service check to hit the partial unique index directly
    with pytest.raises(ConflictError):
        store.create_edge(student_uid, mentor_uid)
    assert len(store.list_edges_for_pair(student_uid, mentor_uid)) == 1


def test_accept_activates_and_increments(pair, mentorship_service, store):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)

    edge = mentorship_service.respond_to_mentorship(student_uid, mentor_uid, Decision.ACCEPT)

    assert edge.status == MentorshipStatus.ACTIVE.value
    assert edge.last_decision_at is not None
    mentor = store.get_user(mentor_uid)
    assert mentor.current_mentees == 1
    assert mentor.total_mentees_ever == 1


def test_accept_at_capacity_keeps_request_pending(make_student, make_mentor, mentorship_service, store):
    # A mentor with one slot: first accept fills it, second fails
    make_mentor("m1", max_mentees=1)
    make_student("s1")
    make_student("s2")
    mentorship_service.request_mentorship("s1", "m1")
    mentorship_service.request_mentorship("s2", "m1")

    mentorship_service.respond_to_mentorship("s1", "m1", Decision.ACCEPT)
    with pytest.raises(CapacityExceededError):
        mentorship_service.respond_to_mentorship("s2", "m1", Decision.ACCEPT)

    assert store.get_edge("s2", "m1").status == MentorshipStatus.PENDING.value
    mentor = store.get_user("m1")
    assert mentor.current_mentees == 1
    assert mentor.total_mentees_ever == 1


def test_reject_then_request_again(pair, mentorship_service, store):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)

    rejected = mentorship_service.respond_to_mentorship(student_uid, mentor_uid, Decision.REJECT)
    assert rejected.status == MentorshipStatus.REJECTED.value
    assert _mentor_counter(store, mentor_uid) == 0

    fresh = mentorship_service.request_mentorship(student_uid, mentor_uid)
    assert fresh.status == MentorshipStatus.PENDING.value
    assert fresh.id != rejected.id

    history = mentorship_service.get_history(student_uid, mentor_uid)
    assert [e.status for e in history] == [MentorshipStatus.REJECTED.value, MentorshipStatus.PENDING.value]


def test_respond_and_terminate_use_open_edge_despite_clock_skew(pair, mentorship_service, store, db):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)
    rejected = mentorship_service.respond_to_mentorship(student_uid, mentor_uid, Decision.REJECT)

    # Another instance with a fast clock wrote the old edge
    rejected.start_date = datetime.now(timezone.utc) + timedelta(minutes=1)
    db.commit()

    mentorship_service.request_mentorship(student_uid, mentor_uid)
    accepted = mentorship_service.respond_to_mentorship(student_uid, mentor_uid, Decision.ACCEPT)
    assert accepted.status == MentorshipStatus.ACTIVE.value
    assert accepted.id != rejected.id

    ended = mentorship_service.terminate_mentorship(student_uid, mentor_uid, "done")
    assert ended.id == accepted.id
    assert ended.status == MentorshipStatus.TERMINATED.value
    assert store.get_edge(student_uid, mentor_uid).id == accepted.id
    assert _mentor_counter(store, mentor_uid) == 0


def test_request_while_active_conflicts(pair, mentorship_service):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)
    mentorship_service.respond_to_mentorship(student_uid, mentor_uid, Decision.ACCEPT)

    with pytest.raises(ConflictError) as exc_info:
        mentorship_service.request_mentorship(student_uid, mentor_uid)
    assert exc_info.value.details["current_status"] == MentorshipStatus.ACTIVE.value


def test_respond_without_request_is_not_found(pair, mentorship_service):
    with pytest.raises(NotFoundError):
        mentorship_service.respond_to_mentorship(*pair, Decision.ACCEPT)


@pytest.mark.parametrize("first", [Decision.ACCEPT, Decision.REJECT])
@pytest.mark.parametrize("second", [Decision.ACCEPT, Decision.REJECT])
def test_repeated_responses_fail_without_double_counting(pair, mentorship_service, store, first, second):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)
    mentorship_service.respond_to_mentorship(student_uid, mentor_uid, first)
    counter = _mentor_counter(store, mentor_uid)

    with pytest.raises(InvalidStatusTransitionError):
        mentorship_service.respond_to_mentorship(student_uid, mentor_uid, second)

    assert _mentor_counter(store, mentor_uid) == counter


def test_stale_edge_fails_compare_and_swap(pair, mentorship_service, store):
    student_uid, mentor_uid = pair
    edge = mentorship_service.request_mentorship(student_uid, mentor_uid)
    store.transition_edge(edge.id, mentor_uid, MentorshipStatus.PENDING, MentorshipStatus.REJECTED)

    with pytest.raises(InvalidStatusTransitionError) as exc_info:
        store.transition_edge(
            edge.id, mentor_uid, MentorshipStatus.PENDING, MentorshipStatus.ACTIVE, counter_delta=1
        )

    assert exc_info.value.details["current_status"] == MentorshipStatus.REJECTED.value
    assert _mentor_counter(store, mentor_uid) == 0


def test_transition_of_missing_edge_is_not_found(pair, store):
    with pytest.raises(NotFoundError):
        store.transition_edge(999, pair[1], MentorshipStatus.PENDING, MentorshipStatus.REJECTED)


@pytest.mark.parametrize("graceful, expected", [
    (False, MentorshipStatus.TERMINATED),
    (True, MentorshipStatus.COMPLETED),
])
def test_terminate_round_trip(pair, mentorship_service, store, graceful, expected):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)
    mentorship_service.respond_to_mentorship(student_uid, mentor_uid, Decision.ACCEPT)

    ended = mentorship_service.terminate_mentorship(student_uid, mentor_uid, "programme over", graceful=graceful)

    assert ended.status == expected.value
    assert ended.end_reason == "programme over"
    assert ended.ended_at is not None
    mentor = store.get_user(mentor_uid)
    assert mentor.current_mentees == 0
    assert mentor.total_mentees_ever == 1

    again = mentorship_service.request_mentorship(student_uid, mentor_uid)
    assert again.status == MentorshipStatus.PENDING.value


def test_terminate_requires_active_edge(pair, mentorship_service):
    student_uid, mentor_uid = pair
    with pytest.raises(NotFoundError):
        mentorship_service.terminate_mentorship(student_uid, mentor_uid, "n/a")

    mentorship_service.request_mentorship(student_uid, mentor_uid)
    with pytest.raises(InvalidStatusTransitionError):
        mentorship_service.terminate_mentorship(student_uid, mentor_uid, "n/a")


def test_terminate_clamps_counter_at_zero(pair, mentorship_service, store, db):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)
    mentorship_service.respond_to_mentorship(student_uid, mentor_uid, Decision.ACCEPT)

    # Simulate an out-of-band edit that zeroed the counter
    mentor = store.get_user(mentor_uid)
    mentor.current_mentees = 0
    db.commit()

    mentorship_service.terminate_mentorship(student_uid, mentor_uid, "cleanup")
    assert _mentor_counter(store, mentor_uid) == 0


def test_pending_lists_are_oldest_first_with_counterpart(make_student, make_mentor, mentorship_service):
    make_mentor("m1")
    make_mentor("m2")
    for uid in ("s-late", "s-early"):
        make_student(uid, skills=["python"], interests=["ml"])
    mentorship_service.request_mentorship("s-early", "m1")
    mentorship_service.request_mentorship("s-late", "m1")
    mentorship_service.request_mentorship("s-early", "m2")
    mentorship_service.respond_to_mentorship("s-early", "m2", Decision.REJECT)

    for_mentor = mentorship_service.list_pending_for_mentor("m1")
    assert [e.student_uid for e in for_mentor] == ["s-early", "s-late"]
    assert for_mentor[0].student.name == "S-Early"

    for_student = mentorship_service.list_pending_for_student("s-early")
    assert [e.mentor_uid for e in for_student] == ["m1"]


def test_pending_lists_empty_or_not_found(make_student, mentorship_service):
    make_student("s1")
    assert mentorship_service.list_pending_for_student("s1") == []
    with pytest.raises(NotFoundError):
        mentorship_service.list_pending_for_mentor("ghost")


def test_active_lists(pair, mentorship_service):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)
    assert mentorship_service.list_active_for_mentor(mentor_uid) == []

    mentorship_service.respond_to_mentorship(student_uid, mentor_uid, Decision.ACCEPT)

    assert [e.student_uid for e in mentorship_service.list_active_for_mentor(mentor_uid)] == [student_uid]
    assert [e.mentor_uid for e in mentorship_service.list_active_for_student(student_uid)] == [mentor_uid]


def test_goals_and_notes_append_in_order(pair, mentorship_service, store):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)

    mentorship_service.add_goal(student_uid, mentor_uid, "Ship a portfolio project")
    mentorship_service.add_goal(student_uid, mentor_uid, "  Prepare for interviews ")
    edge = mentorship_service.add_note(student_uid, mentor_uid, "Met on Monday")

    assert edge.goals == ["Ship a portfolio project", "Prepare for interviews"]
    assert edge.notes == ["Met on Monday"]
    assert edge.status == MentorshipStatus.PENDING.value
    assert _mentor_counter(store, mentor_uid) == 0


def test_goals_need_an_open_edge(pair, mentorship_service):
    student_uid, mentor_uid = pair
    with pytest.raises(NotFoundError):
        mentorship_service.add_goal(student_uid, mentor_uid, "goal")

    mentorship_service.request_mentorship(student_uid, mentor_uid)
    mentorship_service.respond_to_mentorship(student_uid, mentor_uid, Decision.REJECT)
    with pytest.raises(InvalidStatusTransitionError):
        mentorship_service.add_note(student_uid, mentor_uid, "note")


def test_capacity_audit_and_repair(pair, mentorship_service, store, db):
    student_uid, mentor_uid = pair
    mentorship_service.request_mentorship(student_uid, mentor_uid)
    mentorship_service.respond_to_mentorship(student_uid, mentor_uid, Decision.ACCEPT)

    assert all(entry.drift == 0 for entry in mentorship_service.audit_capacity())

    mentor = store.get_user(mentor_uid)
    mentor.current_mentees = 2
    db.commit()

    report = mentorship_service.audit_capacity(mentor_uid)
    assert report[0].recorded_mentees == 2
    assert report[0].active_edges == 1
    assert report[0].drift == 1
    assert report[0].over_capacity is False

    repaired = mentorship_service.repair_capacity()
    assert [entry.mentor_uid for entry in repaired] == [mentor_uid]
    assert _mentor_counter(store, mentor_uid) == 1
    assert mentorship_service.repair_capacity() == []
