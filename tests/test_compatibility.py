import pytest

from mentorlink.core import compatibility
from mentorlink.models import User, UserType


def _student(skills=(), interests=()):
    return User(uid="s1", type=UserType.STUDENT.value, name="S", skills=list(skills), interests=list(interests))


def _mentor(uid="m1", skills=(), expertise=(), rating=0.0, current=0, maximum=3):
    return User(
        uid=uid,
        type=UserType.MENTOR.value,
        name=uid,
        skills=list(skills),
        expertise_categories=list(expertise),
        rating=rating,
        current_mentees=current,
        max_mentees=maximum,
        is_active=True,
    )


def test_overlap_counts_skills_and_interest_expertise():
    student = _student(skills=["python", "ml"], interests=["leadership"])
    mentor = _mentor(skills=["python"], expertise=["leadership", "finance"])

    match = compatibility.breakdown(student, mentor)

    assert match.common_skills == ["python"]
    assert match.common_interests == ["leadership"]
    assert match.overlap_ratio == pytest.approx(2 / 3)


def test_score_combines_weights():
    student = _student(skills=["python"])
    mentor = _mentor(skills=["python"], rating=5.0, current=0, maximum=5)

    # full overlap, free slots at the cap, top rating
    assert compatibility.score(student, mentor) == pytest.approx(1.0)


def test_empty_student_does_not_divide_by_zero():
    student = _student()
    mentor = _mentor(skills=["python"], rating=2.5, current=1, maximum=2)

    match = compatibility.breakdown(student, mentor)

    assert match.overlap_ratio == 0.0
    # one free slot out of a cap of five
    assert match.score == pytest.approx(0.15 * (1 / 5) + 0.15 * 0.5)


def test_zero_capacity_mentor_has_no_availability_bonus():
    mentor = _mentor(maximum=0)
    assert compatibility.breakdown(_student(), mentor).availability == 0.0


def test_rating_does_not_outweigh_overlap():
    student = _student(skills=["python", "ml"])
    matching = _mentor(uid="a", skills=["python", "ml"], rating=0.0)
    famous = _mentor(uid="b", skills=["marketing"], rating=5.0)

    assert compatibility.score(student, matching) > compatibility.score(student, famous)


def test_custom_weights():
    student = _student(skills=["python"])
    mentor = _mentor(skills=["python"], rating=0.0, current=3, maximum=3)
    weights = {"overlap": 0.5, "availability": 0.25, "rating": 0.25}

    assert compatibility.score(student, mentor, weights) == pytest.approx(0.5)


def test_rank_key_prefers_less_loaded_then_uid():
    busy = _mentor(uid="a", current=2)
    idle_b = _mentor(uid="b", current=0)
    idle_c = _mentor(uid="c", current=0)

    keys = sorted([
        (compatibility.rank_key(0.5, busy), "a"),
        (compatibility.rank_key(0.5, idle_c), "c"),
        (compatibility.rank_key(0.5, idle_b), "b"),
        (compatibility.rank_key(0.9, busy), "a-high"),
    ])

    assert [label for _, label in keys] == ["a-high", "b", "c", "a"]


def test_more_free_slots_score_higher():
    student = _student(skills=["python"])
    big = _mentor(uid="big", skills=["python"], rating=4.0, current=5, maximum=10)
    small = _mentor(uid="small", skills=["python"], rating=4.0, current=0, maximum=1)

    assert compatibility.score(student, big) > compatibility.score(student, small)


def test_free_slots_past_the_cap_add_nothing():
    student = _student(skills=["python"])
    five = _mentor(uid="a", skills=["python"], current=0, maximum=5)
    twenty = _mentor(uid="b", skills=["python"], current=0, maximum=20)

    assert compatibility.breakdown(student, five).availability == 1.0
    assert compatibility.score(student, five) == compatibility.score(student, twenty)
    assert compatibility.breakdown(student, five, slot_cap=10).availability == pytest.approx(0.5)
