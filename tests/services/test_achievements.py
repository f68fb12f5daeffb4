from __future__ import annotations

import asyncio
import datetime
from uuid import uuid4

import pytest

from progression.repos.store import Store
from progression.services import achievements, xp_service
from progression.services.errors import InvalidAnswerSet, NotEnrolled
from tests.conftest import enroll, seed_course, seed_quiz

DAY = datetime.timedelta(days=1)
START = datetime.date(2025, 9, 1)


def _complete(store: Store, learner, lesson, completed=True, today=START):
    return asyncio.run(
        achievements.complete_lesson(store, learner, lesson.id, completed, today)
    )


# ---- lessons ----


def test_first_lesson_awards_xp_and_busy_bee(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store, lessons=2)
    enroll(store, learner, course.id)

    outcome = _complete(store, learner, lessons[0])
    assert outcome.xp_gained == 15
    assert outcome.streak_bonus == 0
    assert outcome.streak is not None
    assert outcome.streak.current_streak == 1
    assert outcome.course_completed is False
    assert outcome.badges_granted == ("Busy Bee",)
    assert (outcome.total_xp, outcome.level) == (15, 1)


def test_busy_bee_granted_once(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store, lessons=3)
    enroll(store, learner, course.id)

    _complete(store, learner, lessons[0])
    outcome = _complete(store, learner, lessons[1])
    assert outcome.badges_granted == ()


def test_finishing_course_adds_bonus_and_honey_hunter(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store, lessons=1)
    enroll(store, learner, course.id)

    outcome = _complete(store, learner, lessons[0])
    assert outcome.course_completed is True
    assert outcome.xp_gained == 15 + 50
    assert outcome.badges_granted == ("Busy Bee", "Honey Hunter")
    assert asyncio.run(store.completions.get_course_completion(learner, course.id))


def test_course_bonus_not_farmed_by_toggling(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store, lessons=2)
    enroll(store, learner, course.id)
    for le in lessons:
        _complete(store, learner, le)

    _complete(store, learner, lessons[1], completed=False)
    again = _complete(store, learner, lessons[1])
    assert again.course_completed is False
    assert again.xp_gained == 0
    assert again.total_xp == 15 + 15 + 50


def test_simultaneous_completions_award_xp_once(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store, lessons=1)
    enroll(store, learner, course.id)

    async def both():
        return await asyncio.gather(
            achievements.complete_lesson(store, learner, lessons[0].id, True, START),
            achievements.complete_lesson(store, learner, lessons[0].id, True, START),
        )

    outcomes = asyncio.run(both())
    gained = sorted(o.xp_gained for o in outcomes)
    assert gained == [0, 15 + 50]
    assert asyncio.run(store.profiles.get(learner)).xp == 15 + 50


def test_undo_records_no_activity(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store)
    enroll(store, learner, course.id)
    _complete(store, learner, lessons[0])

    outcome = _complete(store, learner, lessons[0], completed=False, today=START + DAY)
    assert outcome.completed is False
    assert outcome.streak is None
    assert outcome.xp_gained == 0
    assert outcome.total_xp == 15
    streak = asyncio.run(store.streaks.get(learner))
    assert streak.last_activity_date == START


def test_streak_bonus_applies_to_lesson_and_course_awards(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store, lessons=3)
    enroll(store, learner, course.id)

    _complete(store, learner, lessons[0], today=START)
    second = _complete(store, learner, lessons[1], today=START + DAY)
    third = _complete(store, learner, lessons[2], today=START + 2 * DAY)

    assert second.streak_bonus == 10
    assert second.xp_gained == 25
    assert third.streak is not None
    assert third.streak.streak_increased is True
    assert third.streak_bonus == 15 + 15
    assert third.xp_gained == (15 + 15) + (50 + 15)


def test_crossing_an_xp_milestone_grants_threshold_badge(store: Store) -> None:
    learner = uuid4()
    course, lessons = seed_course(store)
    enroll(store, learner, course.id)
    asyncio.run(xp_service.add_xp(store, learner, 90, "manual"))

    outcome = _complete(store, learner, lessons[0])
    assert outcome.total_xp == 105
    assert outcome.level == 2
    assert outcome.badges_granted == ("Busy Bee", "Star Bee")


def test_rejected_completion_changes_nothing(store: Store) -> None:
    learner = uuid4()
    _, lessons = seed_course(store)

    with pytest.raises(NotEnrolled):
        _complete(store, learner, lessons[0])
    assert asyncio.run(store.profiles.get(learner)).xp == 0
    assert asyncio.run(store.streaks.get(learner)).current_streak == 0


# ---- quizzes ----


def _submit(store: Store, learner, quiz, answers, today=START):
    return asyncio.run(
        achievements.submit_quiz(store, learner, quiz.id, answers, today=today)
    )


def test_passing_quiz_awards_score_xp_and_quiz_whiz(store: Store) -> None:
    learner = uuid4()
    course, _ = seed_course(store)
    enroll(store, learner, course.id)
    quiz, qs = seed_quiz(store, course.id, [("A", 10), ("B", 10)])

    outcome = _submit(store, learner, quiz, {str(qs[0].id): "A", str(qs[1].id): "B"})
    assert outcome.attempt.passed is True
    assert outcome.xp_gained == 10
    assert outcome.badges_granted == ("Quiz Whiz",)
    assert outcome.streak.current_streak == 1
    assert outcome.total_xp == 10


def test_failed_quiz_with_partial_score_still_earns_xp(store: Store) -> None:
    learner = uuid4()
    course, _ = seed_course(store)
    enroll(store, learner, course.id)
    quiz, qs = seed_quiz(store, course.id, [("A", 10), ("B", 10)])

    outcome = _submit(store, learner, quiz, {str(qs[0].id): "A"})
    assert outcome.attempt.passed is False
    assert outcome.xp_gained == 5
    assert outcome.badges_granted == ()


def test_zero_score_quiz_counts_as_activity(store: Store) -> None:
    learner = uuid4()
    course, _ = seed_course(store)
    enroll(store, learner, course.id)
    quiz, _ = seed_quiz(store, course.id, [("A", 10)])

    outcome = _submit(store, learner, quiz, {})
    assert outcome.xp_gained == 0
    assert outcome.total_xp == 0
    assert outcome.streak.streak_increased is True


def test_empty_quiz_never_grants_quiz_whiz(store: Store) -> None:
    learner = uuid4()
    course, _ = seed_course(store)
    enroll(store, learner, course.id)
    quiz, _ = seed_quiz(store, course.id, [], passing_score_percent=0)

    outcome = _submit(store, learner, quiz, {})
    assert outcome.attempt.percentage == 0
    assert outcome.attempt.passed is False
    assert outcome.badges_granted == ()
    assert outcome.xp_gained == 0


def test_quiz_whiz_granted_once_across_retakes(store: Store) -> None:
    learner = uuid4()
    course, _ = seed_course(store)
    enroll(store, learner, course.id)
    quiz, qs = seed_quiz(store, course.id, [("A", 10)])
    answers = {str(qs[0].id): "A"}

    first = _submit(store, learner, quiz, answers)
    second = _submit(store, learner, quiz, answers, today=START + DAY)
    assert first.badges_granted == ("Quiz Whiz",)
    assert second.badges_granted == ()
    assert second.streak_bonus == 10


def test_invalid_submission_records_no_activity(store: Store) -> None:
    learner = uuid4()
    course, _ = seed_course(store)
    enroll(store, learner, course.id)
    quiz, _ = seed_quiz(store, course.id, [("A", 10)])

    with pytest.raises(InvalidAnswerSet):
        _submit(store, learner, quiz, {str(uuid4()): "A"})
    assert asyncio.run(store.streaks.get(learner)).last_activity_date is None
