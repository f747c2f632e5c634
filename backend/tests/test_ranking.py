"""Unit tests for the leaderboard ranking engine."""

import random
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from quizboard.services.ranking import (
    RankableSubmission,
    find_entry,
    rank_overall,
    rank_quiz_submissions,
)

_T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _sub(score, time_taken=None, user_id=None, minute=0, name=None) -> RankableSubmission:
    return RankableSubmission(
        user_id=user_id or uuid.uuid4(),
        score=score,
        percentage=float(score),
        time_taken=time_taken,
        submitted_at=_T0 + timedelta(minutes=minute),
        full_name=name,
    )


# ── Per-quiz ranking ───────────────────────────────────────────────────────────


class TestQuizRanking:
    def test_score_then_time_with_unknown_time_last(self):
        fast = _sub(80, 120, name="timed")
        untimed = _sub(80, None, name="untimed")
        lower = _sub(70, 10, name="lower")

        ranked = rank_quiz_submissions([lower, untimed, fast])

        assert [e.full_name for e in ranked] == ["timed", "untimed", "lower"]
        assert [e.rank for e in ranked] == [1, 2, 3]

    def test_faster_time_wins_on_equal_score(self):
        slow, quick = _sub(50, 300, name="slow"), _sub(50, 30, name="quick")
        assert [e.full_name for e in rank_quiz_submissions([slow, quick])] == ["quick", "slow"]

    def test_full_ties_get_distinct_ranks_in_input_order(self):
        subs = [_sub(40, 60, name=f"p{i}", minute=i) for i in range(4)]
        ranked = rank_quiz_submissions(subs)
        assert [e.rank for e in ranked] == [1, 2, 3, 4]
        assert [e.full_name for e in ranked] == ["p0", "p1", "p2", "p3"]

    def test_untimed_ties_keep_input_order(self):
        subs = [_sub(10, None, name="a"), _sub(10, None, name="b")]
        assert [e.full_name for e in rank_quiz_submissions(subs)] == ["a", "b"]

    def test_ranking_is_a_permutation_with_ranks_one_to_n(self):
        rng = random.Random(7)
        subs = [
            _sub(rng.choice([0, 5, 10]), rng.choice([None, 30, 60]), minute=i)
            for i in range(25)
        ]
        ranked = rank_quiz_submissions(subs)

        assert [e.rank for e in ranked] == list(range(1, 26))
        assert sorted(e.user_id for e in ranked) == sorted(s.user_id for s in subs)
        keys = [(-e.score, e.time_taken is None, e.time_taken or 0) for e in ranked]
        assert keys == sorted(keys)

    def test_entries_carry_submission_fields(self):
        sub = _sub(9, 42, name="Ada", minute=3)
        entry = rank_quiz_submissions([sub])[0]
        assert entry.user_id == sub.user_id
        assert entry.score == 9
        assert entry.percentage == 9.0
        assert entry.time_taken == 42
        assert entry.submitted_at == sub.submitted_at

    def test_empty_input(self):
        assert rank_quiz_submissions([]) == []

    def test_find_entry(self):
        me = uuid.uuid4()
        ranked = rank_quiz_submissions([_sub(1), _sub(2, user_id=me)])
        assert find_entry(ranked, me).rank == 1
        assert find_entry(ranked, uuid.uuid4()) is None


# ── Overall ranking ────────────────────────────────────────────────────────────


class TestOverallRanking:
    def test_aggregates_per_participant(self):
        a = uuid.uuid4()
        [entry] = rank_overall([_sub(50, user_id=a), _sub(30, user_id=a)])

        assert entry.user_id == a
        assert entry.total_score == 80
        assert entry.quiz_count == 2
        assert entry.average_score == pytest.approx(40.0)
        assert entry.best_score == 50
        assert entry.rank == 1

    def test_sorted_by_total_score_descending(self):
        a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        subs = [
            _sub(10, user_id=a),
            _sub(90, user_id=b),
            _sub(20, user_id=c),
            _sub(30, user_id=c),
        ]
        ranked = rank_overall(subs)
        assert [e.user_id for e in ranked] == [b, c, a]
        assert [e.rank for e in ranked] == [1, 2, 3]

    def test_equal_totals_keep_first_appearance_order(self):
        a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        subs = [_sub(20, user_id=b), _sub(5, user_id=a), _sub(15, user_id=a), _sub(20, user_id=c)]
        assert [e.user_id for e in rank_overall(subs)] == [b, a, c]

    def test_time_is_not_a_tie_break(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        subs = [_sub(10, 500, user_id=a), _sub(10, 5, user_id=b)]
        assert [e.user_id for e in rank_overall(subs)] == [a, b]

    def test_best_score_of_zero_scores(self):
        [entry] = rank_overall([_sub(0)])
        assert entry.best_score == 0
        assert entry.average_score == 0.0

    def test_empty_input(self):
        assert rank_overall([]) == []
