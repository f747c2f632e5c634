"""State machine for one participant's attempt at one quiz.

    LOADING ──► BLOCKED                      prior submission, or quiz missing/inactive
       │
       ▼
    ACTIVE ──► SUBMITTING ──► COMPLETE       manual submit on the last question,
       ▲            │                        or the countdown reaching zero
       └────────────┘                        persistence failed: answers kept, retry

A ``QuizSession`` is driven from request handlers running on a thread pool,
so the countdown check and the participant's own actions can arrive at the
same time. Every public method takes the session's re-entrant lock, and
``submit`` treats an already completed session as a no-op returning the
stored outcome, so exactly one submission is ever written.

The countdown is cooperative: ``tick`` compares the timer against the clock
whenever the session is touched. Nothing fires on its own, so an attempt the
participant walks away from leaves no trace; ``SessionManager`` evicts it
once it has been idle for longer than its TTL.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Protocol

from quizboard.domain.models import QuizDefinition, SubmissionDraft
from quizboard.services.errors import (
    AlreadyCompletedError,
    IncompleteAnswersError,
    InvalidAnswerError,
    InvalidNavigationError,
    QuizNotFoundError,
    SessionStateError,
    SubmissionRaceLostError,
)
from quizboard.services.scoring import ScoreResult, score_answers

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Monotonic = Callable[[], float]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(str, enum.Enum):
    LOADING = "loading"
    BLOCKED = "blocked"
    ACTIVE = "active"
    SUBMITTING = "submitting"
    COMPLETE = "complete"


class BlockReason(str, enum.Enum):
    NOT_FOUND = "not_found"
    ALREADY_COMPLETED = "already_completed"


class SessionStore(Protocol):
    """The slice of ``QuizRepository`` a session needs."""

    def has_submission(self, quiz_id: uuid.UUID, user_id: uuid.UUID) -> bool: ...

    def get_active_quiz(self, quiz_id: uuid.UUID): ...

    def insert_submission(self, draft: SubmissionDraft): ...


class CountdownTimer:
    """Whole-second countdown owned by a single attempt.

    Driven by a monotonic source so wall-clock adjustments never add time back.
    """

    def __init__(self, seconds: int, monotonic: Monotonic = time.monotonic) -> None:
        self._seconds = seconds
        self._monotonic = monotonic
        self._started_at = monotonic()
        self._stopped_at: float | None = None

    @property
    def remaining(self) -> int:
        until = self._monotonic() if self._stopped_at is None else self._stopped_at
        elapsed = int(until - self._started_at)
        return max(0, self._seconds - elapsed)

    @property
    def expired(self) -> bool:
        return self.remaining == 0

    @property
    def cancelled(self) -> bool:
        return self._stopped_at is not None

    def cancel(self) -> None:
        """Freeze the countdown at its current value."""
        if self._stopped_at is None:
            self._stopped_at = self._monotonic()


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    submission_id: uuid.UUID
    result: ScoreResult
    answers: tuple[int | None, ...]
    correct_answers: tuple[int, ...]
    time_taken: int
    submitted_at: datetime
    forced: bool


class QuizSession:
    def __init__(
        self,
        quiz_id: uuid.UUID,
        user_id: uuid.UUID,
        clock: Clock = utcnow,
        monotonic: Monotonic = time.monotonic,
    ) -> None:
        self.quiz_id = quiz_id
        self.user_id = user_id
        self.lock = threading.RLock()
        self._clock = clock
        self._monotonic = monotonic
        self.last_active = monotonic()

        self.state = SessionState.LOADING
        self.block_reason: BlockReason | None = None
        self.quiz: QuizDefinition | None = None
        self.answers: list[int | None] = []
        self.current_question = 0
        self.start_time: datetime | None = None
        self.timer: CountdownTimer | None = None
        self.outcome: SubmissionOutcome | None = None

    # ── Loading ──────────────────────────────────────────────────────────

    def load(self, store: SessionStore) -> None:
        """Resolve the quiz and either activate the attempt or block it.

        Raises:
            AlreadyCompletedError: the participant has already submitted.
            QuizNotFoundError: the quiz is missing, inactive or empty.
        """
        with self.lock:
            self._require(SessionState.LOADING)
            if store.has_submission(self.quiz_id, self.user_id):
                self._block(BlockReason.ALREADY_COMPLETED)
                raise AlreadyCompletedError()

            record = store.get_active_quiz(self.quiz_id)
            quiz = QuizDefinition.from_record(record) if record is not None else None
            if quiz is None or quiz.question_count == 0:
                self._block(BlockReason.NOT_FOUND)
                raise QuizNotFoundError()

            self.start(quiz)

    def start(self, quiz: QuizDefinition) -> None:
        """Enter ACTIVE with a blank answer sheet on the first question."""
        with self.lock:
            self._require(SessionState.LOADING)
            self.quiz = quiz
            self.answers = [None] * quiz.question_count
            self.current_question = 0
            self.start_time = self._clock()
            limit = quiz.time_limit_seconds
            self.timer = CountdownTimer(limit, self._monotonic) if limit else None
            self.state = SessionState.ACTIVE
            logger.info("Session started: quiz=%s user=%s timed=%s",
                        self.quiz_id, self.user_id, bool(limit))

    # ── Read-only helpers ────────────────────────────────────────────────

    def touch(self) -> None:
        """Record participant activity; the registry evicts attempts left idle."""
        self.last_active = self._monotonic()

    @property
    def idle_seconds(self) -> float:
        return self._monotonic() - self.last_active

    @property
    def question_count(self) -> int:
        return self.quiz.question_count if self.quiz else 0

    @property
    def time_remaining(self) -> int | None:
        return self.timer.remaining if self.timer else None

    @property
    def unanswered(self) -> list[int]:
        return [i for i, answer in enumerate(self.answers) if answer is None]

    @property
    def is_last_question(self) -> bool:
        return self.current_question == self.question_count - 1

    @property
    def can_go_next(self) -> bool:
        return (
            self.state is SessionState.ACTIVE
            and not self.is_last_question
            and self.answers[self.current_question] is not None
        )

    @property
    def can_submit(self) -> bool:
        return self.state is SessionState.ACTIVE and self.is_last_question and not self.unanswered

    # ── Participant actions ──────────────────────────────────────────────

    def select_option(self, option_index: int) -> None:
        """Record an answer for the current question without moving on."""
        with self.lock:
            self._require(SessionState.ACTIVE)
            options = self.quiz.questions[self.current_question].options
            if not 0 <= option_index < len(options):
                raise InvalidAnswerError(
                    f"Option {option_index} does not exist; choose 0..{len(options) - 1}."
                )
            self.answers[self.current_question] = option_index
            logger.debug("quiz=%s user=%s q%d -> %d",
                         self.quiz_id, self.user_id, self.current_question, option_index)

    def go_to(self, index: int) -> None:
        with self.lock:
            self._require(SessionState.ACTIVE)
            if not 0 <= index < self.question_count:
                raise InvalidNavigationError(
                    f"Question {index} does not exist; choose 0..{self.question_count - 1}."
                )
            self.current_question = index

    def next(self) -> None:
        with self.lock:
            self._require(SessionState.ACTIVE)
            if self.answers[self.current_question] is None:
                raise InvalidNavigationError("Answer this question before moving on.")
            if self.is_last_question:
                raise InvalidNavigationError("This is the last question.")
            self.current_question += 1

    def previous(self) -> None:
        with self.lock:
            self._require(SessionState.ACTIVE)
            if self.current_question == 0:
                raise InvalidNavigationError("This is the first question.")
            self.current_question -= 1

    # ── Countdown & submission ───────────────────────────────────────────

    def tick(self, store: SessionStore) -> bool:
        """Force submission if the countdown has run out. Returns True if it did."""
        with self.lock:
            if self.state is not SessionState.ACTIVE or self.timer is None:
                return False
            if not self.timer.expired:
                return False
            logger.info("Time is up: quiz=%s user=%s", self.quiz_id, self.user_id)
            self.submit(store, forced=True)
            return True

    def submit(self, store: SessionStore, forced: bool = False) -> SubmissionOutcome:
        """Score the answers and persist them as the participant's submission.

        A session that is already COMPLETE returns its outcome unchanged.
        Manual submission must come from the last question with every slot
        answered; forced submission skips both checks.

        Raises:
            IncompleteAnswersError: manual submit with unanswered questions.
            SubmissionRaceLostError: another submission for the pair won;
                the session moves to BLOCKED.
            QuizNotFoundError: the quiz was deleted mid-attempt; BLOCKED.
            SubmissionPersistenceError: the write failed; the session stays
                ACTIVE with its answers and the call can be repeated.
        """
        with self.lock:
            if self.state is SessionState.COMPLETE:
                return self.outcome
            self._require(SessionState.ACTIVE)
            if not forced:
                if self.unanswered:
                    raise IncompleteAnswersError(self.unanswered)
                if not self.is_last_question:
                    raise InvalidNavigationError("Submit from the last question.")

            self.state = SessionState.SUBMITTING
            result = score_answers(self.quiz, self.answers)
            time_taken = max(0, int((self._clock() - self.start_time).total_seconds()))
            draft = SubmissionDraft(
                quiz_id=self.quiz_id,
                user_id=self.user_id,
                answers=tuple(self.answers),
                score=result.score,
                total_possible=result.total_possible,
                percentage=result.percentage,
                time_taken=time_taken,
            )
            try:
                row = store.insert_submission(draft)
            except SubmissionRaceLostError:
                self.close()
                self._block(BlockReason.ALREADY_COMPLETED)
                raise
            except QuizNotFoundError:
                self.close()
                self._block(BlockReason.NOT_FOUND)
                raise
            except Exception:
                self.state = SessionState.ACTIVE
                raise

            self.close()
            self.outcome = SubmissionOutcome(
                submission_id=row.id,
                result=result,
                answers=draft.answers,
                correct_answers=tuple(q.correct_answer for q in self.quiz.questions),
                time_taken=time_taken,
                submitted_at=row.submitted_at,
                forced=forced,
            )
            self.state = SessionState.COMPLETE
            logger.info("Submitted quiz=%s user=%s score=%d/%d forced=%s",
                        self.quiz_id, self.user_id, result.score,
                        result.total_possible, forced)
            return self.outcome

    def close(self) -> None:
        """Stop the countdown; used on submission and when the attempt is dropped."""
        with self.lock:
            if self.timer is not None:
                self.timer.cancel()

    # ── internals ────────────────────────────────────────────────────────

    def _block(self, reason: BlockReason) -> None:
        self.state = SessionState.BLOCKED
        self.block_reason = reason
        logger.warning("Session blocked (%s): quiz=%s user=%s",
                       reason.value, self.quiz_id, self.user_id)

    def _require(self, state: SessionState) -> None:
        if self.state is not state:
            raise SessionStateError(
                f"Not allowed while the quiz is {self.state.value}."
            )
