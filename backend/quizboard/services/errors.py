"""Error taxonomy for quiz sessions and submissions.

Routers map these onto HTTP responses; ``retryable`` tells the client whether
re-issuing the same request can succeed.
"""

from __future__ import annotations


class QuizboardError(Exception):
    retryable: bool = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class QuizNotFoundError(QuizboardError):
    """The quiz does not exist or is not open to participants."""

    def __init__(self, message: str = "The quiz doesn't exist or is no longer active."):
        super().__init__(message)


class AlreadyCompletedError(QuizboardError):
    """A submission for this (quiz, participant) pair already exists."""

    def __init__(self, message: str = "You have already submitted this quiz."):
        super().__init__(message)


class SubmissionRaceLostError(AlreadyCompletedError):
    """A concurrent submission for the same pair was written first."""


class IncompleteAnswersError(QuizboardError):
    """Manual submit attempted while some questions are unanswered."""

    def __init__(self, unanswered: list[int]):
        self.unanswered = unanswered
        numbers = ", ".join(str(i + 1) for i in unanswered)
        super().__init__(f"Answer every question before submitting (missing: {numbers}).")


class InvalidNavigationError(QuizboardError):
    pass


class InvalidAnswerError(QuizboardError):
    pass


class SessionNotFoundError(QuizboardError):
    """No live attempt is held for this participant and quiz."""

    def __init__(self, message: str = "No quiz in progress. Open the quiz to start."):
        super().__init__(message)


class SessionStateError(QuizboardError):
    """The requested action is not valid in the session's current state."""


class SubmissionPersistenceError(QuizboardError):
    """Saving the submission failed; answers are kept and submit can be retried."""

    retryable = True

    def __init__(self, message: str = "There was an error submitting your quiz. Please try again."):
        super().__init__(message)


class SessionCapacityError(QuizboardError):
    retryable = True

    def __init__(self, message: str = "Too many quizzes in progress. Please try again shortly."):
        super().__init__(message)
