"""quizboard — timed multiple-choice quizzes with leaderboards."""

__version__ = "0.1.0"
