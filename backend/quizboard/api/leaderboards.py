"""Leaderboard routes — rankings are recomputed from submissions per request."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from quizboard.api.deps import get_current_user, get_repository
from quizboard.config import settings
from quizboard.db.models import Profile
from quizboard.schemas.leaderboard import (
    LeaderboardsRead,
    OverallLeaderboardEntry,
    QuizLeaderboardEntry,
    QuizLeaderboardPreview,
    QuizLeaderboardRead,
)
from quizboard.services.ranking import find_entry, rank_overall, rank_quiz_submissions
from quizboard.services.repository import QuizRepository

router = APIRouter()


def _overall(repo: QuizRepository) -> list[OverallLeaderboardEntry]:
    return [
        OverallLeaderboardEntry.model_validate(entry)
        for entry in rank_overall(repo.all_submissions())
    ]


@router.get("/", response_model=LeaderboardsRead)
def get_leaderboards(
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
):
    """Overall standings plus the top entries of every active quiz."""
    previews = []
    for quiz in repo.list_quizzes(active_only=True):
        ranked = rank_quiz_submissions(
            repo.ranked_quiz_submissions(quiz.id, limit=settings.LEADERBOARD_PREVIEW_SIZE)
        )
        previews.append(
            QuizLeaderboardPreview(
                quiz_id=quiz.id,
                quiz_title=quiz.title,
                entries=[QuizLeaderboardEntry.model_validate(e) for e in ranked],
            )
        )
    return LeaderboardsRead(overall=_overall(repo), quizzes=previews)


@router.get("/overall", response_model=list[OverallLeaderboardEntry])
def get_overall_leaderboard(
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
):
    return _overall(repo)


@router.get("/{quiz_id}", response_model=QuizLeaderboardRead)
def get_quiz_leaderboard(
    quiz_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    repo: QuizRepository = Depends(get_repository),
):
    """Full ranking for one quiz, plus the caller's own row."""
    quiz = repo.get_quiz(quiz_id)
    if quiz is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")

    ranked = rank_quiz_submissions(repo.ranked_quiz_submissions(quiz.id))
    mine = find_entry(ranked, current_user.id)
    return QuizLeaderboardRead(
        quiz_id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        total_points=quiz.total_points,
        entries=[QuizLeaderboardEntry.model_validate(e) for e in ranked],
        my_entry=QuizLeaderboardEntry.model_validate(mine) if mine else None,
    )
