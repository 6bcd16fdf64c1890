"""
Scoring module - analytics metrics and the Enfora Reliability Score (ERS).

Pure functions over a user's task records; no DynamoDB access.
"""
import math
from decimal import Decimal
from typing import List, Dict, Any
from .models import TaskStatus, StakeDestination
from .utils import to_decimal, to_epoch_ms

MS_PER_HOUR = 1000 * 60 * 60

# ERS formula constants. Leaderboard continuity depends on these staying fixed.
SCORE_MULTIPLIER = 100
COMPLETION_EXPONENT = 1.5
STREAK_COEFFICIENT = 0.15


def js_round(value: float) -> int:
    """Round half up, matching JavaScript Math.round."""
    return math.floor(value + 0.5)


def _sum_stakes(tasks: List[Dict[str, Any]]) -> Decimal:
    return sum((to_decimal(task.get('stakeAmount')) for task in tasks), Decimal('0'))


def _finished_at(task: Dict[str, Any]) -> int:
    finished = to_epoch_ms(task.get('completedAt'))
    if finished is None:
        finished = to_epoch_ms(task.get('failedAt'))
    return finished if finished is not None else 0


def calculate_streak(completed_tasks: List[Dict[str, Any]], failed_tasks: List[Dict[str, Any]]) -> int:
    """
    Count consecutive completions walking back from the most recently finished task.
    The streak is 0 when the latest finished task is a failure.
    """
    finished = sorted(completed_tasks + failed_tasks, key=_finished_at, reverse=True)

    streak = 0
    for task in finished:
        if task.get('status') != TaskStatus.COMPLETED:
            break
        streak += 1
    return streak


def average_hours_before_deadline(completed_tasks: List[Dict[str, Any]]) -> float:
    """Mean hours between completion and deadline, over tasks finished on time."""
    total_hours = 0.0
    counted = 0

    for task in completed_tasks:
        completed_at = to_epoch_ms(task.get('completedAt'))
        deadline = to_epoch_ms(task.get('deadline'))
        if completed_at is None or deadline is None:
            continue

        hours_early = (deadline - completed_at) / MS_PER_HOUR
        if hours_early >= 0:
            total_hours += hours_early
            counted += 1

    return total_hours / counted if counted else 0.0


def calculate_reliability_score(
    completion_rate: float,
    discipline_score: int,
    tasks_completed: int,
    current_streak: int
) -> int:
    """
    Calculate the Enfora Reliability Score.

    score = 100 * sqrt(max(discipline, 0)) * c^1.5 * ln(1 + completed) * (1 + 0.15 * ln(1 + streak))

    The factors multiply, so a zero in any of them zeroes the score.

    Args:
        completion_rate: Percentage 0-100 of finished tasks that were completed
        discipline_score: Completed minus failed (may be negative)
        tasks_completed: Number of completed tasks
        current_streak: Current completion streak

    Returns:
        Non-negative integer score
    """
    completion = completion_rate / 100
    if completion <= 0:
        return 0

    discipline_term = math.sqrt(max(discipline_score, 0))
    completion_term = math.pow(completion, COMPLETION_EXPONENT)
    volume_term = math.log(1 + tasks_completed)
    streak_bonus = 1 + STREAK_COEFFICIENT * math.log(1 + current_streak)

    score = SCORE_MULTIPLIER * discipline_term * completion_term * volume_term * streak_bonus
    return js_round(score)


def calculate_analytics(tasks: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Calculate all analytics metrics for a user's tasks.

    Args:
        tasks: Every task record owned by the user

    Returns:
        Metrics dict (camelCase keys, as stored in the analytics table)
    """
    completed = [t for t in tasks if t.get('status') == TaskStatus.COMPLETED]
    failed = [t for t in tasks if t.get('status') == TaskStatus.FAILED]
    pending = [t for t in tasks if t.get('status') == TaskStatus.PENDING]
    review = [t for t in tasks if t.get('status') == TaskStatus.REVIEW]

    discipline_score = len(completed) - len(failed)

    finished_count = len(completed) + len(failed)
    completion_rate = len(completed) / finished_count * 100 if finished_count else 0.0

    current_streak = calculate_streak(completed, failed)

    total_stake = _sum_stakes(tasks)
    average_stake = total_stake / len(tasks) if tasks else Decimal('0')
    charity_failures = [t for t in failed if t.get('stakeDestination') == StakeDestination.CHARITY]

    return {
        'reliabilityScore': calculate_reliability_score(
            completion_rate, discipline_score, len(completed), current_streak
        ),
        'disciplineScore': discipline_score,
        'completionRate': completion_rate,
        'averageCompletionTimeBeforeDeadline': average_hours_before_deadline(completed),
        'currentCompletionStreak': current_streak,
        'totalStakeLost': _sum_stakes(failed),
        'totalStakeAtRisk': _sum_stakes(pending + review),
        'averageStakePerTask': average_stake,
        'totalMoneyToCharity': _sum_stakes(charity_failures),
        'finishedTasksCount': finished_count,
        'pendingTasksCount': len(pending) + len(review),
    }
