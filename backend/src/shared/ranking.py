"""
Ranking module - competition ranking of users by Reliability Score.
"""
from typing import List, Dict, Any


def _sort_key(entry: Dict[str, Any]):
    # Highest score first; ties broken by userId so repeated runs agree
    return (-entry['reliabilityScore'], entry['userId'])


def rank_users(users: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Sort users by score and assign competition ranks ("1224" convention).

    Equal scores share a rank and the next distinct score resumes at its
    1-based position, e.g. scores 100, 100, 90 rank 1, 1, 3.
    Users without a positive score are not ranked.

    Args:
        users: Dicts with at least 'userId' and 'reliabilityScore'

    Returns:
        New list in ranked order, each entry a copy with 'rank' added
    """
    scored = [u for u in users if (u.get('reliabilityScore') or 0) > 0]
    ordered = sorted(scored, key=_sort_key)

    ranked = []
    current_rank = 1
    previous_score = None

    for index, user in enumerate(ordered):
        score = user['reliabilityScore']
        if previous_score is not None and score != previous_score:
            current_rank = index + 1
        previous_score = score

        ranked.append({**user, 'rank': current_rank})

    return ranked
