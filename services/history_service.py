"""
Team pick history service.

Builds a per-team list of picks so a leader's view can render the
authoritative order in which the team acquired its candidates.
"""
from typing import List, Dict, Any

from core.exceptions import TeamNotFound
from models import AppState


def get_team_history(state: AppState, team_name: str) -> List[Dict[str, Any]]:
    """
    Return the team's selections in pick order.

    Each entry carries the overall pick number (1-based position in the
    auction history) so the frontend can show when each pick happened
    relative to the other teams.
    """
    if state.find_team(team_name) is None:
        raise TeamNotFound(team_name)

    history: List[Dict[str, Any]] = []

    for pick_number, selection in enumerate(state.auction.selections, start=1):
        if selection.team != team_name:
            continue

        history.append({
            "pick_number": pick_number,
            "candidate": selection.candidate,
            "class_label": selection.class_label,
            "admission_number": selection.admission_number,
        })

    return history
