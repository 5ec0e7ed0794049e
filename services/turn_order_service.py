"""
Turn order parsing and validation.

The admin supplies the order out-of-band, either as a list of team names or
as the comma-separated text the old prompt accepted ("TeamA,TeamB,TeamC").
"""
from typing import List

from core.exceptions import ValidationError


def parse_turn_order(text: str) -> List[str]:
    """Split comma-separated team names, trimming whitespace and dropping blanks."""
    return [name.strip() for name in text.split(",") if name.strip()]


def validate_turn_order(order: List[str], team_names: List[str]) -> None:
    """
    Raise ValidationError unless `order` names every team exactly once.
    """
    if len(set(order)) != len(order):
        raise ValidationError("Invalid order: duplicate team names")

    unknown = [name for name in order if name not in team_names]
    if unknown:
        raise ValidationError(f"Invalid order: unknown teams {unknown}")

    if len(order) != len(team_names):
        missing = [name for name in team_names if name not in order]
        raise ValidationError(f"Invalid order: missing teams {missing}")
