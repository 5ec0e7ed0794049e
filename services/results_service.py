"""
Results projection.

Flattens the final state into one row per selection (in pick order),
followed by one row per candidate that is still unassigned, and renders
those rows as the CSV export the admin downloads.
"""
import csv
import io
from dataclasses import dataclass
from typing import List

from models import AppState, UNASSIGNED_TEAM

CSV_HEADER = ("Candidate", "Class", "Team")
EXPORT_FILENAME = "auction_results.csv"


@dataclass(frozen=True)
class ResultRow:
    candidate: str
    class_label: str
    team: str


def project_results(state: AppState) -> List[ResultRow]:
    rows = [
        ResultRow(candidate=s.candidate, class_label=s.class_label, team=s.team)
        for s in state.auction.selections
    ]
    rows.extend(
        ResultRow(candidate=c.name, class_label=c.class_label, team=UNASSIGNED_TEAM)
        for c in state.candidates
        if not c.assigned
    )
    return rows


def has_results(state: AppState) -> bool:
    """False when there is nothing to export: no selections and no unassigned candidates."""
    return bool(state.auction.selections) or any(not c.assigned for c in state.candidates)


def render_csv(rows: List[ResultRow], delimiter: str = ",") -> str:
    """
    Render rows as delimited text with a `Candidate,Class,Team` header.

    Fields containing the delimiter are double-quoted.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow((row.candidate, row.class_label, row.team))
    return buffer.getvalue()
