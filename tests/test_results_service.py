"""
Results projection, CSV export and team history tests.
"""
import pytest

from core.exceptions import TeamNotFound
from models import AppState
from services.history_service import get_team_history
from services.results_service import (
    ResultRow,
    has_results,
    project_results,
    render_csv
)


def test_selections_first_then_unassigned(engine, roster):
    roster.add_team("A", "Alice")
    roster.add_team("B", "Bob")
    roster.add_candidate("Amy", "A001", "1")
    roster.add_candidate("Ben", "A002", "1")
    roster.add_candidate("Cat", "A003", "2")
    engine.start()
    engine.set_turn_order(["B", "A"])
    engine.request_candidate("B", "A002")
    engine.accept_request()

    rows = project_results(engine.state)

    assert rows == [
        ResultRow(candidate="Ben", class_label="1", team="B"),
        ResultRow(candidate="Amy", class_label="1", team="Unassigned"),
        ResultRow(candidate="Cat", class_label="2", team="Unassigned"),
    ]


def test_has_results():
    assert not has_results(AppState())


def test_csv_header_and_quoting():
    rows = [
        ResultRow(candidate="Doe, Jane", class_label="1", team="A"),
        ResultRow(candidate="Ben", class_label="2", team="Unassigned"),
    ]

    text = render_csv(rows)

    assert text.splitlines() == [
        "Candidate,Class,Team",
        '"Doe, Jane",1,A',
        "Ben,2,Unassigned",
    ]


def test_csv_custom_delimiter_quotes_only_that_delimiter():
    rows = [
        ResultRow(candidate="Doe; Jane", class_label="1", team="A, B"),
    ]

    text = render_csv(rows, delimiter=";")

    assert text.splitlines() == [
        "Candidate;Class;Team",
        '"Doe; Jane";1;A, B',
    ]


def test_team_history_in_pick_order(engine, roster):
    roster.add_team("A", "Alice")
    roster.add_team("B", "Bob")
    for n in range(3):
        roster.add_candidate(f"Kid {n}", f"K00{n}", "1")
    engine.start()
    engine.set_turn_order(["A", "B"])
    for team, number in [("A", "K000"), ("B", "K001"), ("A", "K002")]:
        engine.request_candidate(team, number)
        engine.accept_request()

    history = get_team_history(engine.state, "A")

    assert [entry["pick_number"] for entry in history] == [1, 3]
    assert [entry["admission_number"] for entry in history] == ["K000", "K002"]


def test_team_history_unknown_team():
    with pytest.raises(TeamNotFound):
        get_team_history(AppState(), "Nobody")
