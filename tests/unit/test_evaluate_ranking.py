from __future__ import annotations

import json
import sys

from scripts.evaluate_ranking import RANKING_CASES, RankingCase, evaluate_case, main


def test_matrix_covers_every_worked_example() -> None:
    assert len(RANKING_CASES) == 19
    assert len({case.name for case in RANKING_CASES}) == len(RANKING_CASES)


def test_evaluate_case_reports_failure_for_wrong_expectation() -> None:
    case = RankingCase(
        name="deliberately inverted",
        query="schema",
        paths=("db/schema.rb", "app/models/schema_migration.rb"),
        expected=("app/models/schema_migration.rb",),
    )

    outcome = evaluate_case(case)

    assert outcome.passed is False
    assert outcome.ranked[0][0] == "db/schema.rb"


def test_main_prints_summary_and_exits_zero(monkeypatch, capsys) -> None:
    monkeypatch.setattr(sys, "argv", ["evaluate_ranking.py"])

    assert main() == 0

    output = capsys.readouterr().out
    assert "FAIL" not in output
    assert f"{len(RANKING_CASES)}/{len(RANKING_CASES)} passed" in output


def test_main_json_output(monkeypatch, capsys) -> None:
    monkeypatch.setattr(sys, "argv", ["evaluate_ranking.py", "--json"])

    assert main() == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["passed"] == payload["total"] == len(RANKING_CASES)
    assert all(case["passed"] for case in payload["cases"])
