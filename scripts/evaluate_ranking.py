#!/usr/bin/env python3
"""Evaluate mention ranking against the worked example matrix."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from path_mention.index import build_entry, rank_query  # noqa: E402


@dataclass(frozen=True, slots=True)
class RankingCase:
    """One query, its candidate paths, and the expected leading order."""

    name: str
    query: str
    paths: tuple[str, ...]
    expected: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class CaseOutcome:
    """Ranking produced for one case."""

    case: RankingCase
    ranked: tuple[tuple[str, float], ...]

    @property
    def passed(self) -> bool:
        """True when the ranking starts with the expected paths."""
        leading = tuple(path for path, _ in self.ranked[: len(self.case.expected)])
        return leading == self.case.expected


RANKING_CASES: tuple[RankingCase, ...] = (
    RankingCase(
        name="basename match beats scattered full-path match",
        query="appconstants",
        paths=(
            "app/services/data_service/constants.rb",
            "config/initializers/app_constants.rb",
        ),
        expected=("config/initializers/app_constants.rb",),
    ),
    RankingCase(
        name="contiguous basename match beats scattered match",
        query="userctrl",
        paths=("app/utils/render_controller.rb", "app/controllers/users_controller.rb"),
        expected=("app/controllers/users_controller.rb",),
    ),
    RankingCase(
        name="segment boundary start beats mid-word match",
        query="service",
        paths=("app/models/preserve_ice.rb", "app/service/base.rb"),
        expected=("app/service/base.rb",),
    ),
    RankingCase(
        name="best anchor wins when first char repeats",
        query="index",
        paths=("internal/exceptions/data.rb", "app/assets/images/index.png"),
        expected=("app/assets/images/index.png",),
    ),
    RankingCase(
        name="shallower path beats deeper path for same basename",
        query="utils",
        paths=("app/helpers/auth/token/utils.js", "utils.js"),
        expected=("utils.js",),
    ),
    RankingCase(
        name="basename prefix beats mid-basename match",
        query="route",
        paths=("app/controllers/reroute_helper.rb", "config/routes.rb"),
        expected=("config/routes.rb",),
    ),
    RankingCase(
        name="basename coverage beats directory coverage",
        query="paymod",
        paths=("payment/modules/base.rb", "app/models/payment_model.rb"),
        expected=("app/models/payment_model.rb",),
    ),
    RankingCase(
        name="exact stem beats longer basename with same prefix",
        query="schema",
        paths=(
            "app/models/schema_migration.rb",
            "db/schema.rb",
            "config/some_cache_manager.rb",
        ),
        expected=("db/schema.rb",),
    ),
    RankingCase(
        name="contiguous basename chars beat scattered chars",
        query="api",
        paths=("app/assets/images/avatar.png", "app/controllers/api_controller.rb"),
        expected=("app/controllers/api_controller.rb",),
    ),
    RankingCase(
        name="both query halves at segment boundaries",
        query="appmod",
        paths=("happy_module/config.rb", "app/models/base.rb"),
        expected=("app/models/base.rb",),
    ),
    RankingCase(
        name="source file beats _test counterpart",
        query="controller",
        paths=(
            "test/controllers/users_controller_test.rb",
            "app/controllers/users_controller.rb",
        ),
        expected=("app/controllers/users_controller.rb",),
    ),
    RankingCase(
        name="model file beats test and factory files",
        query="user",
        paths=(
            "test/models/user_test.rb",
            "test/factories/user_factory.rb",
            "app/models/user.rb",
        ),
        expected=("app/models/user.rb",),
    ),
    RankingCase(
        name="basename prefix beats embedded word",
        query="user",
        paths=("app/models/new_user_form.rb", "app/models/user.rb"),
        expected=("app/models/user.rb",),
    ),
    RankingCase(
        name="structured query favors matching segments",
        query="app/mod",
        paths=("happy_application/modules/base.rb", "app/models/base.rb"),
        expected=("app/models/base.rb",),
    ),
    RankingCase(
        name="shallower path preferred for similar matches",
        query="util",
        paths=("app/services/auth/helpers/utilities.rb", "app/utilities.rb"),
        expected=("app/utilities.rb",),
    ),
    RankingCase(
        name="test file preferred when query names tests",
        query="usertest",
        paths=("app/models/user.rb", "test/models/user_test.rb"),
        expected=("test/models/user_test.rb",),
    ),
    RankingCase(
        name="source file preferred for neutral query",
        query="payment",
        paths=("test/models/payment_spec.rb", "app/models/payment.rb"),
        expected=("app/models/payment.rb",),
    ),
    RankingCase(
        name="app/controller prefers app paths over test paths",
        query="app/controller",
        paths=(
            "test/controllers/users_controller_test.rb",
            "app/controllers/users_controller.rb",
            "spec/controllers/users_controller_spec.rb",
        ),
        expected=("app/controllers/users_controller.rb",),
    ),
    RankingCase(
        name="root-intent query prefers top-level app over vendored app",
        query="app/controll/userscontroller",
        paths=(
            "vendor/engines/chronus_mentor_api/app/controllers/api/v2/users_controller.rb",
            "app/controllers/users_controller.rb",
        ),
        expected=("app/controllers/users_controller.rb",),
    ),
)


def evaluate_case(case: RankingCase) -> CaseOutcome:
    """Rank one case's paths for its query."""
    entries = [build_entry(path) for path in case.paths]
    ranked = rank_query(case.query, entries, max_items=len(entries))
    return CaseOutcome(
        case=case,
        ranked=tuple((item.entry.path, item.score) for item in ranked),
    )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--json", action="store_true", help="Emit machine-readable output.")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    outcomes = [evaluate_case(case) for case in RANKING_CASES]
    passed = sum(1 for outcome in outcomes if outcome.passed)
    if args.json:
        payload = [
            {
                "name": outcome.case.name,
                "query": outcome.case.query,
                "passed": outcome.passed,
                "ranked": [{"path": path, "score": score} for path, score in outcome.ranked],
            }
            for outcome in outcomes
        ]
        print(json.dumps({"passed": passed, "total": len(outcomes), "cases": payload}, indent=2))
        return 0 if passed == len(outcomes) else 1

    for outcome in outcomes:
        status = "PASS" if outcome.passed else "FAIL"
        print(f"{status}  {outcome.case.name}")
        if outcome.passed:
            continue
        print(f"      query: {outcome.case.query!r}")
        print(f"      expected first: {outcome.case.expected[0]}")
        for position, (path, score) in enumerate(outcome.ranked, start=1):
            print(f"      {position}. {path}  (score: {score:.2f})")
    print(f"\n{passed}/{len(outcomes)} passed")
    return 0 if passed == len(outcomes) else 1


if __name__ == "__main__":
    raise SystemExit(main())
