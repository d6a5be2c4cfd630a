from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/path_mention/server.py",
        "src/path_mention/service.py",
        "src/path_mention/completion.py",
        "src/path_mention/mru.py",
        "src/path_mention/tools/__init__.py",
        "src/path_mention/index/__init__.py",
        "src/path_mention/logging/__init__.py",
        "scripts/evaluate_ranking.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
