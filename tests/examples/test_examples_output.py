"""Run every example module and compare its output with the ``# =>`` markers."""

from __future__ import annotations

import re
import runpy
from pathlib import Path

import pytest

EXAMPLES_DIR = Path(__file__).resolve().parents[2] / "examples"
_EXPECTED_OUTPUT_PATTERN = re.compile(r"#\s*=>\s*(.+)$")


def _example_paths() -> list[Path]:
    return sorted(EXAMPLES_DIR.rglob("*.py"))


def _expected_lines(path: Path) -> list[str]:
    expected: list[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        match = _EXPECTED_OUTPUT_PATTERN.search(line)
        if match is not None:
            expected.append(match.group(1).strip())
    return expected


@pytest.mark.parametrize(
    "path",
    _example_paths(),
    ids=lambda path: str(path.relative_to(EXAMPLES_DIR)),
)
def test_example_output_matches_markers(
    path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    runpy.run_path(str(path), run_name="__main__")

    output = capsys.readouterr().out.splitlines()

    assert output == _expected_lines(path)
