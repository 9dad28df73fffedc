"""Tests for the :mod:`sfcparse.__main__` entrypoint."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from sfcparse.__main__ import main
from sfcparse.component import parse_component


def test_main_invokes_cli(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    parse_script,
) -> None:
    path = tmp_path / "main.js"
    path.write_text("a + 1\n", encoding="utf-8")

    monkeypatch.setattr(sys, "argv", ["sfcparse", "tokens", str(path)])
    monkeypatch.setattr(
        "sfcparse.cli.parse_component",
        lambda code, **kwargs: parse_component(code, parse_script=parse_script, **kwargs),
    )

    configured: dict[str, object] = {}

    def fake_configure_logging(*, level: str) -> None:
        configured["level"] = level

    monkeypatch.setattr("sfcparse.cli.configure_logging", fake_configure_logging)

    with pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 0
    assert configured["level"] == "WARNING"
    output = capsys.readouterr().out.splitlines()
    assert [line.split()[-1] for line in output] == ["'a'", "'+'", "'1'"]
