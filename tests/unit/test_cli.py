"""Tests for the command-line interface."""

import argparse

from pipewright.cli import EXIT_CODES, _apply_overrides, cmd_stages
from pipewright.models.pipeline import RunStatus


def test_exit_codes():
    assert EXIT_CODES[RunStatus.SUCCESS] == 0
    assert EXIT_CODES[RunStatus.FAILED] == 1
    assert EXIT_CODES[RunStatus.ABORTED] == 2


def test_overrides_only_given_values():
    args = argparse.Namespace(branch="release", repo_url=None, host=None, port=9100)
    cfg = _apply_overrides(args)
    assert cfg.branch == "release"
    assert cfg.port == 9100


def test_stages_listing(capsys):
    assert cmd_stages(argparse.Namespace()) == 0
    out = capsys.readouterr().out
    lines = [line for line in out.splitlines() if line[:1].isdigit()]
    assert lines[0].startswith("1. Checkout")
    assert "timeout 120s" in lines[3]
    assert lines[5].startswith("6. Frontend Container Deploy")
