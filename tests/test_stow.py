"""Tests for driving GNU Stow and reading its conflict reports."""

from pathlib import Path

import pytest

from dotstrap.command import CmdResult
from dotstrap.errors import ConflictParseError
from dotstrap.roles.dotfiles.stow import Stow, parseConflicts

STOW_23_REPORT = """\
WARNING! stowing hypr would cause conflicts:
  * existing target is neither a link nor a directory: .config/hypr/hyprland.conf
  * existing target is not owned by stow: .config/hypr/env.conf
  * existing target is stowed to a different package: .config/hypr/hypridle.conf => ../../other/hypridle.conf
All operations aborted.
"""

STOW_24_REPORT = """\
WARNING! stowing waybar would cause conflicts:
  * cannot stow dotfiles/waybar/.config/waybar/config.jsonc over existing target .config/waybar/config.jsonc since neither a link nor a directory and --adopt not specified
All operations aborted.
"""


def test_parse_stow_23_report():
    home = Path("/home/dex")

    assert parseConflicts(STOW_23_REPORT, home) == [
        home / ".config/hypr/hyprland.conf",
        home / ".config/hypr/env.conf",
        home / ".config/hypr/hypridle.conf",
    ]


def test_parse_stow_24_report():
    assert parseConflicts(STOW_24_REPORT, "/home/dex") == [Path("/home/dex/.config/waybar/config.jsonc")]


def test_parse_ignores_noise_and_duplicates():
    report = "LINK: .config/hypr => ../dotfiles/hypr/.config/hypr\n" + STOW_23_REPORT + STOW_23_REPORT

    assert len(parseConflicts(report, "/home/dex")) == 3


class Recorder:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def __call__(self, argv, check=True):
        self.calls.append((argv, check))
        return CmdResult(list(argv), *self.result)


def test_restow_argv():
    recorder = Recorder((0, "", ""))
    stow = Stow("/src/dotfiles", "/home/dex", runner=recorder)

    assert stow.restow("nvim").ok
    assert recorder.calls == [(["stow", "--dir=/src/dotfiles", "--target=/home/dex", "--restow", "nvim"], False)]


def test_conflicts_uses_simulate_mode_and_reads_stderr():
    recorder = Recorder((1, "", STOW_23_REPORT))
    stow = Stow("/src/dotfiles", "/home/dex", runner=recorder)

    found = stow.conflicts("hypr")

    argv, check = recorder.calls[0]
    assert argv[:3] == ["stow", "--dir=/src/dotfiles", "--target=/home/dex"]
    assert "--no" in argv and argv[-2:] == ["--restow", "hypr"]
    assert check is False
    assert found[0] == Path("/home/dex/.config/hypr/hyprland.conf")


def test_clean_simulation_has_no_conflicts():
    stow = Stow("/src", "/home/dex", runner=Recorder((0, "", "")))

    assert stow.conflicts("hypr") == []


def test_failed_simulation_without_conflicts_raises():
    stow = Stow("/src", "/home/dex", runner=Recorder((2, "", "stow: ERROR: The stow directory /src does not exist")))

    with pytest.raises(ConflictParseError) as excinfo:
        stow.conflicts("hypr")
    assert excinfo.value.package == "hypr"
    assert "does not exist" in excinfo.value.output
