"""Shared pytest fixtures: a dotfiles checkout, a home directory and a stand-in for GNU Stow."""

import logging
import os
from pathlib import Path

import pytest

from dotstrap.command import CmdResult
from dotstrap.config import DiscoverByMerge, KnownPath, Profile, ProvisionSpec
from dotstrap.roles.dotfiles.stow import Stow


class FakeStowRunner:
    """Behaves like the ``stow`` binary for ``--restow`` runs, with or without ``--no``.

    Links are created file by file into existing directories, whole trees
    otherwise. Real files in the way are reported the way stow 2.3 reports
    them and nothing is changed. Packages in ``failFor`` always exit 1, and
    linking into a directory listed in ``readOnly`` fails the way a permission
    error does.
    """

    def __init__(self, failFor=(), readOnly=()):
        self.failFor = set(failFor)
        self.readOnly = {Path(p) for p in readOnly}
        self.calls = []

    def __call__(self, argv, check=False):
        self.calls.append(list(argv))
        opts = {a.split("=", 1)[0]: a.split("=", 1)[1] for a in argv if a.startswith("--") and "=" in a}
        sourceDir = Path(opts["--dir"])
        target = Path(opts["--target"])
        simulate = "--no" in argv
        package = argv[-1]

        if package in self.failFor:
            return CmdResult(list(argv), 1, "", f"stow: ERROR: cannot stow {package}\n")

        conflicts, ops = [], []
        self._plan(sourceDir / package, target, Path(), conflicts, ops)
        if conflicts:
            lines = [f"WARNING! stowing {package} would cause conflicts:"]
            lines += [f"  * existing target is neither a link nor a directory: {c}" for c in conflicts]
            lines.append("All operations aborted.")
            return CmdResult(list(argv), 1, "", "\n".join(lines) + "\n")
        if not simulate:
            for dst, src in ops:
                if dst.parent in self.readOnly:
                    return self._denied(argv, dst, src)
                try:
                    if dst.is_symlink():
                        dst.unlink()
                    dst.symlink_to(src)
                except OSError:
                    return self._denied(argv, dst, src)
        return CmdResult(list(argv), 0, "", "")

    def _denied(self, argv, dst, src):
        return CmdResult(list(argv), 2, "", f"stow: ERROR: Could not create symlink {dst} => {src}: Permission denied\n")

    def _plan(self, srcDir, dstDir, rel, conflicts, ops):
        for item in sorted(srcDir.iterdir()):
            dst = dstDir / item.name
            if dst.is_symlink():
                if Path(os.readlink(dst)) != item:
                    ops.append((dst, item))
            elif not dst.exists():
                ops.append((dst, item))
            elif dst.is_dir() and item.is_dir():
                self._plan(item, dst, rel / item.name, conflicts, ops)
            else:
                conflicts.append(str(rel / item.name))


def write(path, text=""):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def source(tmp_path):
    """A checkout with zsh, nvim, tmux, starship and a merge-style hypr package."""
    root = tmp_path / "dotfiles"
    write(root / "zsh" / ".zshrc", "export ZSH=$HOME/.oh-my-zsh\n")
    write(root / "nvim" / ".config" / "nvim" / "init.lua", "require('config.lazy')\n")
    write(root / "nvim" / ".config" / "nvim" / "lua" / "plugins" / "copilot.lua", "return {}\n")
    write(root / "tmux" / ".config" / "tmux" / "tmux.conf", "set -g mouse on\n")
    write(root / "starship" / ".config" / "starship.toml", "add_newline = false\n")
    write(root / "hypr" / ".config" / "hypr" / "hyprland.conf", "source = ~/.config/hypr/bindings.conf\n")
    write(root / "hypr" / ".config" / "hypr" / "bindings.conf", "bind = SUPER, Return, exec, ghostty\n")
    return root


@pytest.fixture
def runner():
    return FakeStowRunner()


@pytest.fixture
def stow(source, home, runner):
    return Stow(source, home, runner=runner)


def makeProfile(packages, targets=None):
    defaults = {
        "zsh": KnownPath(".zshrc"),
        "nvim": KnownPath(".config/nvim"),
        "tmux": KnownPath(".config/tmux"),
        "starship": KnownPath(".config/starship.toml"),
        "hypr": DiscoverByMerge(),
    }
    defaults.update(targets or {})
    return Profile(
        name="arch",
        packages=tuple(packages),
        targets={p: defaults[p] for p in packages},
        provision=ProvisionSpec(manager="pacman"),
    )


@pytest.fixture
def profile():
    return makeProfile(["nvim", "tmux", "zsh", "starship", "hypr"])


@pytest.fixture(autouse=True)
def resetLogging():
    yield
    logger = logging.getLogger("dotstrap")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
