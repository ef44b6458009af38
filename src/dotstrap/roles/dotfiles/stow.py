import re
from pathlib import Path

from dotstrap.command import runCmd
from dotstrap.errors import ConflictParseError

# stow 2.3 and earlier
_EXISTING_TARGET = re.compile(
    r"existing target is (?:neither a link nor a directory|not owned by stow|"
    r"stowed to a different package): (?P<path>.+?)(?: => .*)?$"
)
# stow 2.4
_CANNOT_STOW = re.compile(r"cannot stow .+ over existing target (?P<path>.+?) since ")


def parseConflicts(output, home):
    """Pull the conflicting target paths out of a simulated stow run.

    Paths come back absolute, in report order, without duplicates.
    """
    found = []
    for line in output.splitlines():
        line = line.strip().lstrip("*").strip()
        match = _EXISTING_TARGET.search(line) or _CANNOT_STOW.search(line)
        if not match:
            continue
        path = Path(home) / match.group("path").strip()
        if path not in found:
            found.append(path)
    return found


class Stow:
    """GNU Stow, driven as an external tool."""

    def __init__(self, sourceDir, home, executable="stow", runner=runCmd):
        self.sourceDir = Path(sourceDir)
        self.home = Path(home)
        self.executable = executable
        self.runner = runner

    def argv(self, package, simulate=False):
        argv = [self.executable, f"--dir={self.sourceDir}", f"--target={self.home}"]
        if simulate:
            argv += ["--no", "--verbose=1"]
        return argv + ["--restow", package]

    def conflicts(self, package):
        result = self.runner(self.argv(package, simulate=True), check=False)
        if result.ok:
            return []
        report = "\n".join(part for part in (result.stderr, result.stdout) if part)
        found = parseConflicts(report, self.home)
        if not found:
            raise ConflictParseError(package, report)
        return found

    def restow(self, package):
        return self.runner(self.argv(package), check=False)
