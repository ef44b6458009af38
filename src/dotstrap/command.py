from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def fmtArgv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def runCmd(argv: Sequence[str], *, check: bool = True, cwd: str | None = None) -> CmdResult:
    """Run a command, logging it and capturing its output.

    With ``check`` a non-zero exit raises ``RuntimeError``; callers that
    record failures instead pass ``check=False`` and look at the result.
    """

    argvList = list(argv)
    logger.debug("CMD %s", fmtArgv(argvList))

    p = subprocess.run(
        argvList,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=cwd,
    )

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    if check and p.returncode != 0:
        raise RuntimeError(f"Command failed ({p.returncode}): {fmtArgv(argvList)}\n{p.stderr}")

    return CmdResult(argv=argvList, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)
