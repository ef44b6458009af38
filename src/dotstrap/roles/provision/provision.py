import logging
import os
import shlex

from pyinfra.api import Config, Inventory, State
from pyinfra.api.connect import connect_all
from pyinfra.api.exceptions import PyinfraError
from pyinfra.api.operation import add_op
from pyinfra.api.operations import run_ops
from pyinfra.facts.files import Directory
from pyinfra.facts.server import Command, Home, User, Which
from pyinfra.operations import brew, pacman, server

from dotstrap.logs import success

logger = logging.getLogger(__name__)

BREW_PATHS = ["/opt/homebrew/bin", "/usr/local/bin"]


def connectLocal():
    inventory = Inventory((["@local"], {}))
    state = State(inventory, Config())
    connect_all(state)
    return state, inventory.get_host("@local")


def brewEnv():
    # A freshly bootstrapped Homebrew isn't on this process's PATH yet.
    return {"PATH": ":".join(BREW_PATHS + [os.environ.get("PATH", "")])}


def toolPresent(host, tool):
    if tool.dir:
        home = host.get_fact(Home)
        return bool(host.get_fact(Directory, path=f"{home}/{tool.dir}"))
    return bool(host.get_fact(Which, command=tool.command))


def handleTool(state, host, tool):
    if toolPresent(host, tool):
        success(logger, "%s already installed", tool.name)
        return False
    logger.info("Installing %s...", tool.name)
    add_op(
        state,
        server.shell,
        name=f"Installing {tool.name}",
        commands=[tool.script],
    )
    return True


def handlePackages(state, host, spec):
    if spec.manager == "pacman":
        if not spec.packages:
            return False
        logger.info("Installing packages: %s", " ".join(spec.packages))
        add_op(
            state,
            pacman.packages,
            name="Installing system dependencies.",
            packages=list(spec.packages),
            present=True,
            _sudo=True,
        )
        return True

    queued = False
    for tap in spec.taps:
        add_op(state, brew.tap, name=f"Tapping {tap}", src=tap, _env=brewEnv())
        queued = True
    if spec.packages:
        logger.info("Installing packages: %s", " ".join(spec.packages))
        add_op(
            state,
            brew.packages,
            name="Installing system dependencies.",
            packages=list(spec.packages),
            present=True,
            _env=brewEnv(),
        )
        queued = True
    if spec.casks:
        logger.info("Installing casks: %s", " ".join(spec.casks))
        add_op(
            state,
            brew.casks,
            name="Installing casks.",
            casks=list(spec.casks),
            present=True,
            _env=brewEnv(),
        )
        queued = True
    return queued


def sameShell(current, target):
    # /bin/zsh and /usr/bin/zsh are the same shell on merged-/usr systems
    if not current:
        return False
    if os.path.realpath(current) == os.path.realpath(target):
        return True
    return os.path.basename(current) == os.path.basename(target)


def handleShell(state, host, spec):
    current = (host.get_fact(Command, spec.shell_query) or "").strip()
    if sameShell(current, spec.shell):
        success(logger, "Default shell is already %s", current)
        return False
    user = host.get_fact(User)
    logger.info("Changing default shell for %s from %s to %s", user, current or "(unknown)", spec.shell)
    add_op(
        state,
        server.shell,
        name=f"Changing default shell to {spec.shell}",
        commands=[f"chsh -s {shlex.quote(spec.shell)} {shlex.quote(user)}"],
        _sudo=True,
    )
    return True


def runStep(name, step, runState):
    """Run one provisioning step against the local host in its own pyinfra state.

    A failure is logged and recorded on ``runState`` and the next step still
    runs; steps have no rollback.
    """
    try:
        state, host = connectLocal()
        if step(state, host):
            run_ops(state)
            if host in state.failed_hosts:
                raise PyinfraError(f"operations failed on {host.name}")
            success(logger, "%s done", name)
    except (PyinfraError, OSError) as e:
        logger.error("%s failed: %s", name, e)
        runState.provisionFailed.append(name)
        return False
    return True


def ensureDependencies(spec, runState):
    logger.info("Installing dependencies via %s...", spec.manager)

    for tool in spec.bootstrap:
        runStep(tool.name, lambda state, host, tool=tool: handleTool(state, host, tool), runState)

    runStep("packages", lambda state, host: handlePackages(state, host, spec), runState)

    for tool in spec.tools:
        runStep(tool.name, lambda state, host, tool=tool: handleTool(state, host, tool), runState)

    if spec.shell and spec.shell_query:
        runStep("default shell", lambda state, host: handleShell(state, host, spec), runState)

    return runState
