import logging
import os
from datetime import datetime
from pathlib import Path

from dotstrap.config import DiscoverByMerge, KnownPath
from dotstrap.errors import ConflictParseError
from dotstrap.logs import success
from dotstrap.state import RunState

logger = logging.getLogger(__name__)

STAMP_FORMAT = "%Y%m%d%H%M%S"


def getPathState(path):
    path = Path(path)
    isLink = path.is_symlink()
    exists = isLink or path.exists()
    return {
        "path": path,
        "exists": exists,
        "is_link": isLink,
        "is_dir": exists and not isLink and path.is_dir(),
        "is_file": exists and not isLink and path.is_file(),
        "link_target": os.readlink(path) if isLink else None,
    }


def backupName(target, stamp, reserved):
    backupPath = target.with_name(f"{target.name}.bak.{stamp}")
    suffix = 0
    while backupPath in reserved or os.path.lexists(backupPath):
        suffix += 1
        backupPath = target.with_name(f"{target.name}.bak.{stamp}.{suffix}")
    return backupPath


def backupIfConflicting(target, runState, clock=datetime.now):
    """Move a real file or directory out of the way of a link.

    Symlinks and missing paths are left alone, and a path already moved
    during this run is not moved again. Returns the BackupRecord, if any.
    """
    targetState = getPathState(target)
    if not targetState["exists"] or targetState["is_link"]:
        return None
    if runState.backedUp(target):
        return None

    backupPath = backupName(Path(target), clock().strftime(STAMP_FORMAT), runState.reservedBackups())
    os.rename(target, backupPath)
    logger.warning("Backed up: %s -> %s", target, backupPath)
    return runState.recordBackup(target, backupPath)


def discoverConflicts(package, target, home, stow):
    if isinstance(target, KnownPath):
        path = target.resolve(home)
        targetState = getPathState(path)
        if targetState["exists"] and not targetState["is_link"]:
            return [path]
        return []
    if isinstance(target, DiscoverByMerge):
        return stow.conflicts(package)
    raise TypeError(f"Unknown target kind for '{package}': {target!r}")


def linkPackage(package, target, home, sourceDir, stow, runState, dryRun=False, clock=datetime.now):
    logger.info("Stowing %s...", package)

    if not (Path(sourceDir) / package).is_dir():
        logger.error("Package '%s' not found in %s", package, sourceDir)
        runState.recordFailed(package)
        return runState

    try:
        conflicts = discoverConflicts(package, target, home, stow)
    except (ConflictParseError, OSError) as e:
        logger.error("Could not check conflicts for %s: %s", package, e)
        runState.recordFailed(package)
        return runState

    if dryRun:
        for path in conflicts:
            logger.info("Would back up %s", path)
        logger.info("Would stow %s -> %s", package, target)
        return runState

    for path in conflicts:
        backupIfConflicting(path, runState, clock=clock)

    try:
        result = stow.restow(package)
    except OSError as e:
        logger.error("Failed to stow %s: %s", package, e)
        runState.recordFailed(package)
        return runState

    if result.ok:
        success(logger, "Stowed %s", package)
        runState.recordLinked(package)
    else:
        logger.error("Failed to stow %s", package)
        if result.stderr:
            logger.debug("stow said: %s", result.stderr.strip())
        runState.recordFailed(package)
    return runState


def linkAll(profile, home, sourceDir, stow, runState=None, only=None, dryRun=False, clock=datetime.now):
    runState = runState if runState is not None else RunState()
    home = Path(home)

    if not dryRun:
        (home / ".config").mkdir(parents=True, exist_ok=True)

    packages = [p for p in profile.packages if not only or p in only]
    for package in packages:
        runState = linkPackage(
            package,
            profile.target(package),
            home,
            sourceDir,
            stow,
            runState,
            dryRun=dryRun,
            clock=clock,
        )
    return runState
