from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import yaml
from omegaconf import OmegaConf

STATE_REL = ".local/state/dotstrap/last_run.yaml"


@dataclass(frozen=True)
class BackupRecord:
    origin: Path
    backup: Path

    def __str__(self):
        return f"{self.origin} -> {self.backup}"


@dataclass
class RunState:
    """What one run did: linked, failed, and backed-up paths, in order."""

    linked: list = field(default_factory=list)
    failed: list = field(default_factory=list)
    backups: list = field(default_factory=list)
    provisionFailed: list = field(default_factory=list)

    def recordLinked(self, package):
        if package in self.failed:
            self.failed.remove(package)
        if package not in self.linked:
            self.linked.append(package)

    def recordFailed(self, package):
        if package in self.linked:
            self.linked.remove(package)
        if package not in self.failed:
            self.failed.append(package)

    def recordBackup(self, origin, backup):
        record = BackupRecord(origin=Path(origin), backup=Path(backup))
        self.backups.append(record)
        return record

    def backedUp(self, path):
        return any(b.origin == Path(path) for b in self.backups)

    def reservedBackups(self):
        return {b.backup for b in self.backups}

    @property
    def exitCode(self):
        return 1 if self.failed else 0

    def toDict(self):
        return {
            "linked": list(self.linked),
            "failed": list(self.failed),
            "provision_failed": list(self.provisionFailed),
            "backups": [{"origin": str(b.origin), "backup": str(b.backup)} for b in self.backups],
        }


def statePath(home):
    return Path(home) / STATE_REL


def saveRunState(home, runState, platform=None):
    path = statePath(home)
    path.parent.mkdir(parents=True, exist_ok=True)
    conf = OmegaConf.create(
        {
            "finished": datetime.now().isoformat(timespec="seconds"),
            "platform": platform,
            **runState.toDict(),
        }
    )
    path.write_text(OmegaConf.to_yaml(conf), encoding="utf-8")
    return path


def loadRunState(home):
    path = statePath(home)
    if not path.is_file():
        return None
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"State file must be a mapping, got {type(data).__name__}: {path}")
    return data
