import os
import platform
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

import yaml
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from dotstrap.errors import ConfigError

MERGE = "merge"
USER_CONFIG_NAME = "dotstrap.yaml"

OH_MY_ZSH = {
    "name": "oh-my-zsh",
    "dir": ".oh-my-zsh",
    "script": 'sh -c "$(curl -fsSL https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh)" "" --unattended',
}
BUN = {
    "name": "bun",
    "command": "bun",
    "script": "curl -fsSL https://bun.sh/install | bash",
}
HOMEBREW = {
    "name": "homebrew",
    "command": "brew",
    "script": 'NONINTERACTIVE=1 /bin/bash -c "$(curl -fsSL https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh)"',
}

COMMON_TARGETS = {
    "nvim": ".config/nvim",
    "tmux": ".config/tmux",
    "zsh": ".zshrc",
    "starship": ".config/starship.toml",
    "ghostty": ".config/ghostty",
}

PROFILES = {
    "arch": {
        "packages": ["nvim", "tmux", "zsh", "starship", "ghostty", "hypr", "waybar"],
        "targets": {**COMMON_TARGETS, "hypr": MERGE, "waybar": MERGE},
        "provision": {
            "manager": "pacman",
            "packages": ["stow", "neovim", "tmux", "starship", "ghostty", "ttf-jetbrains-mono-nerd", "zsh"],
            "taps": [],
            "casks": [],
            "bootstrap": [],
            "tools": [OH_MY_ZSH, BUN],
            "shell": "/usr/bin/zsh",
            "shell_query": 'getent passwd "$(id -un)" | cut -d: -f7',
        },
    },
    "macos": {
        "packages": ["nvim", "tmux", "zsh", "starship", "ghostty", "aerospace"],
        "targets": {**COMMON_TARGETS, "aerospace": ".config/aerospace"},
        "provision": {
            "manager": "brew",
            "packages": ["stow", "neovim", "tmux", "starship", "zsh"],
            "taps": ["nikitabobko/tap"],
            "casks": ["ghostty", "font-jetbrains-mono-nerd-font", "aerospace"],
            "bootstrap": [HOMEBREW],
            "tools": [OH_MY_ZSH, BUN],
            "shell": "/bin/zsh",
            "shell_query": "dscl . -read ~/ UserShell | awk '{print $2}'",
        },
    },
}


@dataclass(frozen=True)
class KnownPath:
    rel: str

    def resolve(self, home):
        return Path(home) / self.rel

    def __str__(self):
        return f"~/{self.rel}"


@dataclass(frozen=True)
class DiscoverByMerge:
    def __str__(self):
        return "(discovered by merge)"


@dataclass(frozen=True)
class Tool:
    name: str
    script: str
    dir: str = None
    command: str = None


@dataclass(frozen=True)
class ProvisionSpec:
    manager: str
    packages: tuple = ()
    taps: tuple = ()
    casks: tuple = ()
    bootstrap: tuple = ()
    tools: tuple = ()
    shell: str = None
    shell_query: str = None


@dataclass(frozen=True)
class Profile:
    name: str
    packages: tuple
    targets: dict = field(default_factory=dict)
    provision: ProvisionSpec = None

    def target(self, package):
        try:
            return self.targets[package]
        except KeyError:
            raise ConfigError(f"No target declared for package '{package}'") from None


def detectPlatform():
    override = os.environ.get("DOTSTRAP_PLATFORM")
    if override:
        return override
    system = platform.system()
    if system == "Darwin":
        return "macos"
    if system == "Linux":
        return "arch"
    raise ConfigError(f"Unsupported platform '{system}', pass --platform explicitly")


def defaultSourceDir():
    override = os.environ.get("DOTSTRAP_SOURCE")
    if override:
        return Path(override).expanduser().resolve()
    # src/dotstrap/config.py -> checkout root
    return Path(__file__).resolve().parents[2]


def parseTarget(package, raw):
    if raw is None or raw == "":
        raise ConfigError(f"Empty target for package '{package}'")
    if raw == MERGE:
        return DiscoverByMerge()
    rel = str(raw)
    if rel.startswith("~/"):
        rel = rel[2:]
    parts = PurePosixPath(rel)
    if parts.is_absolute() or ".." in parts.parts:
        raise ConfigError(f"Target for '{package}' must stay inside the home directory: {raw}")
    return KnownPath(rel=str(parts))


def parseTool(raw):
    if not raw.get("script"):
        raise ConfigError(f"Tool '{raw.get('name')}' has no install script")
    if not raw.get("dir") and not raw.get("command"):
        raise ConfigError(f"Tool '{raw.get('name')}' needs a 'dir' or 'command' marker")
    return Tool(name=raw["name"], script=raw["script"], dir=raw.get("dir"), command=raw.get("command"))


def buildProfile(name, conf):
    data = OmegaConf.to_container(conf, resolve=True)
    packages = tuple(data.get("packages") or [])
    if len(set(packages)) != len(packages):
        raise ConfigError(f"Profile '{name}' declares a package more than once")

    rawTargets = data.get("targets") or {}
    targets = {}
    for package in packages:
        if package not in rawTargets:
            raise ConfigError(f"Package '{package}' has no target in profile '{name}'")
        targets[package] = parseTarget(package, rawTargets[package])

    prov = data.get("provision") or {}
    manager = prov.get("manager")
    if manager not in ("pacman", "brew"):
        raise ConfigError(f"Unknown package manager '{manager}' in profile '{name}'")
    provision = ProvisionSpec(
        manager=manager,
        packages=tuple(prov.get("packages") or []),
        taps=tuple(prov.get("taps") or []),
        casks=tuple(prov.get("casks") or []),
        bootstrap=tuple(parseTool(t) for t in prov.get("bootstrap") or []),
        tools=tuple(parseTool(t) for t in prov.get("tools") or []),
        shell=prov.get("shell"),
        shell_query=prov.get("shell_query"),
    )
    return Profile(name=name, packages=packages, targets=targets, provision=provision)


def loadProfile(name, configPath=None, sourceDir=None):
    """Build the profile for ``name``, merging a user YAML file over the defaults.

    The user file is keyed by platform name::

        arch:
          packages: [nvim, zsh]
          targets:
            zsh: .zshrc

    Lists replace the defaults rather than extend them. Without an explicit
    ``configPath`` a ``dotstrap.yaml`` in the source directory is used when it
    exists.
    """
    if name not in PROFILES:
        raise ConfigError(f"Unknown platform '{name}', expected one of: {', '.join(PROFILES)}")

    conf = OmegaConf.create(PROFILES[name])

    if configPath is None and sourceDir is not None:
        candidate = Path(sourceDir) / USER_CONFIG_NAME
        if candidate.is_file():
            configPath = candidate

    if configPath is not None:
        try:
            userConf = OmegaConf.load(configPath)
        except (OSError, yaml.YAMLError, OmegaConfBaseException) as e:
            raise ConfigError(f"Could not read config {configPath}: {e}") from e
        if not isinstance(userConf, DictConfig):
            raise ConfigError(f"Config {configPath} must be a mapping of platform name to settings")
        override = userConf.get(name)
        if override is not None:
            try:
                conf = OmegaConf.merge(conf, override)
            except OmegaConfBaseException as e:
                raise ConfigError(f"Invalid settings for '{name}' in {configPath}: {e}") from e

    return buildProfile(name, conf)
