"""CLI - main entry point."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer

from dotstrap.config import defaultSourceDir, detectPlatform, loadProfile
from dotstrap.errors import DotstrapError
from dotstrap.explanations.dotfiles.dots import DotfilesExplain
from dotstrap.explanations.provision.provision import ProvisionExplain
from dotstrap.logs import configureLogging
from dotstrap.roles.dotfiles.dotfiles import linkAll
from dotstrap.roles.dotfiles.stow import Stow
from dotstrap.roles.provision.provision import ensureDependencies
from dotstrap.state import RunState, loadRunState, saveRunState
from dotstrap.summary import RULE, printSummary

logger = logging.getLogger(__name__)

TOPICS = {
    "dotfiles": DotfilesExplain().explain_dotfiles,
    "backup": DotfilesExplain().explain_backup,
    "merge": DotfilesExplain().explain_merge,
    "state": DotfilesExplain().explain_state,
    "provision": ProvisionExplain().explain_provision,
}
PLATFORM_TITLES = {"arch": "Arch Linux", "macos": "macOS"}


def _resolveProfile(platform, config, source):
    platformName = platform or detectPlatform()
    sourceDir = Path(source).expanduser().resolve() if source else defaultSourceDir()
    return platformName, sourceDir, loadProfile(platformName, configPath=config, sourceDir=sourceDir)


def _createApp() -> typer.Typer:
    app = typer.Typer(
        pretty_exceptions_show_locals=False,
        pretty_exceptions_enable=False,
        help="Bootstrap a machine from a dotfiles checkout",
        context_settings={"help_option_names": ["-h", "--help"]},
        no_args_is_help=True,
    )

    @app.command()
    def run(
        platform: Optional[str] = typer.Option(None, "--platform", "-p", help="arch or macos (default: detected)"),
        source: Optional[Path] = typer.Option(None, "--source", "-s", help="Dotfiles checkout to link from"),
        home: Optional[Path] = typer.Option(None, "--home", help="Home directory to link into"),
        config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML file overriding the platform profile"),
        skipProvision: bool = typer.Option(False, "--skip-provision", help="Don't install dependencies"),
        only: Optional[List[str]] = typer.Option(None, "--only", help="Link only this package (repeatable)"),
        dryRun: bool = typer.Option(False, "--dry-run", "-n", help="Show what would happen without changing anything"),
        logFile: Optional[Path] = typer.Option(None, "--log-file", help="Also append a timestamped log here"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Show external command output"),
    ) -> None:
        """Install dependencies, back up conflicts and link every package."""
        configureLogging(str(logFile) if logFile else None, level=logging.DEBUG if verbose else logging.INFO)
        try:
            platformName, sourceDir, profile = _resolveProfile(platform, config, source)
        except DotstrapError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)

        unknown = [p for p in only or [] if p not in profile.packages]
        if unknown:
            raise typer.BadParameter(f"not declared for {platformName}: {', '.join(unknown)}", param_hint="--only")

        homeDir = home.expanduser() if home else Path.home()

        typer.echo(RULE)
        typer.echo(f"DOTFILES SETUP - {PLATFORM_TITLES.get(platformName, platformName)}".center(67).rstrip())
        typer.echo(RULE)
        typer.echo("")

        runState = RunState()
        if skipProvision or dryRun:
            logger.info("Skipping dependency installation")
        else:
            runState = ensureDependencies(profile.provision, runState)

        runState = linkAll(
            profile,
            homeDir,
            sourceDir,
            Stow(sourceDir, homeDir),
            runState,
            only=only,
            dryRun=dryRun,
        )
        code = printSummary(runState, echo=typer.echo, dryRun=dryRun)
        if not dryRun:
            path = saveRunState(homeDir, runState, platform=platformName)
            logger.debug("Run recorded in %s", path)
        raise typer.Exit(code)

    @app.command()
    def status(
        home: Optional[Path] = typer.Option(None, "--home", help="Home directory the run linked into"),
    ) -> None:
        """Show the record of the last run."""
        homeDir = home.expanduser() if home else Path.home()
        record = loadRunState(homeDir)
        if record is None:
            typer.echo("No run recorded yet.")
            raise typer.Exit(1)
        typer.echo(f"Last run: {record.get('finished')} ({record.get('platform')})")
        typer.echo(f"Linked: {' '.join(record.get('linked') or []) or '-'}")
        typer.echo(f"Failed: {' '.join(record.get('failed') or []) or '-'}")
        if record.get("provision_failed"):
            typer.echo(f"Provisioning failed: {', '.join(record['provision_failed'])}")
        for backup in record.get("backups") or []:
            typer.echo(f"    - {backup['origin']} -> {backup['backup']}")

    @app.command()
    def packages(
        platform: Optional[str] = typer.Option(None, "--platform", "-p", help="arch or macos (default: detected)"),
        source: Optional[Path] = typer.Option(None, "--source", "-s", help="Dotfiles checkout"),
        config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML file overriding the platform profile"),
    ) -> None:
        """List the packages declared for a platform and where they go."""
        try:
            platformName, sourceDir, profile = _resolveProfile(platform, config, source)
        except DotstrapError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
        for package in profile.packages:
            marker = "" if (sourceDir / package).is_dir() else "  (missing from checkout)"
            typer.echo(f"{package:<12} {profile.target(package)}{marker}")

    @app.command()
    def explain(
        topic: str = typer.Argument("dotfiles", help=f"One of: {', '.join(TOPICS)}"),
    ) -> None:
        """Explain how a part of the bootstrap works."""
        if topic not in TOPICS:
            typer.echo(f"Unknown topic '{topic}'. Choose from: {', '.join(TOPICS)}", err=True)
            raise typer.Exit(1)
        info = TOPICS[topic]()
        typer.echo(info["concept"])
        typer.echo("=" * len(info["concept"]))
        for key in ("what", "why", "how", "technical"):
            if info.get(key):
                typer.echo(f"\n{key.capitalize()}: {info[key]}")
        if info.get("equivalent"):
            typer.echo(f"\n{info['equivalent']}")
        for example in info.get("examples", []):
            typer.echo(f"\nExample:\n{example['yaml']}")

    return app


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    app = _createApp()
    try:
        app(argv, prog_name="dotstrap")
    except SystemExit as e:
        if e.code is None:
            return 0
        return e.code if isinstance(e.code, int) else 1
    except Exception as e:
        typer.echo(f"Unhandled error: {e}", err=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
