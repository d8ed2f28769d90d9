import argparse
import subprocess
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from . import config as config_store
from . import daemon
from .config import ConfigError
from .constants import APP_NAME, LOG_FILE
from .engine import AutoPushEngine, EngineState
from .notify import ConsoleNotifier, DesktopNotifier, FanoutNotifier
from .scheduler import CycleOutcome
from .settings import Settings

console = Console()


def _one_shot_engine(workspace: Path, open_editor: bool = False) -> AutoPushEngine:
    """Builds an engine that reports to the terminal for a single command."""
    sinks = [ConsoleNotifier(console)]
    if open_editor:
        sinks.append(DesktopNotifier())
    return AutoPushEngine(workspace.resolve(), FanoutNotifier(*sinks))


def init_workspace(workspace: Path) -> int:
    """Creates the workspace configuration and lists it in .gitignore.

    Returns:
        int: The process exit code.
    """
    engine = _one_shot_engine(workspace, open_editor=True)
    try:
        path = engine.initialize_configuration()
    finally:
        engine.shutdown()
    if path is None:
        return 1
    console.print(
        f"\nEdit [cyan]{path}[/cyan], then run "
        "[bold]git-autopush run[/bold] to start syncing."
    )
    return 0


def check_config(workspace: Path) -> int:
    """Validates the workspace configuration without touching the network.

    Returns:
        int: The process exit code.
    """
    path = config_store.config_path(workspace)
    if not path.exists():
        console.print(
            f"[bold red]ERROR:[/bold red] No {path.name} in {workspace}. "
            "Run 'git-autopush init' first."
        )
        return 1

    try:
        conf = config_store.load_validated(path)
    except ConfigError as e:
        console.print(f"[bold red]INVALID ({e.kind.value}):[/bold red] {e}")
        return 1

    table = Table(title=str(path), show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("Repository type", conf.repo_type)
    table.add_row("Authentication", conf.auth_type)
    table.add_row("Remote", conf.remote_repo)
    table.add_row("Branch", conf.branch)
    table.add_row("Interval", f"{conf.interval_minutes} min")
    table.add_row("Credentials", "[green]set[/green]")
    console.print(table)
    return 0


def sync_now(workspace: Path) -> int:
    """Binds the remote and runs one sync cycle immediately.

    Returns:
        int: The process exit code.
    """
    engine = _one_shot_engine(workspace)
    try:
        engine.workspace_opened()
        if engine.state is not EngineState.ACTIVE:
            return 1
        with console.status("[bold blue]Syncing...[/bold blue]", spinner="dots"):
            outcome = engine.sync_now()
    finally:
        engine.shutdown()

    if outcome is CycleOutcome.CLEAN:
        console.print("[dim]Working tree clean. Nothing to push.[/dim]")
    return 0 if outcome in (CycleOutcome.CLEAN, CycleOutcome.PUSHED) else 1


def tail_log() -> None:
    """Follows the agent log file in real-time."""
    if not LOG_FILE.exists():
        console.print(f"[red]No log file found yet at {LOG_FILE}.[/red]")
        return

    console.print(f"Tailing [bold cyan]{LOG_FILE}[/bold cyan] (Ctrl+C to stop)...")
    try:
        subprocess.run(["tail", "-n", "1000", "-f", str(LOG_FILE)])
    except KeyboardInterrupt:
        console.print("\nStopped.", style="dim")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Periodically commit and push a working tree.",
    )
    parser.add_argument(
        "-C",
        "--workspace",
        type=Path,
        default=Path.cwd(),
        help="Repository root (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("init", help="Create .autopush.json and ignore it in git")
    run_parser = subparsers.add_parser("run", help="Run the auto-push agent")
    run_parser.add_argument(
        "--background",
        action="store_true",
        help="Log to the rotating log file instead of the terminal",
    )
    subparsers.add_parser("check", help="Validate .autopush.json")
    subparsers.add_parser("now", help="Commit and push pending changes once")
    subparsers.add_parser("log", help="Tail the agent log file")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the git-autopush CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    workspace: Path = args.workspace

    if args.command == "init":
        sys.exit(init_workspace(workspace))
    elif args.command == "run":
        daemon.run(workspace, Settings.load(), interactive=not args.background)
        return
    elif args.command == "check":
        sys.exit(check_config(workspace))
    elif args.command == "now":
        daemon.setup_logging(interactive=True)
        sys.exit(sync_now(workspace))
    elif args.command == "log":
        tail_log()
        return

    parser.print_help()


if __name__ == "__main__":
    main()
