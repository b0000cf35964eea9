import argparse
import logging
import subprocess
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from .config import Config
from .constants import APP_NAME
from .exceptions import VCSOperationError
from .repository import Repository, derive_repo_folder, get_remote_origin_url
from .runner import GitRunner

logger = logging.getLogger(APP_NAME)
console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Configures the logging subsystem.

    Args:
        verbose (bool): If True, repository command output is logged at INFO.
    """
    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    logger.setLevel(logging.INFO if verbose else logging.WARNING)


def _open_repo(args: argparse.Namespace, config: Config) -> Repository:
    repo = Repository(args.url, args.path, config=config)
    if args.verbose:
        repo.set_verbose(True)
    return repo


def _read_source(source: str) -> bytes:
    if source == "-":
        return sys.stdin.buffer.read()
    return Path(source).read_bytes()


def sync_repo(args: argparse.Namespace, config: Config) -> None:
    """Clones or pulls the repository named on the command line."""
    repo = _open_repo(args, config)
    with console.status(f"Syncing {repo.path.name}...", spinner="dots"):
        repo.sync()
    console.print(f"[bold green]✔ Synced[/bold green] [cyan]{repo.path}[/cyan]")


def add_file(args: argparse.Namespace, config: Config) -> None:
    """Commits a local file (or stdin) into the working copy."""
    dest = args.dest
    if dest is None:
        if args.source == "-":
            raise ValueError("--as is required when reading from stdin")
        dest = Path(args.source).name

    content = _read_source(args.source)
    repo = _open_repo(args, config)
    repo.add_data(content, dest)
    console.print(
        f"[bold green]✔ Committed[/bold green] {escape(dest)} ({len(content)} bytes)"
    )

    if args.push:
        with console.status("Pushing...", spinner="dots"):
            repo.push()
        console.print("[bold green]✔ Pushed.[/bold green]")


def push_repo(args: argparse.Namespace, config: Config) -> None:
    """Pushes the working copy to its remote."""
    repo = _open_repo(args, config)
    with console.status("Pushing...", spinner="dots"):
        repo.push()
    console.print("[bold green]✔ Pushed.[/bold green]")


def show_remote(args: argparse.Namespace, config: Config) -> None:
    console.print(
        get_remote_origin_url(args.folder, runner=GitRunner(config.core.executable)),
        highlight=False,
        markup=False,
        soft_wrap=True,
    )


def show_folder(args: argparse.Namespace, config: Config) -> None:
    console.print(
        derive_repo_folder(args.url), highlight=False, markup=False, soft_wrap=True
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the Git Depot CLI."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Keep a local clone of a remote git repository in step.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every git command and its output",
    )

    repo_args = argparse.ArgumentParser(add_help=False)
    repo_args.add_argument("url", help="Remote repository URL")
    repo_args.add_argument(
        "-C",
        "--path",
        default=None,
        help=(
            "Working copy location (default: folder named after the repository). "
            "Project config (depot.toml, pyproject.toml) is read from the current "
            "directory, not from here."
        ),
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser(
        "sync", parents=[repo_args], help="Clone the repository, or pull if cloned"
    )
    sync_parser.set_defaults(func=sync_repo)

    add_parser = subparsers.add_parser(
        "add", parents=[repo_args], help="Write a file into the repo and commit it"
    )
    add_parser.add_argument("source", help="File to copy in ('-' reads stdin)")
    add_parser.add_argument(
        "--as",
        dest="dest",
        default=None,
        help="Destination path inside the repository (default: source file name)",
    )
    add_parser.add_argument(
        "--push", action="store_true", help="Push after committing"
    )
    add_parser.set_defaults(func=add_file)

    push_parser = subparsers.add_parser(
        "push", parents=[repo_args], help="Push committed changes to the remote"
    )
    push_parser.set_defaults(func=push_repo)

    remote_parser = subparsers.add_parser(
        "remote", help="Print the origin URL of a working copy"
    )
    remote_parser.add_argument(
        "folder",
        nargs="?",
        default=".",
        help="Working copy (default: current directory)",
    )
    remote_parser.set_defaults(func=show_remote)

    folder_parser = subparsers.add_parser(
        "folder", help="Print the default folder name for a remote URL"
    )
    folder_parser.add_argument("url", help="Remote repository URL")
    folder_parser.set_defaults(func=show_folder)

    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    config = Config.load(repo_path=Path.cwd())

    try:
        args.func(args, config)
    except VCSOperationError as e:
        err_console.print(f"[bold red]ERROR:[/bold red] git {e.operation} failed.")
        if e.output.strip():
            err_console.print(e.output.strip(), highlight=False, markup=False)
        sys.exit(1)
    except subprocess.CalledProcessError as e:
        err_console.print(
            f"[bold red]ERROR:[/bold red] git exited with status {e.returncode}."
        )
        sys.exit(1)
    except (OSError, ValueError) as e:
        err_console.print(f"[bold red]ERROR:[/bold red] {escape(str(e))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
