import logging
import os
from pathlib import Path

from .config import Config
from .constants import (
    APP_NAME,
    CLONE_FAILURE_MARKER,
    GIT_METADATA_DIR,
    WRITE_FAILURE_MARKER,
)
from .exceptions import VCSOperationError
from .runner import GitResult, GitRunner


def derive_repo_folder(remote_url: str) -> str:
    """Derives the default clone folder name from a remote URL.

    Everything from the first '.git' onwards is dropped and the last
    '/'-separated segment of the rest is returned, stripped of whitespace.

    Args:
        remote_url (str): The remote repository location.

    Returns:
        str: The folder name, possibly empty for degenerate input.
    """
    prefix = remote_url.split(".git", 1)[0]
    return prefix.split("/")[-1].strip()


def get_remote_origin_url(folder: str | Path, runner: GitRunner | None = None) -> str:
    """Reads the URL of the 'origin' remote configured in a working copy.

    The output is returned verbatim (stripped); it is not checked for
    failure markers.

    Args:
        folder (str | Path): The working copy to inspect.
        runner (GitRunner | None, optional): The runner to use. Defaults to a
                                             plain `GitRunner`.

    Returns:
        str: The configured remote URL.

    Raises:
        FileNotFoundError: If `folder` does not exist.
        subprocess.CalledProcessError: If no origin remote is configured.
    """
    runner = runner or GitRunner()
    res = runner.run(
        ["config", "--get", "remote.origin.url"], cwd=Path(folder), check=True
    )
    return res.output.strip()


class Repository:
    """A local working copy bound to a remote git repository.

    The handle keeps no process or file open between calls; each operation is
    a fresh `git` invocation run inside `path`.

    Attributes:
        remote_url (str): The remote repository location.
        path (Path): Absolute path of the working copy.
        config (Config): Remote, branch, permission and logging settings.
        runner (GitRunner): Executes the git subcommands.
        log (logging.Logger): Per-handle logger carrying the verbosity level.
    """

    def __init__(
        self,
        remote_url: str,
        local_path: str | Path | None = None,
        config: Config | None = None,
        runner: GitRunner | None = None,
    ):
        """Resolves the working copy path and creates it when missing.

        Args:
            remote_url (str): The remote repository location.
            local_path (str | Path | None, optional): Where to keep the working
                copy. Defaults to a folder named after the repository,
                relative to the current directory.
            config (Config | None, optional): Settings. Defaults to `Config.load()`.
            runner (GitRunner | None, optional): Defaults to a runner for the
                configured git executable.

        Raises:
            OSError: If the path cannot be resolved or created.
            NotADirectoryError: If the path exists but is not a directory.
        """
        self.remote_url = remote_url
        self.config = config or Config.load()
        self.runner = runner or GitRunner(self.config.core.executable)

        folder = local_path
        if folder is None:
            folder = derive_repo_folder(remote_url)
        self.path = Path(folder).resolve()

        if not self.path.exists():
            self.path.mkdir(mode=self.config.files.dir_mode, parents=True)
        elif not self.path.is_dir():
            raise NotADirectoryError(f"Not a directory: {self.path}")

        # Unregistered, so handles on same-named folders keep separate levels.
        self.log = logging.Logger(f"{APP_NAME}.repo.{self.path.name}")
        self.log.parent = logging.getLogger(APP_NAME)
        self.set_verbose(self.config.log.verbose)

    def __repr__(self) -> str:
        return f"Repository({self.remote_url!r}, {str(self.path)!r})"

    def set_verbose(self, enabled: bool) -> None:
        """Switches between INFO (verbose) and WARNING (quiet) logging."""
        self.log.setLevel(logging.INFO if enabled else logging.WARNING)

    @property
    def is_cloned(self) -> bool:
        return (self.path / GIT_METADATA_DIR).exists()

    def _git(self, args: list[str]) -> GitResult:
        self.log.info(f"Running: git {' '.join(args)}")
        res = self.runner.run(args, cwd=self.path)
        self.log.info(f"Output: [{res.output}]")
        return res

    def _exit_code_failed(self, res: GitResult) -> bool:
        return self.config.core.check_exit_code and not res.succeeded

    def sync(self) -> None:
        """Clones the remote into an empty working copy, or pulls into an existing one.

        Pulls rebase onto the configured remote and branch. Only a 'fatal'
        in the output counts as failure; the exit status is ignored unless
        `core.check_exit_code` is set.

        Raises:
            VCSOperationError: If the clone or pull failed.
        """
        core = self.config.core
        if not self.is_cloned:
            operation = "clone"
            res = self._git(["clone", self.remote_url, "."])
        else:
            operation = "pull"
            res = self._git(["pull", "--rebase", core.remote_name, core.branch])

        if res.contains(CLONE_FAILURE_MARKER) or self._exit_code_failed(res):
            self.log.warning(f"git {operation} failed in {self.path}")
            raise VCSOperationError(
                operation,
                f"Could not {operation} repo",
                output=res.output,
                returncode=res.returncode,
            )

    def add_data(self, content: bytes, file_path: str) -> None:
        """Writes `content` to `file_path` in the working copy and commits it.

        The commit message is "Add <filename>". When the stage output reports
        an error the commit is skipped; the written file stays in place either way.

        Args:
            content (bytes): The file contents.
            file_path (str): Path relative to the working copy root.

        Raises:
            ValueError: If `file_path` is absolute.
            OSError: If the directory or file cannot be written.
            VCSOperationError: If staging or committing failed.
        """
        rel_path = Path(file_path)
        if rel_path.is_absolute():
            raise ValueError(f"Expected a path relative to {self.path}: {file_path}")

        target = self.path / rel_path
        directory, filename = os.path.split(file_path)
        self.log.info(f"Got file '{filename}' in path '{directory}'")
        if directory:
            target.parent.mkdir(
                mode=self.config.files.dir_mode, parents=True, exist_ok=True
            )
            self.log.info(f"Created directory {directory}")

        fd = os.open(
            target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, self.config.files.file_mode
        )
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        self.log.info(f"Wrote {len(content)} bytes")

        staged = self._git(["add", file_path])
        if staged.contains(WRITE_FAILURE_MARKER):
            self.log.warning(f"git add failed for {file_path}")
            raise VCSOperationError(
                "add", staged.output, output=staged.output, returncode=staged.returncode
            )

        # Exit status of commit is discarded: "nothing to commit" exits 1.
        res = self._git(["commit", "-m", f"Add {filename}", file_path])
        if res.contains(WRITE_FAILURE_MARKER) or self._exit_code_failed(res):
            self.log.warning(f"git commit failed for {file_path}")
            raise VCSOperationError(
                "commit", res.output, output=res.output, returncode=res.returncode
            )

        # Stage exit status is reported only after the commit was attempted.
        if not staged.succeeded:
            self.log.warning(f"git add exited with status {staged.returncode}")
            raise VCSOperationError(
                "add", staged.output, output=staged.output, returncode=staged.returncode
            )

    def push(self) -> None:
        """Pushes the configured branch to the configured remote.

        Raises:
            VCSOperationError: If the push failed; the message is the full
                               git output.
        """
        core = self.config.core
        res = self._git(["push", core.remote_name, core.branch])
        if res.contains(WRITE_FAILURE_MARKER) or self._exit_code_failed(res):
            self.log.warning(f"git push to {core.remote_name} failed")
            raise VCSOperationError(
                "push", res.output, output=res.output, returncode=res.returncode
            )

    def remote_origin_url(self) -> str:
        """Returns the origin URL configured in this working copy."""
        return get_remote_origin_url(self.path, runner=self.runner)
