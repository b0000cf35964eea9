import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .constants import APP_NAME, GIT_EXECUTABLE

logger = logging.getLogger(APP_NAME)


@dataclass(frozen=True)
class GitResult:
    """The outcome of a single git invocation.

    Attributes:
        args (list[str]): The arguments passed after the executable.
        cwd (Path): The working directory the command ran in.
        output (str): Interleaved stdout and stderr text.
        returncode (int): The process exit status.
    """

    args: list[str]
    cwd: Path
    output: str
    returncode: int

    def contains(self, marker: str) -> bool:
        """Returns True if the combined output mentions `marker` anywhere."""
        return marker in self.output

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class GitRunner:
    """Runs git subcommands as blocking subprocesses.

    Every call passes its directory to the child process instead of changing
    the working directory of the current process, so runners can be shared
    between threads and repositories.

    Attributes:
        executable (str): The git binary to invoke.
        env (dict | None): Environment for the child process (None inherits).
    """

    def __init__(self, executable: str = GIT_EXECUTABLE, env: dict | None = None):
        self.executable = executable
        self.env = env

    def run(self, args: list[str], cwd: Path, check: bool = False) -> GitResult:
        """Executes a git command and captures its combined output.

        Args:
            args (list[str]): Arguments passed to the git executable.
            cwd (Path): Directory to run the command in.
            check (bool, optional): Raise on a non-zero exit status.
                                    Defaults to False.

        Returns:
            GitResult: The captured output and exit status.

        Raises:
            FileNotFoundError: If `cwd` or the git executable does not exist.
            subprocess.CalledProcessError: If `check` is set and the command
                                           exits with a non-zero status.
        """
        logger.debug(f"Executing {self.executable} {' '.join(args)} in {cwd}")
        res = subprocess.run(
            [self.executable, *args],
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            check=check,
            env=self.env,
        )
        return GitResult(
            args=list(args),
            cwd=Path(cwd),
            output=res.stdout or "",
            returncode=res.returncode,
        )
