import copy
import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .constants import (
    APP_NAME,
    CONFIG_FILE,
    DEFAULT_BRANCH,
    DEFAULT_REMOTE,
    DIR_MODE,
    FILE_MODE,
    GIT_EXECUTABLE,
    LOCAL_CONFIG_NAME,
    PYPROJECT_SECTION,
)

logger = logging.getLogger(APP_NAME)


def parse_mode(value: int | str) -> int:
    """Converts permission strings (e.g., '755', '0o755') to integer mode bits."""
    if isinstance(value, int) and not isinstance(value, bool):
        mode = value
    else:
        match = re.match(r"^(?:0o?)?([0-7]{3,4})$", str(value).strip().lower())
        if not match:
            raise ValueError(f"Invalid mode format '{value}'")
        mode = int(match.group(1), 8)
    if not 0 <= mode <= 0o7777:
        raise ValueError(f"Invalid mode format '{value}'")
    return mode


@dataclass
class CoreConfig:
    """Core git settings.

    Attributes:
        remote_name (str): The remote pulled from and pushed to.
        branch (str): The branch pulled from and pushed to.
        executable (str): The git binary to invoke.
        check_exit_code (bool): Treat a non-zero exit status as a failure even
            when the output carries no failure marker.
    """

    remote_name: str = DEFAULT_REMOTE
    branch: str = DEFAULT_BRANCH
    executable: str = GIT_EXECUTABLE
    check_exit_code: bool = False


@dataclass
class FilesConfig:
    """Filesystem permission settings.

    Attributes:
        dir_mode (int): Mode for directories created in the working copy.
        file_mode (int): Mode for files written into the working copy.
    """

    dir_mode: int = DIR_MODE
    file_mode: int = FILE_MODE


@dataclass
class LogConfig:
    """Logging settings.

    Attributes:
        verbose (bool): Whether new repository handles start at INFO level.
    """

    verbose: bool = False


@dataclass
class Config:
    """Global configuration aggregator.

    Attributes:
        core (CoreConfig): Git settings.
        files (FilesConfig): Filesystem settings.
        log (LogConfig): Logging settings.
    """

    core: CoreConfig = field(default_factory=CoreConfig)
    files: FilesConfig = field(default_factory=FilesConfig)
    log: LogConfig = field(default_factory=LogConfig)

    # Cache for the base global configuration
    _global_cache: "Config | None" = None

    @classmethod
    def load(cls, repo_path: Path | None = None) -> "Config":
        """Loads and merges configuration from defaults, global, and local sources.

        Args:
            repo_path (Path | None): The project root to search for local config.

        Returns:
            Config: The fully merged configuration object.
        """
        if cls._global_cache is None:
            instance = cls()
            if CONFIG_FILE.exists():
                instance._merge_from_file(CONFIG_FILE)
            cls._global_cache = instance

        instance = copy.deepcopy(cls._global_cache)

        if repo_path:
            local_toml = repo_path / LOCAL_CONFIG_NAME
            pyproject = repo_path / "pyproject.toml"

            if local_toml.exists():
                instance._merge_from_file(local_toml)
            elif pyproject.exists():
                instance._merge_from_file(pyproject, section=PYPROJECT_SECTION)

        return instance

    def _merge_from_file(self, path: Path, section: str | None = None) -> None:
        """Parses a TOML file and merges it into the current instance.

        Args:
            path (Path): Path to the TOML file.
            section (str | None): Dot-separated section path (e.g., 'tool.git-depot').
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            if section:
                for key in section.split("."):
                    data = data.get(key, {})

            if not data:
                return

            if "core" in data:
                self.core = self._update_dataclass("core", self.core, data["core"])
            if "files" in data:
                self.files = self._update_dataclass(
                    "files", self.files, data["files"]
                )
            if "log" in data:
                self.log = self._update_dataclass("log", self.log, data["log"])

        except tomllib.TOMLDecodeError as e:
            logger.error(f"Config syntax error in {path}: {e}")
        except Exception as e:
            logger.warning(f"Failed to load config from {path}: {e}")

    @staticmethod
    def _update_dataclass(section_name: str, instance: Any, updates: dict) -> Any:
        """Updates a dataclass, warning on invalid keys and parsing mode strings."""
        valid_keys = instance.__dataclass_fields__.keys()
        filtered_updates = {}

        invalid_keys = set(updates.keys()) - set(valid_keys)
        if invalid_keys:
            logger.warning(
                f"Unknown config keys in [{section_name}]: "
                f"{', '.join(sorted(invalid_keys))}. Ignoring."
            )

        for k, v in updates.items():
            if k not in valid_keys:
                continue

            try:
                if k in ["dir_mode", "file_mode"]:
                    filtered_updates[k] = parse_mode(v)
                elif k in ["check_exit_code", "verbose"]:
                    if not isinstance(v, bool):
                        raise ValueError(f"Expected true or false, got '{v}'")
                    filtered_updates[k] = v
                else:
                    filtered_updates[k] = str(v)
            except ValueError as e:
                logger.warning(
                    f"Config error in [{section_name}].{k}: {e}. Falling back to default."
                )

        return replace(instance, **filtered_updates)
