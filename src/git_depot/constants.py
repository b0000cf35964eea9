import os
from pathlib import Path

"""Global constants and configuration path definitions for Git Depot.

This module defines the configuration layout (adhering to XDG standards where
applicable), the application identifier, and the git defaults and failure
markers shared by the repository handle and the command-line interface.
"""

# --- Identity ---
APP_NAME = "git-depot"
"""str: The human-readable application name, also the root logger name."""

# --- Configuration Paths ---
_XDG_CONFIG = os.environ.get("XDG_CONFIG_HOME")
_BASE_CONFIG = Path(_XDG_CONFIG) if _XDG_CONFIG else Path.home() / ".config"

CONFIG_DIR: Path = _BASE_CONFIG / "git-depot"
"""Path: The directory for user configuration files."""

CONFIG_FILE: Path = CONFIG_DIR / "config.toml"
"""Path: The global configuration file path."""

LOCAL_CONFIG_NAME = "depot.toml"
"""str: Per-project configuration file name."""

PYPROJECT_SECTION = "tool.git-depot"
"""str: The pyproject.toml table holding per-project configuration."""

# --- Git / Logic Constants ---
GIT_EXECUTABLE = "git"
"""str: The git binary looked up on PATH."""

GIT_METADATA_DIR = ".git"
"""str: Directory whose presence marks an already-cloned working copy."""

DEFAULT_REMOTE = "origin"
"""str: The remote used for pull and push."""

DEFAULT_BRANCH = "master"
"""str: The branch used for pull and push."""

CLONE_FAILURE_MARKER = "fatal"
"""str: Substring in clone/pull output that marks a failed sync."""

WRITE_FAILURE_MARKER = "error"
"""str: Substring in add/commit/push output that marks a failed step."""

# --- Filesystem ---
DIR_MODE = 0o775
"""int: Permission bits for created directories."""

FILE_MODE = 0o755
"""int: Permission bits for newly written files."""
