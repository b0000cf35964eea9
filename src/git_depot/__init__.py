"""Git Depot: keep a local clone of a remote git repository in step.

This package clones or pulls a remote repository into a local folder, writes
files into it as individual commits, and pushes them back, all by shelling out
to the `git` executable.
"""

from .config import Config
from .exceptions import VCSOperationError
from .repository import Repository, derive_repo_folder, get_remote_origin_url
from .runner import GitResult, GitRunner

__all__ = [
    "Config",
    "GitResult",
    "GitRunner",
    "Repository",
    "VCSOperationError",
    "derive_repo_folder",
    "get_remote_origin_url",
]
