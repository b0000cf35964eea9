import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from git_depot.config import Config
from git_depot.exceptions import VCSOperationError
from git_depot.repository import Repository
from git_depot.runner import GitResult, GitRunner


def test_run_captures_combined_output(mocker: MagicMock, tmp_path: Path) -> None:
    """Verifies stderr is folded into stdout and the directory is passed through."""
    mock_run = mocker.patch(
        "subprocess.run",
        return_value=subprocess.CompletedProcess(
            args=[], returncode=0, stdout="On branch master\n"
        ),
    )

    res = GitRunner().run(["status"], cwd=tmp_path)

    assert res == GitResult(
        args=["status"], cwd=tmp_path, output="On branch master\n", returncode=0
    )
    assert res.succeeded
    mock_run.assert_called_once_with(
        ["git", "status"],
        cwd=tmp_path,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        check=False,
        env=None,
    )


def test_run_uses_configured_executable(mocker: MagicMock, tmp_path: Path) -> None:
    mock_run = mocker.patch(
        "subprocess.run",
        return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout=None),
    )

    res = GitRunner("/opt/git/bin/git", env={"LANG": "C"}).run(["fetch"], tmp_path)

    assert mock_run.call_args.args[0] == ["/opt/git/bin/git", "fetch"]
    assert mock_run.call_args.kwargs["env"] == {"LANG": "C"}
    assert res.output == ""


def test_run_check_raises(mocker: MagicMock, tmp_path: Path) -> None:
    mocker.patch(
        "subprocess.run", side_effect=subprocess.CalledProcessError(1, ["git"])
    )

    with pytest.raises(subprocess.CalledProcessError):
        GitRunner().run(["config", "--get", "missing.key"], tmp_path, check=True)


def test_missing_executable_propagates(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        GitRunner("git-depot-no-such-binary").run(["status"], tmp_path)


def test_result_marker_matching() -> None:
    res = GitResult(
        args=["push"],
        cwd=Path("."),
        output="error: failed to push some refs",
        returncode=1,
    )

    assert res.contains("error")
    assert not res.contains("fatal")
    assert not res.succeeded


def _fake_git(tmp_path: Path, body: str) -> Path:
    """Writes an executable shell script standing in for git."""
    script = tmp_path / "fake-git"
    script.write_text(f"#!/bin/sh\n{body}\n")
    script.chmod(0o755)
    return script


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_non_utf8_output_is_decoded_with_replacement(tmp_path: Path) -> None:
    """Verifies latin-1 bytes from a remote hook do not abort the call."""
    fake = _fake_git(tmp_path, r"printf 'remote: caf\351 ok\n'")

    res = GitRunner(str(fake)).run(["push"], tmp_path)

    assert res.output.startswith("remote: caf")
    assert res.output.endswith(" ok\n")
    assert res.succeeded


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_non_utf8_output_through_repository(tmp_path: Path) -> None:
    """Verifies push succeeds, and marker matching still works, on undecodable output."""
    clean = _fake_git(tmp_path, r"printf 'remote: caf\351 ok\n'")
    repo = Repository(
        "https://example.com/group/project.git",
        tmp_path / "clone",
        config=Config(),
        runner=GitRunner(str(clean)),
    )

    repo.push()

    failing = tmp_path / "failing-git"
    failing.write_text(
        "#!/bin/sh\nprintf 'remote: caf\\351\\nerror: failed to push some refs\\n'\n"
    )
    failing.chmod(0o755)
    repo.runner = GitRunner(str(failing))

    with pytest.raises(VCSOperationError) as exc:
        repo.push()

    assert "error: failed to push some refs" in str(exc.value)
