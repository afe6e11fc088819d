"""Pipeline resolution: stdin, local scripts and repository projects."""

from __future__ import annotations

import io
from pathlib import Path
import tempfile

import pytest

from pipelaunch.errors import InvalidInvocation, RepositoryError
from pipelaunch.reference import LocalScript, RemoteProject, StdinScript, content_id
from pipelaunch.resolver import PipelineResolver, resolve_pipeline

pytestmark = pytest.mark.unit


class _TtyStream(io.StringIO):
    def isatty(self) -> bool:
        return True


# --- stdin ------------------------------------------------------------------


def test_stdin_is_copied_to_temp_file(repository) -> None:
    ref = resolve_pipeline("-", repository, stdin=io.StringIO("println 1\n"))

    assert isinstance(ref, StdinScript)
    assert ref.temp_path.read_text(encoding="utf-8") == "println 1\n"
    assert ref.script_path == ref.temp_path
    assert repository.calls == []


@pytest.mark.parametrize("stream", [None, io.StringIO(""), _TtyStream("x")])
def test_stdin_unavailable_is_rejected(repository, stream) -> None:
    with pytest.raises(InvalidInvocation, match="stdin"):
        resolve_pipeline("-", repository, stdin=stream)


def test_stdin_bytes_are_copied_verbatim(repository) -> None:
    stream = io.TextIOWrapper(io.BytesIO(b"x\xff\n"), encoding="utf-8")

    ref = resolve_pipeline("-", repository, stdin=stream)

    assert isinstance(ref, StdinScript)
    assert ref.temp_path.read_bytes() == b"x\xff\n"


class _BrokenStream(io.StringIO):
    def read(self, *args: object) -> str:
        raise OSError("stream closed")


def test_stdin_read_failure_leaves_no_temp_file(
    repository, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    temp_dir = tmp_path / "tmp"
    temp_dir.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(temp_dir))

    with pytest.raises(InvalidInvocation, match="stdin") as exc:
        resolve_pipeline("-", repository, stdin=_BrokenStream())

    assert isinstance(exc.value.__cause__, OSError)
    assert list(temp_dir.iterdir()) == []


def test_stdin_with_revision_is_rejected(repository) -> None:
    with pytest.raises(InvalidInvocation, match="Revision"):
        resolve_pipeline(
            "-", repository, revision="dev", stdin=io.StringIO("println 1\n")
        )


# --- local scripts ----------------------------------------------------------


def test_local_file_resolves_to_that_path(repository, script: Path) -> None:
    ref = resolve_pipeline(str(script), repository)

    assert isinstance(ref, LocalScript)
    assert ref.path == script
    assert ref.content_id == content_id(script)
    assert len(ref.short_id) == 10
    assert repository.calls == []


def test_local_file_with_revision_is_rejected(repository, script: Path) -> None:
    with pytest.raises(InvalidInvocation, match="Revision"):
        resolve_pipeline(str(script), repository, revision="v1")


def test_content_id_changes_with_content(tmp_path: Path) -> None:
    a = tmp_path / "a.nf"
    b = tmp_path / "b.nf"
    a.write_text("one", encoding="utf-8")
    b.write_text("two", encoding="utf-8")

    assert content_id(a) != content_id(b)


def test_directory_uses_project_main_script(repository, tmp_path: Path) -> None:
    project_dir = tmp_path / "proj"
    project_dir.mkdir()
    (project_dir / "main.nf").write_text("println 'main'", encoding="utf-8")

    ref = resolve_pipeline(str(project_dir), repository)

    assert isinstance(ref, LocalScript)
    assert ref.path == project_dir / "main.nf"
    assert repository.call_names == ["set_local_path"]


def test_directory_with_revision_is_rejected(repository, tmp_path: Path) -> None:
    project_dir = tmp_path / "proj"
    project_dir.mkdir()
    (project_dir / "main.nf").write_text("", encoding="utf-8")

    with pytest.raises(InvalidInvocation, match="Revision"):
        resolve_pipeline(str(project_dir), repository, revision="main")


# --- repository projects ----------------------------------------------------


def test_runnable_project_checks_remote_status(repository) -> None:
    ref = PipelineResolver(repository).resolve("org/proj", revision="v1.0")

    assert isinstance(ref, RemoteProject)
    assert ref.repo_id == "org/proj"
    assert ref.revision == "v1.0"
    assert ref.script_path == repository.root / "org/proj" / "main.nf"
    assert ref.revision_info == repository.revision_info
    assert repository.call_names == [
        "get_project",
        "is_runnable",
        "checkout",
        "update_modules",
        "get_script_file",
        "check_remote_status",
    ]
    assert ("checkout", "v1.0") in repository.calls


def test_empty_revision_selects_default(repository) -> None:
    ref = resolve_pipeline("org/proj", repository, revision="")

    assert ref.revision is None
    assert ("checkout", "") in repository.calls


def test_not_runnable_project_is_pulled_without_status_check(repository) -> None:
    repository.runnable = False

    resolve_pipeline("org/proj", repository)

    assert "download" in repository.call_names
    assert "check_remote_status" not in repository.call_names
    assert repository.call_names.index("download") < repository.call_names.index(
        "checkout"
    )


def test_latest_forces_pull(repository) -> None:
    resolve_pipeline("org/proj", repository, latest=True)

    assert "download" in repository.call_names
    assert "check_remote_status" not in repository.call_names


@pytest.mark.parametrize(
    "step", ["get_project", "download", "checkout", "update_modules", "get_script_file"]
)
def test_unexpected_errors_are_wrapped(repository, step: str) -> None:
    repository.runnable = False
    repository.fail_on = step
    repository.error = OSError("disk on fire")

    with pytest.raises(RepositoryError, match="org/proj") as exc:
        resolve_pipeline("org/proj", repository)

    assert exc.value.repo_id == "org/proj"
    assert isinstance(exc.value.__cause__, OSError)


def test_domain_errors_pass_through(repository) -> None:
    original = InvalidInvocation("Unknown revision `nope`")
    repository.fail_on = "checkout"
    repository.error = original

    with pytest.raises(InvalidInvocation) as exc:
        resolve_pipeline("org/proj", repository, revision="nope")

    assert exc.value is original


def test_empty_pipeline_name_is_rejected(repository) -> None:
    with pytest.raises(InvalidInvocation, match="No project name"):
        resolve_pipeline("", repository)
