from __future__ import annotations

from pathlib import Path

import pytest

from services.filter_update import (
    ArchiveError,
    DirectoryError,
    FilterIOError,
    FilterMatcher,
    FilterUpdateService,
    NetworkError,
    OutcomeStatus,
    ReleaseChange,
    UpdateStage,
)
from services.filter_update.service import remove_stale_filters
from tests.unit.filter_update_test_utils import (
    ARCHIVE_URL,
    FakeReleaseClient,
    FixedLocation,
    build_release_zip,
    make_release,
    write_filter,
)


SOFT = "NeverSink's filter - 0-SOFT.filter"
STRICT = "NeverSink's filter - 3-STRICT.filter"


def _service(client: FakeReleaseClient, directory: Path, **kwargs) -> FilterUpdateService:
    return FilterUpdateService(client, location_resolver=FixedLocation(directory), **kwargs)


def _names(directory: Path) -> list[str]:
    return sorted(path.name for path in directory.iterdir())


def test_empty_directory_installs_latest_release(tmp_path: Path) -> None:
    client = FakeReleaseClient(archive=build_release_zip("8.7.2"))

    outcome = _service(client, tmp_path).run()

    assert outcome.status is OutcomeStatus.UPDATED
    assert outcome.current_version is None
    assert outcome.display_current_version == "<unknown: No existing filters found>"
    assert outcome.change is ReleaseChange.INSTALL
    assert outcome.removed_files == ()
    assert [item.filename for item in outcome.files_written] == [SOFT, STRICT]
    assert _names(tmp_path) == [SOFT, STRICT]
    assert client.calls == ["fetch_latest_release", f"fetch_bytes:{ARCHIVE_URL}"]


def test_matching_version_does_nothing(tmp_path: Path) -> None:
    installed = write_filter(tmp_path, SOFT, "8.7.2")
    before = installed.read_bytes()
    client = FakeReleaseClient(archive=build_release_zip("8.7.2"))

    outcome = _service(client, tmp_path).run()

    assert outcome.status is OutcomeStatus.UP_TO_DATE
    assert outcome.updated is False
    assert outcome.current_version == "8.7.2"
    assert outcome.change is ReleaseChange.UNCHANGED
    assert outcome.files_written == ()
    assert client.calls == ["fetch_latest_release"]
    assert _names(tmp_path) == [SOFT]
    assert installed.read_bytes() == before


def test_force_reinstalls_matching_version(tmp_path: Path) -> None:
    write_filter(tmp_path, SOFT, "8.7.2")
    client = FakeReleaseClient(archive=build_release_zip("8.7.2"))

    outcome = _service(client, tmp_path).run(force=True)

    assert outcome.status is OutcomeStatus.UPDATED
    assert outcome.change is ReleaseChange.REINSTALL
    assert outcome.removed_files == (SOFT,)
    assert _names(tmp_path) == [SOFT, STRICT]


def test_older_version_is_replaced(tmp_path: Path) -> None:
    write_filter(tmp_path, "NeverSink's filter - 5-UBER-STRICT.filter", "8.6.0")
    (tmp_path / "production_Ctrl.filter").write_text("Show\n", encoding="utf-8")
    client = FakeReleaseClient(release=make_release("8.7.2"), archive=build_release_zip("8.7.2"))

    outcome = _service(client, tmp_path).run()

    assert outcome.change is ReleaseChange.UPGRADE
    assert outcome.current_version == "8.6.0"
    assert outcome.removed_files == ("NeverSink's filter - 5-UBER-STRICT.filter",)
    assert _names(tmp_path) == [SOFT, STRICT, "production_Ctrl.filter"]
    assert "# VERSION:  8.7.2" in (tmp_path / SOFT).read_text(encoding="utf-8")


def test_malformed_installed_filter_forces_update(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    write_filter(tmp_path, SOFT, None)
    client = FakeReleaseClient(archive=build_release_zip("8.7.2"))

    with caplog.at_level("WARNING", logger="services.filter_update.service"):
        outcome = _service(client, tmp_path).run()

    assert outcome.status is OutcomeStatus.UPDATED
    assert outcome.current_version is None
    assert "Unable to fetch the version line" in outcome.display_current_version
    assert "malformed" in caplog.text


def test_network_failure_after_removal_leaves_directory_empty_until_rerun(tmp_path: Path) -> None:
    write_filter(tmp_path, SOFT, "8.6.0")
    client = FakeReleaseClient(
        archive=build_release_zip("8.7.2"), archive_error=NetworkError("connection reset")
    )

    with pytest.raises(NetworkError) as excinfo:
        _service(client, tmp_path).run()

    assert excinfo.value.stage is UpdateStage.FETCH_ARCHIVE
    assert str(excinfo.value) == "[fetch-archive] connection reset"
    assert _names(tmp_path) == []

    client.archive_error = None
    outcome = _service(client, tmp_path).run()

    assert outcome.change is ReleaseChange.INSTALL
    assert _names(tmp_path) == [SOFT, STRICT]


def test_metadata_failure_changes_nothing(tmp_path: Path) -> None:
    write_filter(tmp_path, SOFT, "8.6.0")
    client = FakeReleaseClient(release_error=NetworkError("HTTP 503: unavailable"))

    with pytest.raises(NetworkError) as excinfo:
        _service(client, tmp_path).run()

    assert excinfo.value.stage is UpdateStage.FETCH_LATEST_METADATA
    assert _names(tmp_path) == [SOFT]


def test_bad_archive_is_tagged_with_install_stage(tmp_path: Path) -> None:
    client = FakeReleaseClient(archive=b"not a zip")

    with pytest.raises(ArchiveError) as excinfo:
        _service(client, tmp_path).run()

    assert excinfo.value.stage is UpdateStage.INSTALL


def test_directory_error_is_tagged_with_locate_stage(tmp_path: Path) -> None:
    def failing_resolver():
        raise DirectoryError("Unable to find homedir for user.")

    client = FakeReleaseClient()
    service = FilterUpdateService(client, location_resolver=failing_resolver)

    with pytest.raises(DirectoryError) as excinfo:
        service.run()

    assert excinfo.value.stage is UpdateStage.LOCATE_DIRECTORY
    assert client.calls == []


def test_os_errors_during_removal_become_filter_io_errors(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    write_filter(tmp_path, SOFT, "8.6.0")
    client = FakeReleaseClient(archive=build_release_zip("8.7.2"))

    def refuse_unlink(self, missing_ok=False):
        raise PermissionError(f"Permission denied: '{self.name}'")

    monkeypatch.setattr(Path, "unlink", refuse_unlink)

    with pytest.raises(FilterIOError) as excinfo:
        _service(client, tmp_path).run()

    assert excinfo.value.stage is UpdateStage.REMOVE_STALE_FILES
    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert client.calls == ["fetch_latest_release"]


def test_remove_stale_filters_only_touches_matching_files(tmp_path: Path) -> None:
    write_filter(tmp_path, SOFT, "1.0")
    write_filter(tmp_path, STRICT, "1.0")
    (tmp_path / "Custom.filter").write_text("Show\n", encoding="utf-8")
    (tmp_path / "NeverSink notes.txt").write_text("notes", encoding="utf-8")

    removed = remove_stale_filters(tmp_path, FilterMatcher())

    assert sorted(removed) == [SOFT, STRICT]
    assert _names(tmp_path) == ["Custom.filter", "NeverSink notes.txt"]


def test_created_location_is_reported(tmp_path: Path) -> None:
    client = FakeReleaseClient(archive=build_release_zip("8.7.2"))
    service = FilterUpdateService(
        client, location_resolver=FixedLocation(tmp_path, was_created=True)
    )

    outcome = service.run()

    assert outcome.location.was_created is True
    assert outcome.location.path == tmp_path
