"""Unit tests for the Updater pipeline.

Runs complete updates against a temporary install root with an
in-memory release source; only the zip extractor and the filesystem
are real.
"""

import zipfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from ghupdater.core.context import Status
from ghupdater.core.errors import ApplyError, RemoteFetchError
from ghupdater.core.hooks import PostUpgradeHook
from ghupdater.core.pipeline import Updater, plan_update
from ghupdater.notify.base import Notifier
from ghupdater.remote.base import Extractor, ReleaseSource

RELEASE_FILES = {
    "index.php": "new index",
    "lib/util.php": "new util",
    "assets/app.js": "js",
    ".gitignore": "vendor/",
}


def _snapshot(root: Path) -> dict[str, str]:
    return {
        str(p.relative_to(root)): p.read_text()
        for p in sorted(root.rglob("*"))
        if p.is_file() and "update" not in p.relative_to(root).parts
    }


@pytest.fixture
def updated_source(release_source, zipball):
    """Release source offering version 1.1.0 with RELEASE_FILES."""
    return release_source(tag="v1.1.0", payload=zipball(RELEASE_FILES))


class TestUpdaterSuccess:
    """Tests for a run that applies a newer release."""

    def test_applies_release(self, make_config, install_root: Path, updated_source) -> None:
        """Files are overwritten, added and deleted; staging is cleaned."""
        result = Updater(make_config(), source=updated_source, sleep=MagicMock()).run()

        assert result.status is Status.UPDATED
        assert result.release == "v1.1.0"
        assert result.cleanup_failed is False
        assert (install_root / "index.php").read_text() == "new index"
        assert (install_root / "lib" / "util.php").read_text() == "new util"
        assert (install_root / "assets" / "app.js").read_text() == "js"
        assert not (install_root / "lib" / "legacy").exists()
        assert not (install_root / ".gitignore").exists()

    def test_staging_state_after_run(self, make_config, install_root: Path, updated_source) -> None:
        """Lock, archive and extract folder are gone; log and .htaccess remain."""
        result = Updater(make_config(), source=updated_source, sleep=MagicMock()).run()

        assert not (install_root / "update.lock").exists()
        assert not (install_root / "update" / "app.zip").exists()
        assert not (install_root / "update" / "extract").exists()
        assert (install_root / "update" / "log" / ".htaccess").is_file()
        assert result.log_path is not None
        assert result.log_path.parent == install_root / "update" / "log"
        assert "Update lock released." in result.log_path.read_text()

    def test_keeps_archive_when_clear_disabled(
        self, make_config, install_root: Path, updated_source
    ) -> None:
        """With clear=false the applied release is re-archived under the repository name."""
        Updater(make_config(clear=False), source=updated_source, sleep=MagicMock()).run()

        archive = install_root / "update" / "app.zip"
        with zipfile.ZipFile(archive) as zf:
            names = set(zf.namelist())
            assert zf.read("app/index.php") == b"new index"

        assert "app/" in names
        assert "app/lib/util.php" in names
        assert "app/.gitignore" not in names
        assert not (install_root / "update" / "extract").exists()

    def test_runs_hook_after_apply(self, make_config, install_root: Path, updated_source) -> None:
        """The post-upgrade hook sees the applied tree."""
        seen: list[str] = []
        hook = MagicMock(spec=PostUpgradeHook)
        hook.run.side_effect = lambda ctx: seen.append((install_root / "index.php").read_text())

        Updater(make_config(), source=updated_source, hook=hook, sleep=MagicMock()).run()

        hook.run.assert_called_once()
        assert seen == ["new index"]

    def test_no_notification_on_success(self, make_config, updated_source) -> None:
        """Notifiers are only used for failed runs."""
        notifier = MagicMock(spec=Notifier)

        Updater(make_config(), source=updated_source, notifier=notifier, sleep=MagicMock()).run()

        notifier.notify.assert_not_called()


class TestUpdaterOutcomes:
    """Tests for LATEST, BUSY and ERROR outcomes."""

    def test_already_latest(self, make_config, install_root: Path, release_source) -> None:
        """Equal versions end with LATEST and leave the tree untouched."""
        source = release_source(tag="1.0.0")
        before = _snapshot(install_root)

        result = Updater(make_config(), source=source, sleep=MagicMock()).run()

        assert result.status is Status.LATEST
        assert source.download_calls == 0
        assert _snapshot(install_root) == before
        assert not (install_root / "update.lock").exists()

    def test_busy_when_locked(self, make_config, install_root: Path, release_source) -> None:
        """An existing marker ends with BUSY after three attempts."""
        (install_root / "update.lock").write_text("")
        source = release_source()
        sleep = MagicMock()
        before = _snapshot(install_root)

        result = Updater(make_config(), source=source, sleep=sleep).run()

        assert result.status is Status.BUSY
        assert sleep.call_count == 2
        assert source.fetch_calls == 0
        assert _snapshot(install_root) == before
        assert (install_root / "update.lock").exists()

    def test_download_exhausts_retries(
        self, make_config, install_root: Path, release_source, zipball
    ) -> None:
        """Four failed downloads end with ERROR and no extraction."""
        source = release_source(tag="2.0.0", payload=zipball(RELEASE_FILES), fail_downloads=4)
        extractor = MagicMock(spec=Extractor)
        sleep = MagicMock()
        before = _snapshot(install_root)

        result = Updater(make_config(), source=source, extractor=extractor, sleep=sleep).run()

        assert result.status is Status.ERROR
        assert source.download_calls == 4
        assert sleep.call_count == 3
        extractor.extract.assert_not_called()
        assert _snapshot(install_root) == before
        assert not (install_root / "update.lock").exists()

    def test_download_recovers_on_retry(
        self, make_config, install_root: Path, release_source, zipball
    ) -> None:
        """A download that succeeds on the last retry still updates."""
        source = release_source(tag="2.0.0", payload=zipball(RELEASE_FILES), fail_downloads=3)

        result = Updater(make_config(), source=source, sleep=MagicMock()).run()

        assert result.status is Status.UPDATED
        assert source.download_calls == 4

    def test_fetch_failure(self, make_config, install_root: Path) -> None:
        """A failed release query ends with ERROR and releases the lock."""
        source = MagicMock(spec=ReleaseSource)
        source.fetch_latest.side_effect = RemoteFetchError("HTTP 404")

        result = Updater(make_config(), source=source, sleep=MagicMock()).run()

        assert result.status is Status.ERROR
        source.download.assert_not_called()
        assert not (install_root / "update.lock").exists()

    def test_corrupt_archive(self, make_config, install_root: Path, release_source) -> None:
        """An archive that cannot be extracted ends with ERROR."""
        source = release_source(tag="2.0.0", payload=b"this is not a zip")
        before = _snapshot(install_root)

        result = Updater(make_config(), source=source, sleep=MagicMock()).run()

        assert result.status is Status.ERROR
        assert _snapshot(install_root) == before

    def test_damaged_archive_data(
        self, make_config, install_root: Path, release_source, broken_zipball
    ) -> None:
        """Undecodable member data ends with ERROR, a flushed log and a notification."""
        payload = broken_zipball(RELEASE_FILES, "index.php")
        source = release_source(tag="2.0.0", payload=payload)
        notifier = MagicMock(spec=Notifier)
        before = _snapshot(install_root)

        result = Updater(
            make_config(), source=source, notifier=notifier, sleep=MagicMock()
        ).run()

        assert result.status is Status.ERROR
        assert _snapshot(install_root) == before
        assert result.log_path is not None
        assert result.log_path.is_file()
        notifier.notify.assert_called_once()
        assert not (install_root / "update.lock").exists()

    def test_notifier_failure_is_logged(self, make_config, install_root: Path) -> None:
        """A raising notifier does not prevent the result or the log flush."""
        source = MagicMock(spec=ReleaseSource)
        source.fetch_latest.side_effect = RemoteFetchError("HTTP 500")
        notifier = MagicMock(spec=Notifier)
        notifier.notify.side_effect = RuntimeError("mail relay down")

        result = Updater(
            make_config(), source=source, notifier=notifier, sleep=MagicMock()
        ).run()

        assert result.status is Status.ERROR
        notifier.notify.assert_called_once()
        assert any("mail relay down" in entry.message for entry in result.entries)
        assert result.log_path is not None
        assert "mail relay down" in result.log_path.read_text()
        assert not (install_root / "update.lock").exists()

    def test_hook_failure_is_error_and_notifies(self, make_config, updated_source) -> None:
        """A failing hook ends with ERROR and the notifier is called."""
        hook = MagicMock(spec=PostUpgradeHook)
        hook.run.side_effect = ApplyError("hook failed")
        notifier = MagicMock(spec=Notifier)

        result = Updater(
            make_config(), source=updated_source, hook=hook, notifier=notifier, sleep=MagicMock()
        ).run()

        assert result.status is Status.ERROR
        notifier.notify.assert_called_once()
        assert notifier.notify.call_args.args[1] is Status.ERROR

    def test_staging_folder_failure(
        self, make_config, install_root: Path, release_source
    ) -> None:
        """If the staging folder cannot be created the run errors without querying."""
        (install_root / "update").write_text("in the way")
        source = release_source()

        result = Updater(make_config(), source=source, sleep=MagicMock()).run()

        assert result.status is Status.ERROR
        assert source.fetch_calls == 0
        assert result.log_path is None
        assert not (install_root / "update.lock").exists()


class TestCleanupPolicy:
    """Tests for the cleanup failure policy."""

    @patch("ghupdater.core.pipeline.recursive_delete", return_value=False)
    def test_warn_keeps_status(self, _mock_delete: MagicMock, make_config, release_source) -> None:
        """The default policy keeps the status and flags the result."""
        source = release_source(tag="1.0.0")

        result = Updater(make_config(), source=source, sleep=MagicMock()).run()

        assert result.status is Status.LATEST
        assert result.cleanup_failed is True

    @patch("ghupdater.core.pipeline.recursive_delete", return_value=False)
    def test_downgrade_turns_status_into_error(
        self, _mock_delete: MagicMock, make_config, release_source
    ) -> None:
        """The downgrade policy turns a failed cleanup into ERROR."""
        notifier = MagicMock(spec=Notifier)
        result = Updater(
            make_config(cleanup_policy="downgrade"),
            source=release_source(tag="1.0.0"),
            notifier=notifier,
            sleep=MagicMock(),
        ).run()

        assert result.status is Status.ERROR
        assert result.cleanup_failed is True
        notifier.notify.assert_called_once()


class TestCheckAndPlan:
    """Tests for Updater.check and plan_update."""

    def test_check(self, make_config, release_source) -> None:
        """check() reports the latest release without locking."""
        info, newer = Updater(make_config(), source=release_source(tag="v1.4.0")).check()

        assert info.tag == "v1.4.0"
        assert newer is True

    def test_plan_honours_exclusions(
        self, make_config, install_root: Path, tmp_path: Path, tree_writer
    ) -> None:
        """Configured source exclusions are never proposed for deletion."""
        release = tree_writer(tmp_path / "release", {"index.php": "", ".gitkeep": ""})
        config = make_config(exclude={"source": {"paths": ["lib/legacy"]}})

        diff = plan_update(config, release)

        assert diff.to_apply == ("/index.php",)
        assert diff.to_delete == ("/lib",)

    def test_plan_ignores_staging(
        self, make_config, install_root: Path, tmp_path: Path, tree_writer
    ) -> None:
        """The staging folder and lock marker are never deleted."""
        tree_writer(install_root, {"update/log/x.txt": "", "update.lock": ""})
        release = tree_writer(tmp_path / "release", {"index.php": "", "lib/util.php": ""})

        diff = plan_update(make_config(), release)

        assert diff.to_delete == ("/lib/legacy",)
