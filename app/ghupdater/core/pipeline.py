"""Update pipeline.

Runs one update of an install root from its latest GitHub release:

    acquire lock -> fetch latest release -> compare versions -> download
    -> extract -> map both trees -> diff -> apply -> post-upgrade hook
    -> release lock (cleanup) -> notify on error -> flush log

Every failure while the lock is held ends the run with ERROR; the lock
is released on every exit path once acquired. Applied changes are never
rolled back.
"""

import logging
import os
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from ghupdater.core.config import BUILTIN_RELEASE_FILENAMES, BUILTIN_SOURCE_PATHS, UpdaterConfig
from ghupdater.core.context import CleanupPolicy, RunContext, RunResult, Status
from ghupdater.core.errors import (
    ArchiveError,
    LockUnavailable,
    RemoteFetchError,
    StagingIOError,
    UpdaterError,
)
from ghupdater.core.hooks import CommandHook, PostUpgradeHook
from ghupdater.core.lock import LockManager
from ghupdater.core.logbook import ensure_access_file, flush_log
from ghupdater.core.paths import StagingLayout, ensure_dir
from ghupdater.core.versioning import is_newer
from ghupdater.notify import EmailNotifier, Notifier
from ghupdater.remote import (
    Extractor,
    GitHubReleaseSource,
    ReleaseInfo,
    ReleaseSource,
    ZipExtractor,
    archive_release,
)
from ghupdater.tree import DiffResult, ExclusionRule, TreeApplier, compute_diff, map_tree
from ghupdater.tree.delete import recursive_delete

logger = logging.getLogger(__name__)


def source_rules(config: UpdaterConfig, root: Path) -> ExclusionRule:
    """Build exclusions for walking the installed tree.

    Args:
        config: Updater configuration.
        root: Install root.

    Returns:
        Built-in source exclusions merged with the configured ones.
    """
    return ExclusionRule.for_root(
        root,
        (*BUILTIN_SOURCE_PATHS, *config.exclude.source.paths),
        config.exclude.source.filenames,
    )


def release_rules(config: UpdaterConfig, release_root: Path) -> ExclusionRule:
    """Build exclusions for walking an extracted release tree.

    Args:
        config: Updater configuration.
        release_root: Root of the extracted release.

    Returns:
        Built-in release exclusions merged with the configured ones.
    """
    return ExclusionRule.for_root(
        release_root,
        config.exclude.release.paths,
        (*BUILTIN_RELEASE_FILENAMES, *config.exclude.release.filenames),
    )


def plan_update(config: UpdaterConfig, release_root: Path) -> DiffResult:
    """Diff the install root against an already extracted release.

    Nothing is locked or modified.

    Args:
        config: Updater configuration.
        release_root: Root of the extracted release tree.

    Returns:
        DiffResult describing the changes an apply would make.
    """
    root = config.effective_root
    return compute_diff(
        root,
        map_tree(root, source_rules(config, root)),
        release_root,
        map_tree(release_root, release_rules(config, release_root)),
    )


class Updater:
    """Runs update checks and updates for one install root.

    Collaborators are injected; anything omitted is built from the
    configuration (GitHub client, zip extractor, email notifier when
    ``notify.admin`` and ``notify.mailer`` are set, command hook when
    ``post_upgrade`` is set).

    Example:
        >>> updater = Updater(load_config())
        >>> result = updater.run()
        >>> result.status
        <Status.UPDATED: 'updated'>
    """

    def __init__(
        self,
        config: UpdaterConfig,
        *,
        source: ReleaseSource | None = None,
        extractor: Extractor | None = None,
        notifier: Notifier | None = None,
        hook: PostUpgradeHook | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the Updater.

        Args:
            config: Validated updater configuration.
            source: Release registry client and artifact fetcher.
            extractor: Archive extractor.
            notifier: Failure notifier.
            hook: Hook run after a successful apply.
            sleep: Sleep function used between retries, injectable for tests.
        """
        self._config = config
        self._source = source
        self._extractor = extractor if extractor is not None else ZipExtractor()
        self._notifier = notifier if notifier is not None else EmailNotifier.from_config(
            config.notify
        )
        if hook is None and config.post_upgrade:
            hook = CommandHook(config.post_upgrade)
        self._hook = hook
        self._sleep = sleep

    @property
    def layout(self) -> StagingLayout:
        """Staging layout of the configured install root."""
        return StagingLayout(
            root=self._config.effective_root,
            repository=self._config.repository.name,
        )

    def check(self) -> tuple[ReleaseInfo, bool]:
        """Fetch the latest release without locking or changing anything.

        Returns:
            Tuple of the latest ReleaseInfo and whether it is newer than
            the installed version.

        Raises:
            RemoteFetchError: If the release cannot be fetched.
            ConfigError: If the installed version is invalid.
        """
        repository = self._config.repository
        with self._release_source() as source:
            info = source.fetch_latest(repository.owner, repository.name)
        return info, is_newer(info.tag, self._config.version)

    def run(self) -> RunResult:
        """Run a full update.

        Returns:
            RunResult with the final status. Never raises UpdaterError.
        """
        with self._release_source() as source:
            return self._run(source)

    @contextmanager
    def _release_source(self) -> Iterator[ReleaseSource]:
        """Yield the injected source, or a GitHub client closed afterwards."""
        if self._source is not None:
            yield self._source
            return
        with GitHubReleaseSource(self._config.repository.effective_token) as source:
            yield source

    def _run(self, source: ReleaseSource) -> RunResult:
        config = self._config
        context = RunContext(config=config, layout=self.layout)
        context.log.log(f"Update started. {context.layout.root}")

        lock = LockManager(
            context.layout,
            context.log,
            attempts=config.retry.lock_attempts,
            delay=config.retry.lock_delay,
            sleep=self._sleep,
        )
        try:
            lock.acquire()
        except LockUnavailable:
            context.log.log("Another update is in progress.")
            return self._finish(context, Status.BUSY)
        except StagingIOError as e:
            context.log.warning(f"Update aborted: {e}")
            return self._finish(context, Status.ERROR)

        status = Status.ERROR
        try:
            self._prepare(context)
            repository = config.repository
            release = source.fetch_latest(repository.owner, repository.name)
            context = context.with_release(release.tag)
            context.log.log(f"Latest release: {release.tag}. Installed version: {config.version}")

            if is_newer(release.tag, config.version):
                context = self._install(context, source, release)
                status = Status.UPDATED
                context.log.log(f"Update to {release.tag} completed.")
            else:
                status = Status.LATEST
                context.log.log("Already up to date.")
        except UpdaterError as e:
            status = Status.ERROR
            context.log.warning(f"Update failed: {e}")
        finally:
            cleaned = lock.release(lambda: self._cleanup(context, status))

        return self._finish(context, status, cleanup_failed=not cleaned)

    def _prepare(self, context: RunContext) -> None:
        """Create the extraction folder and protect the log folder."""
        try:
            ensure_dir(context.layout.extract_dir, "extract")
        except RuntimeError as e:
            context.log.warning(f"Extract folder cannot be created. {context.layout.extract_dir}")
            raise StagingIOError(str(e)) from e
        ensure_access_file(context.layout.log_dir, context.log)

    def _install(
        self,
        context: RunContext,
        source: ReleaseSource,
        release: ReleaseInfo,
    ) -> RunContext:
        """Download, extract, diff and apply a release, then run the hook."""
        layout = context.layout
        archive = self._download(context, source, release.artifact_url)

        context.log.log(f"Extracting {archive}")
        top_level = self._extractor.extract(archive, layout.extract_dir)
        extracted = layout.extract_dir / top_level
        if extracted != layout.release_root:
            try:
                os.replace(extracted, layout.release_root)
            except OSError as e:
                raise ArchiveError(f"Cannot rename {extracted}: {e}") from e
        context.log.log(f"Release extracted to {layout.release_root}")

        diff = plan_update(self._config, layout.release_root)
        context.log.log(
            f"{len(diff.to_apply)} path(s) to apply, {len(diff.to_delete)} path(s) to delete."
        )
        TreeApplier(context.log).apply(layout.release_root, layout.root, diff)
        context = context.with_applied(diff.to_apply)

        if self._hook is not None:
            self._hook.run(context)
        return context

    def _download(self, context: RunContext, source: ReleaseSource, url: str) -> Path:
        """Download the release archive, retrying with a fixed delay."""
        retry = self._config.retry
        attempts = retry.download_retries + 1
        context.log.log(f"Downloading {url}")
        for attempt in range(1, attempts + 1):
            try:
                archive = source.download(url, context.layout.archive_path)
            except RemoteFetchError as e:
                context.log.warning(f"Download attempt {attempt} failed: {e}")
                if attempt == attempts:
                    raise
                context.log.log(
                    f"Unable to retrieve download. Retry in {retry.download_delay:g} seconds."
                )
                self._sleep(retry.download_delay)
            else:
                context.log.log(f"Download saved to {archive}")
                return archive
        raise RemoteFetchError(f"Download failed: {url}")

    def _cleanup(self, context: RunContext, status: Status) -> bool:
        """Remove staging artifacts; re-archive the release when clear is off."""
        layout = context.layout
        log = context.log
        cleaned = True

        log.log("Cleaning up staging folder.")
        if not recursive_delete(layout.archive_path):
            log.warning(f"Failed to delete downloaded archive. {layout.archive_path}")
            cleaned = False

        if (
            not self._config.clear
            and status is not Status.ERROR
            and context.applied
            and layout.release_root.is_dir()
        ):
            try:
                archive_release(
                    layout.release_root,
                    context.applied,
                    layout.archive_path,
                    layout.repository,
                )
            except ArchiveError as e:
                log.warning(f"Failed to archive release: {e}")
                cleaned = False
            else:
                log.log(f"Release archived. {layout.archive_path}")

        if not recursive_delete(layout.extract_dir):
            log.warning(f"Failed to delete extract folder. {layout.extract_dir}")
            cleaned = False
        return cleaned

    def _finish(
        self,
        context: RunContext,
        status: Status,
        cleanup_failed: bool = False,
    ) -> RunResult:
        """Apply the cleanup policy, notify on error and flush the log."""
        config = self._config
        if cleanup_failed and config.cleanup_policy is CleanupPolicy.DOWNGRADE:
            if status is not Status.ERROR:
                context.log.warning(f"Cleanup failed: status {status.value} downgraded to error.")
                status = Status.ERROR

        context.log.log(f"Update finished with status {status.value} ({status.code}).")

        if status is Status.ERROR and self._notifier is not None:
            try:
                self._notifier.notify(context, status)
            except Exception as e:
                context.log.warning(f"Failed to send notification: {e}")

        log_path: Path | None = None
        try:
            log_path = flush_log(context.log, context.layout.log_dir, config.max_logs)
        except StagingIOError as e:
            logger.error("Failed to save run log: %s", e)

        return RunResult(
            status=status,
            release=context.release,
            cleanup_failed=cleanup_failed,
            log_path=log_path,
            entries=context.log.entries,
        )
