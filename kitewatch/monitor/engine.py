"""
Build monitor: polls Buildkite, reconciles the tracked set and notifies on
state transitions.

All mutations of the tracked set go through ``BuildMonitor`` and run under a
single ``asyncio.Lock``; callers only ever see immutable snapshots.
"""

import asyncio
from datetime import datetime, timezone

from kitewatch.core.config import DEFAULT_POLLING_INTERVAL, validate_polling_interval
from kitewatch.core.exceptions import DuplicateBuildError, InvalidBuildURLError, KitewatchError
from kitewatch.core.logging import get_logger
from kitewatch.models import Build, BuildRef, DiagnosticCode, DiagnosticLevel
from kitewatch.services.buildkite import BuildkiteClient
from kitewatch.services.notifications import (
    LogNotificationSink,
    NotificationSink,
    notification_message,
    should_notify,
)
from kitewatch.services.urls import parse_build_url
from kitewatch.state.builds import DEFAULT_COMPLETED_CAP, TrackedBuilds, Transition
from kitewatch.state.diagnostics import DiagnosticLog
from .errors import ClassifiedError, classify_error

logger = get_logger(__name__)


def merge_fetched(user_builds: list[Build], manual_builds: list[Build]) -> list[Build]:
    """Combine both fetch results, keeping the user-feed entry when ids collide."""
    merged: dict[str, Build] = {}
    for build in user_builds:
        merged.setdefault(build.id, build)
    for build in manual_builds:
        merged.setdefault(build.id, build)
    return list(merged.values())


class BuildMonitor:
    """Owns the tracked build set and the polling lifecycle."""

    def __init__(
        self,
        client: BuildkiteClient,
        notifier: NotificationSink | None = None,
        diagnostic_log: DiagnosticLog | None = None,
        *,
        polling_interval: int = DEFAULT_POLLING_INTERVAL,
        page_size: int = 10,
        completed_cap: int = DEFAULT_COMPLETED_CAP,
        manual_fetch_concurrency: int = 4,
        notify_completed_only: bool = False,
    ):
        self._client = client
        self._notifier = notifier or LogNotificationSink()
        self.diagnostic_log = diagnostic_log or DiagnosticLog()
        self._polling_interval = validate_polling_interval(polling_interval)
        self._page_size = page_size
        self._manual_fetch_concurrency = max(1, manual_fetch_concurrency)
        self._notify_completed_only = notify_completed_only

        self._tracked = TrackedBuilds(completed_cap=completed_cap)
        self._lock = asyncio.Lock()
        self._polling_task: asyncio.Task | None = None
        self._pending_notifications: set[asyncio.Task] = set()
        # Bumped on every start/stop so cycles from an older session can be discarded
        self._session = 0
        self._cycle_in_progress = False

        self._org_slug: str | None = None
        self._user_id: str | None = None

        self.error_state: str | None = None
        self.is_polling = False
        self.last_update_time: datetime | None = None

    # ------------------------------------------------------------------
    # Snapshot accessors
    # ------------------------------------------------------------------

    @property
    def builds(self) -> tuple[Build, ...]:
        """Tracked builds in display order."""
        return self._tracked.snapshot()

    @property
    def active_builds(self) -> list[Build]:
        return [b for b in self.builds if b.is_active]

    @property
    def completed_builds(self) -> list[Build]:
        return [b for b in self.builds if b.is_completed]

    @property
    def badge_count(self) -> int:
        return len(self.active_builds)

    @property
    def manual_refs(self) -> tuple[BuildRef, ...]:
        return self._tracked.manual_refs

    @property
    def has_completed_first_fetch(self) -> bool:
        return self._tracked.has_completed_first_fetch

    @property
    def polling_interval(self) -> int:
        return self._polling_interval

    @property
    def org_slug(self) -> str | None:
        return self._org_slug

    @property
    def is_configured(self) -> bool:
        return self._org_slug is not None and self._client.has_token

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def configure(self, api_token: str, org_slug: str, polling_interval: int | None = None) -> None:
        """Set credentials and organization used by subsequent poll cycles."""
        self._client.set_token(api_token)
        self._org_slug = org_slug
        if polling_interval is not None:
            self._polling_interval = validate_polling_interval(polling_interval)

    async def start_monitoring(self) -> bool:
        """
        Resolve the current user, poll once and start the polling task.

        Returns:
            True if monitoring is running afterwards
        """
        if self.is_polling:
            return True
        if self._org_slug is None:
            raise KitewatchError("configure() must be called before start_monitoring()")

        try:
            user = await self._client.fetch_current_user()
        except Exception as exc:  # noqa: BLE001
            self._handle_error(exc)
            return False

        if self.is_polling:
            return True

        self._user_id = user.id
        self.is_polling = True
        self._session += 1
        session = self._session
        self.diagnostic_log.log(
            DiagnosticCode.MONITORING_STARTED,
            "Monitoring started",
            level=DiagnosticLevel.INFO,
        )

        await self.poll_once()

        # The first cycle may have stopped monitoring, or a stop/start may
        # have replaced this session while it ran
        if self.is_polling and session == self._session:
            self._polling_task = asyncio.create_task(self._polling_loop(session))
        return self.is_polling

    def stop_monitoring(self) -> None:
        """Cancel the polling task. Cycles still in flight are discarded."""
        if not self.is_polling and self._polling_task is None:
            return
        if self._polling_task is not None:
            self._polling_task.cancel()
            self._polling_task = None
        self.is_polling = False
        self._session += 1
        self.diagnostic_log.log(
            DiagnosticCode.MONITORING_STOPPED,
            "Monitoring stopped",
            level=DiagnosticLevel.INFO,
        )

    async def _polling_loop(self, session: int) -> None:
        while self.is_polling and session == self._session:
            await asyncio.sleep(self._polling_interval)
            if session != self._session:
                return
            await self.poll_once()

    # ------------------------------------------------------------------
    # Poll cycle
    # ------------------------------------------------------------------

    async def poll_once(self) -> bool:
        """
        Run one fetch -> merge -> publish cycle.

        Returns:
            True if the tracked set was updated
        """
        if self._user_id is None or self._org_slug is None:
            return False
        if self._cycle_in_progress:
            logger.debug("Poll cycle already in progress, skipping")
            return False

        self._cycle_in_progress = True
        session = self._session
        try:
            try:
                user_builds = await self._client.fetch_user_builds(
                    self._org_slug,
                    self._user_id,
                    page_size=self._page_size,
                )
            except Exception as exc:  # noqa: BLE001
                self._handle_error(exc)
                return False

            manual_builds = await self._fetch_manual_builds()

            if session != self._session:
                logger.info("Monitoring stopped during poll cycle, discarding results")
                return False

            merged = merge_fetched(user_builds, manual_builds)
            async with self._lock:
                transitions = self._tracked.reconcile(merged)

            self._dispatch_notifications(transitions)
            self.error_state = None
            self.last_update_time = datetime.now(timezone.utc)
            logger.debug("Poll cycle complete: %d builds tracked", len(self.builds))
            return True
        finally:
            self._cycle_in_progress = False

    async def _fetch_manual_builds(self) -> list[Build]:
        async with self._lock:
            refs = self._tracked.manual_refs
        if not refs:
            return []

        semaphore = asyncio.Semaphore(self._manual_fetch_concurrency)

        async def _fetch_one(ref: BuildRef) -> Build | None:
            async with semaphore:
                try:
                    build = await self._client.fetch_build(ref.org, ref.pipeline, ref.number)
                except Exception as exc:  # noqa: BLE001
                    # Keep the reference: the build may only be unavailable for now
                    classified = classify_error(exc)
                    logger.warning("Failed to fetch manually added build %s: %s", ref, exc)
                    self.diagnostic_log.log(
                        classified.code,
                        f"Could not refresh {ref}: {classified.message}",
                        detail=classified.detail,
                        level=classified.level,
                    )
                    return None
                return build.mark_manual()

        results = await asyncio.gather(*(_fetch_one(ref) for ref in refs))
        return [build for build in results if build is not None]

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    async def add_build(self, url: str) -> Build | None:
        """
        Start tracking a build by its web URL.

        Returns:
            The fetched build, or None if fetching it failed (the error is
            reported and ``error_state`` is set)

        Raises:
            InvalidBuildURLError: If the URL is not a build URL
            DuplicateBuildError: If the build is already tracked by URL
        """
        ref = parse_build_url(url)
        if ref is None:
            self._report_reference_error(DiagnosticCode.INVALID_URL, "Invalid Buildkite URL format")
            raise InvalidBuildURLError(f"Not a Buildkite build URL: {url}")
        if self._tracked.has_ref(ref):
            self._report_reference_error(DiagnosticCode.DUPLICATE_BUILD, "Build is already being tracked")
            raise DuplicateBuildError(f"Build {ref} is already being tracked")

        try:
            build = await self._client.fetch_build(ref.org, ref.pipeline, ref.number)
        except Exception as exc:  # noqa: BLE001
            self._handle_error(exc)
            return None

        build = build.mark_manual()
        async with self._lock:
            if self._tracked.has_ref(ref):
                self._report_reference_error(DiagnosticCode.DUPLICATE_BUILD, "Build is already being tracked")
                raise DuplicateBuildError(f"Build {ref} is already being tracked")
            self._tracked.add_ref(ref, build.id)
            transition = self._tracked.upsert(build)

        if transition is not None:
            self._dispatch_notifications([transition])
        self.error_state = None
        logger.info("Now tracking %s", build.display_title)
        return self._tracked.get(build.id) or build

    async def remove_build(self, build_id: str) -> bool:
        """Dismiss a build so later polls do not bring it back."""
        async with self._lock:
            removed = self._tracked.remove(build_id)
        return removed is not None

    async def clear_completed(self) -> int:
        """Dismiss every completed build. Returns how many were removed."""
        async with self._lock:
            removed = self._tracked.remove_completed()
        return len(removed)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _dispatch_notifications(self, transitions: list[Transition]) -> None:
        for transition in transitions:
            build = transition.build
            logger.info(
                "%s: %s -> %s",
                build.display_title,
                transition.old_state,
                transition.new_state,
            )
            if not should_notify(transition.old_state, build, self._notify_completed_only):
                continue
            self._schedule_notification(build)

    def _schedule_notification(self, build: Build) -> None:
        coro = self._notifier.notify(build.pipeline_name, build.branch, notification_message(build))
        task = asyncio.create_task(coro)
        self._pending_notifications.add(task)

        def _handle_task_result(done_task: asyncio.Task) -> None:
            self._pending_notifications.discard(done_task)
            try:
                done_task.result()
            except asyncio.CancelledError:
                return
            except Exception as exc:  # noqa: BLE001
                logger.error("Notification for %s failed: %s", build.display_title, exc)
                self.diagnostic_log.log(
                    DiagnosticCode.NOTIFICATION_FAILED,
                    f"Failed to deliver notification for {build.display_title}",
                    detail=repr(exc),
                    level=DiagnosticLevel.WARNING,
                )

        task.add_done_callback(_handle_task_result)

    async def flush_notifications(self) -> None:
        """Wait for notifications that are still being delivered."""
        if self._pending_notifications:
            await asyncio.gather(*list(self._pending_notifications), return_exceptions=True)

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    def _handle_error(self, exc: BaseException) -> ClassifiedError:
        classified = classify_error(exc)
        self.error_state = classified.banner
        self.diagnostic_log.log(
            classified.code,
            classified.message,
            detail=classified.detail,
            level=classified.level,
        )
        if classified.stops_monitoring and self.is_polling:
            self.stop_monitoring()
        return classified

    def _report_reference_error(self, code: DiagnosticCode, message: str) -> None:
        self.error_state = f"[{code.value}] {message}"
        self.diagnostic_log.log(code, message, level=DiagnosticLevel.WARNING)
