"""Migration execution monitor (async).

Drives one session through target configuration, run start and progress
polling.  The monitor owns a single background poll task per run; the
task is created when a run starts and released exactly once, either when
every table reaches a terminal status or when the monitor is closed.

Usage:
    from migration_mind.execution.monitor import ExecutionMonitor

    async with ExecutionMonitor(api, session_id) as monitor:
        await monitor.check_target()
        if monitor.state is MonitorState.UNCONFIGURED:
            await monitor.save_target_credentials("db.example.com", 5432, "postgres", "postgres", "...")
        result = await monitor.start()
        await monitor.wait()
        for table in monitor.progress:
            print(table.table_name, table.percentage)
"""

import asyncio
import logging
from collections.abc import Callable

from pydantic import TypeAdapter, ValidationError

from migration_mind.client.base import ApiError, MigrationApi
from migration_mind.execution.models import (
    CredentialsResult,
    CredentialsValidationError,
    MonitorState,
    RunStatus,
    StartResult,
    TableProgress,
    TableStatus,
    TargetCredentials,
    TargetSummary,
    derive_run_status,
    is_run_complete,
    validate_target_credentials,
)
from migration_mind.execution.state import InvalidTransitionError, MonitorEvent, transition

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0
REQUEST_IN_FLIGHT_ERROR = "Another target or run request is still in progress"

_PROGRESS_ADAPTER = TypeAdapter(list[TableProgress])

ProgressCallback = Callable[[list[TableProgress]], None]


class ExecutionMonitor:
    """Target configuration, run start and progress polling for a session.

    Args:
        api: Backend service client.
        session_id: Session the run belongs to.
        poll_interval: Seconds between progress polls.
        on_update: Called with each new progress snapshot.
    """

    def __init__(
        self,
        api: MigrationApi,
        session_id: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_update: ProgressCallback | None = None,
    ) -> None:
        if poll_interval < 0:
            raise ValueError(f"poll_interval must be >= 0, got {poll_interval}")
        self._api = api
        self._session_id = session_id
        self._poll_interval = poll_interval
        self._on_update = on_update

        self._state = MonitorState.UNCONFIGURED
        self._target: TargetSummary | None = None
        self._run_id: str | None = None
        self._progress: list[TableProgress] = []
        self._poll_task: asyncio.Task[None] | None = None
        self._cancelled_task: asyncio.Task[None] | None = None
        self._poll_count = 0
        self._pending: MonitorEvent | None = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def target(self) -> TargetSummary | None:
        return self._target

    @property
    def run_id(self) -> str | None:
        return self._run_id

    @property
    def progress(self) -> list[TableProgress]:
        return list(self._progress)

    @property
    def poll_count(self) -> int:
        return self._poll_count

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def run_status(self) -> RunStatus | None:
        """Aggregate status of the current run; ``None`` before a run starts."""
        if self._run_id is None:
            return None
        return derive_run_status(self._progress)

    @property
    def failed_tables(self) -> list[TableProgress]:
        return [p for p in self._progress if p.status is TableStatus.FAILED]

    # ------------------------------------------------------------------
    # Target configuration
    # ------------------------------------------------------------------

    async def check_target(self) -> TargetSummary | None:
        """Look up whether the session already has target credentials.

        Only consulted before a run exists.  Lookup failures are logged and
        leave the monitor UNCONFIGURED.

        Returns:
            TargetSummary when credentials are on file, else None.
        """
        if (
            self._run_id is not None
            or self._pending is not None
            or self._state is not MonitorState.UNCONFIGURED
        ):
            return self._target

        try:
            response = await self._api.get_migration(self._session_id)
        except ApiError as e:
            logger.warning(f"Failed to check target credentials for {self._session_id}: {e}")
            return None

        if response.has_error or not isinstance(response.data, dict):
            logger.warning(
                f"Failed to check target credentials for {self._session_id}: "
                f"{response.error_message('unexpected response')}"
            )
            return None

        try:
            summary = TargetSummary.model_validate(response.data)
        except ValidationError as e:
            logger.warning(f"Unexpected session payload for {self._session_id}: {e}")
            return None

        if not summary.has_target_credentials:
            return None

        self._target = summary
        self._state = transition(self._state, MonitorEvent.CREDENTIALS_FOUND)
        logger.debug(f"Session {self._session_id} has target {summary.display_name}")
        return summary

    async def save_target_credentials(
        self,
        host: str | None,
        port: int | str | None,
        database_name: str | None,
        username: str | None,
        password: str | None,
    ) -> CredentialsResult:
        """Validate and write the target credentials for the session.

        Partial input is rejected locally without a network call.  While a
        save or start request is in flight further calls are refused.

        Raises:
            InvalidTransitionError: If the monitor is not UNCONFIGURED.
        """
        if self._state is not MonitorState.UNCONFIGURED:
            raise InvalidTransitionError(self._state, MonitorEvent.CREDENTIALS_SAVED)
        if self._pending is not None:
            return CredentialsResult(success=False, error=REQUEST_IN_FLIGHT_ERROR)

        try:
            credentials = validate_target_credentials(host, port, database_name, username, password)
        except CredentialsValidationError as e:
            return CredentialsResult(success=False, error=str(e))

        self._pending = MonitorEvent.CREDENTIALS_SAVED
        try:
            return await self._save_credentials(credentials)
        finally:
            self._pending = None

    async def _save_credentials(self, credentials: TargetCredentials) -> CredentialsResult:
        try:
            response = await self._api.save_target_credentials(
                self._session_id, credentials.to_payload()
            )
        except ApiError as e:
            logger.warning(f"Saving target credentials for {self._session_id} failed: {e}")
            return CredentialsResult(success=False, error="Network error saving credentials")

        if not response.ok:
            return CredentialsResult(
                success=False,
                error=response.error_message("Failed to save target credentials"),
            )

        self._target = TargetSummary(
            has_target_credentials=True,
            target_host=credentials.host,
            target_port=credentials.port,
            target_database=credentials.database_name,
        )
        self._state = transition(self._state, MonitorEvent.CREDENTIALS_SAVED)
        logger.info(f"Saved target {self._target.display_name} for session {self._session_id}")
        return CredentialsResult(success=True)

    def change_target(self) -> None:
        """Return to UNCONFIGURED so new credentials can be entered.

        Raises:
            InvalidTransitionError: Unless the monitor is CONFIGURED with no
                start request in flight.
        """
        if self._pending is not None:
            raise InvalidTransitionError(self._state, MonitorEvent.CHANGE_TARGET)
        self._state = transition(self._state, MonitorEvent.CHANGE_TARGET)

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> StartResult:
        """Start a run and begin polling its progress.

        Only one start request may be in flight; an overlapping call is
        refused without contacting the service.

        Raises:
            InvalidTransitionError: Unless the monitor is CONFIGURED.
        """
        if self._state is not MonitorState.CONFIGURED:
            raise InvalidTransitionError(self._state, MonitorEvent.RUN_STARTED)
        if self._pending is not None:
            return StartResult(success=False, error=REQUEST_IN_FLIGHT_ERROR)

        self._pending = MonitorEvent.RUN_STARTED
        try:
            return await self._start_run()
        finally:
            self._pending = None

    async def _start_run(self) -> StartResult:
        try:
            response = await self._api.execute_migration(self._session_id)
        except ApiError as e:
            logger.warning(f"Starting migration for {self._session_id} failed: {e}")
            return StartResult(success=False, error="Network error starting migration")

        if not response.ok:
            return StartResult(
                success=False,
                error=response.error_message("Failed to start migration"),
            )

        run_id = response.data.get("runId") if isinstance(response.data, dict) else None
        if not run_id:
            return StartResult(success=False, error="Server did not return a run id")

        self._state = transition(self._state, MonitorEvent.RUN_STARTED)
        self._run_id = str(run_id)
        self._progress = []
        self._poll_count = 0
        self._poll_task = asyncio.create_task(self._poll_loop(), name=f"progress-poll-{self._run_id}")
        logger.info(f"Started migration run {self._run_id} for session {self._session_id}")
        return StartResult(success=True, run_id=self._run_id)

    async def poll_once(self) -> list[TableProgress]:
        """Fetch and apply one progress snapshot.

        A failed poll is transient: it is logged and the previous snapshot
        stays in place.

        Returns:
            The current progress snapshot after the poll.
        """
        if self._run_id is None or self._state is not MonitorState.RUNNING:
            return self.progress

        self._poll_count += 1
        try:
            response = await self._api.get_run_progress(self._run_id)
        except ApiError as e:
            logger.warning(f"Progress poll for run {self._run_id} failed: {e}")
            return self.progress

        if not response.ok or not isinstance(response.data, list):
            logger.warning(
                f"Progress poll for run {self._run_id} failed: "
                f"{response.error_message('unexpected response')}"
            )
            return self.progress

        try:
            snapshot = _PROGRESS_ADAPTER.validate_python(response.data)
        except ValidationError as e:
            logger.warning(f"Unexpected progress payload for run {self._run_id}: {e}")
            return self.progress

        # Another poll may have reached the terminal snapshot while this one was in flight.
        if self._state is not MonitorState.RUNNING:
            return self.progress

        self._progress = snapshot
        if self._on_update is not None:
            self._on_update(self.progress)

        if is_run_complete(snapshot):
            self._state = transition(self._state, MonitorEvent.RUN_TERMINAL)
            self._release_poll_task()
            logger.info(
                f"Migration run {self._run_id} finished: "
                f"{len(snapshot) - len(self.failed_tables)}/{len(snapshot)} tables completed"
            )
        return self.progress

    async def wait(self) -> RunStatus | None:
        """Block until polling stops, then return the run status."""
        task = self._poll_task or self._cancelled_task
        if task is not None and not task.done():
            await asyncio.wait({task})
        if task is not None and not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Progress polling for run {self._run_id} stopped: {task.exception()!r}"
            )
        return self.run_status

    async def close(self) -> None:
        """Stop polling.  Safe to call more than once."""
        self._release_poll_task()
        task, self._cancelled_task = self._cancelled_task, None
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def __aenter__(self) -> "ExecutionMonitor":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _poll_loop(self) -> None:
        while self._state is MonitorState.RUNNING:
            await asyncio.sleep(self._poll_interval)
            await self.poll_once()

    def _release_poll_task(self) -> None:
        """Detach the poll task, cancelling it unless it is the caller."""
        task = self._poll_task
        self._poll_task = None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        self._cancelled_task = task
