"""Async driver for the compose form.

Holds the current ``FormState``, feeds events through the reducer and runs
the effects it returns: one asyncio task per file upload (uploads are never
serialized), a progress ticker per upload, the success-checkmark timer and
the share request.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from ghosttransfer.config import settings
from ghosttransfer.models.form import FormState
from ghosttransfer.models.upload import SelectedFile, UploadStatus
from ghosttransfer.services.api_client import ApiError, GhostTransferClient
from ghosttransfer.services.expiration import calculate_expiration
from ghosttransfer.services.form_reducer import (
    CreateShare,
    FieldChanged,
    FileRemoved,
    FilesSelected,
    FormReset,
    ProgressTicked,
    RetryRequested,
    SettleSuccess,
    ShareCreated,
    ShareFailed,
    StartUpload,
    SubmitRequested,
    SuccessSettled,
    UploadFailed,
    UploadStarted,
    UploadSucceeded,
    ViewsPresetChosen,
    can_submit,
    reduce,
)
from ghosttransfer.services.progress import ProgressSimulator

logger = logging.getLogger(__name__)


class FormController:
    def __init__(
        self,
        client: GhostTransferClient,
        progress: ProgressSimulator | None = None,
        progress_interval: float | None = None,
        success_display: float | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.client = client
        self.progress = progress or ProgressSimulator()
        self.progress_interval = (
            settings.progress_interval_seconds if progress_interval is None else progress_interval
        )
        self.success_display = (
            settings.success_display_seconds if success_display is None else success_display
        )
        self.now = now
        self.state = FormState()

        self._files: dict[str, SelectedFile] = {}
        self._upload_tasks: set[asyncio.Task] = set()
        self._timer_tasks: set[asyncio.Task] = set()
        self._share_task: asyncio.Task | None = None
        self._listeners: list[Callable[[FormState], None]] = []

    # ── State ────────────────────────────────────────────────────────────

    @property
    def can_submit(self) -> bool:
        return can_submit(self.state)

    def subscribe(self, listener: Callable[[FormState], None]) -> None:
        """Call ``listener`` with the new state after every event."""
        self._listeners.append(listener)

    def dispatch(self, event) -> FormState:
        self.state, effects = reduce(self.state, event)
        for listener in self._listeners:
            listener(self.state)
        for effect in effects:
            self._run_effect(effect)
        return self.state

    def _spawn(self, coro, bucket: set[asyncio.Task]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        bucket.add(task)
        task.add_done_callback(bucket.discard)
        task.add_done_callback(_log_task_failure)
        return task

    def _run_effect(self, effect) -> None:
        if isinstance(effect, StartUpload):
            self._spawn(self._upload(effect.entry_id), self._upload_tasks)
        elif isinstance(effect, SettleSuccess):
            self._spawn(self._settle_success(effect.entry_id), self._timer_tasks)
        elif isinstance(effect, CreateShare):
            self._share_task = asyncio.get_running_loop().create_task(
                self._create_share(effect)
            )
        else:
            raise TypeError(f"Unhandled effect: {effect!r}")

    # ── User actions ─────────────────────────────────────────────────────

    def add_files(self, files: list[SelectedFile]) -> FormState:
        for f in files:
            self._files.setdefault(f.id, f)
        return self.dispatch(FilesSelected(list(files)))

    def retry(self, entry_id: str) -> FormState:
        return self.dispatch(RetryRequested(entry_id))

    def remove(self, entry_id: str) -> FormState:
        # An in-flight request is left to finish; its completion becomes a no-op
        state = self.dispatch(FileRemoved(entry_id))
        self._files.pop(entry_id, None)
        return state

    def set_field(self, name: str, value: str) -> FormState:
        return self.dispatch(FieldChanged(name, value))

    def choose_views(self, views: int | None) -> FormState:
        return self.dispatch(ViewsPresetChosen(views))

    def reset(self) -> FormState:
        self._files.clear()
        return self.dispatch(FormReset())

    async def submit(self) -> FormState:
        """Validate, then create the share link. Returns the resulting state."""
        expiration = calculate_expiration(self.state.lifetime, now=self.now())
        self._share_task = None
        self.dispatch(SubmitRequested(expiration))
        if self._share_task is not None:
            await self._share_task
        return self.state

    async def wait_for_uploads(self) -> FormState:
        """Wait until no upload task is running."""
        while self._upload_tasks:
            await asyncio.gather(*list(self._upload_tasks), return_exceptions=True)
        return self.state

    async def aclose(self) -> None:
        tasks = [*self._upload_tasks, *self._timer_tasks]
        if self._share_task is not None:
            tasks.append(self._share_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.client.close()

    # ── Effects ──────────────────────────────────────────────────────────

    async def _tick_progress(self, entry_id: str) -> None:
        while True:
            await asyncio.sleep(self.progress_interval)
            entry = self.state.get_entry(entry_id)
            if entry is None or entry.status != UploadStatus.UPLOADING:
                return
            self.dispatch(ProgressTicked(entry_id, self.progress.advance(entry.progress)))

    async def _upload(self, entry_id: str) -> None:
        selected = self._files.get(entry_id)
        if selected is None:
            return
        self.dispatch(UploadStarted(entry_id))
        ticker = asyncio.get_running_loop().create_task(self._tick_progress(entry_id))
        try:
            content = await asyncio.to_thread(selected.read)
            result = await self.client.upload_file(
                selected.name, content, selected.content_type
            )
            url = result.get("url")
            if not url:
                raise ApiError("Upload response did not include a file URL")
        except (ApiError, OSError, ValueError) as exc:
            logger.error("Upload error for %s: %s", selected.name, exc)
            self.dispatch(UploadFailed(entry_id, str(exc) or "Upload failed"))
            return
        finally:
            ticker.cancel()

        logger.info("Uploaded %s -> %s", selected.name, url)
        self.dispatch(UploadSucceeded(entry_id, url))

    async def _settle_success(self, entry_id: str) -> None:
        await asyncio.sleep(self.success_display)
        self.dispatch(SuccessSettled(entry_id))

    async def _create_share(self, effect: CreateShare) -> None:
        try:
            result = await self.client.generate_share_url(effect.request)
        except ApiError as exc:
            logger.error("Share creation failed: %s", exc)
            self.dispatch(ShareFailed(exc.field_errors))
            return
        except Exception as exc:
            # Anything else must still release the submitting flag
            logger.error("Unexpected error while creating share: %s", exc)
            self.dispatch(ShareFailed(None))
            return
        logger.info("Share created: id=%s", result.id)
        self.dispatch(ShareCreated(result.model_dump()))


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background task failed", exc_info=exc)
