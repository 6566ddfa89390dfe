"""
Photo step coordinator.

Photo enhancement happens in the photo studio, outside the wizard. This
module never edits images; it hands the seller off with a continuation
token and afterwards notices that the item's ``last_photo_edit_at`` moved
away from the baseline captured at creation (or carried by the token).
"""
import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlencode

import structlog

from sellwizard.application.coordinators.photo_edit_poller import PhotoEditPoller
from sellwizard.application.interfaces.continuation_store import ContinuationStore
from sellwizard.application.interfaces.item_repository import ItemRepository, RepositoryError
from sellwizard.application.session import WizardSession
from sellwizard.config import settings
from sellwizard.domain.enums.wizard_step import StepStatus, WizardStep
from sellwizard.domain.value_objects.continuation_token import ContinuationToken

logger = structlog.get_logger(__name__)

NO_PHOTO_NOTE = "No photo uploaded - Photo Studio works best with an item photo, so results will be limited."
HANDOFF_FAILED_MESSAGE = "Couldn't open Photo Studio - try again"


def _log_auto_advance_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("photo_auto_advance_failed", error=str(exc), exc_info=exc)


@dataclass(frozen=True)
class PhotoStudioHandoff:
    url: str
    note: str | None = None


class PhotoCompletionDetector:
    def __init__(
        self,
        session: WizardSession,
        item_repo: ItemRepository,
        continuation_store: ContinuationStore,
        on_complete: Callable[[], Awaitable[None]],
        *,
        poll_interval_seconds: float = settings.photo_poll_interval_seconds,
        auto_advance_delay_seconds: float = settings.auto_advance_delay_seconds,
        photo_studio_url: str = settings.photo_studio_url,
    ) -> None:
        self._session = session
        self._item_repo = item_repo
        self._store = continuation_store
        self._on_complete = on_complete
        self._auto_advance_delay = auto_advance_delay_seconds
        self._studio_url = photo_studio_url
        self._poller = PhotoEditPoller(self._fetch_marker, poll_interval_seconds)
        self._auto_advance: asyncio.Task[None] | None = None

    @property
    def is_polling(self) -> bool:
        return self._poller.is_running

    @property
    def poll_ticks(self) -> int:
        return self._poller.ticks

    async def hand_off(self) -> PhotoStudioHandoff | None:
        """
        Write the continuation token, remember the visit, return where to go.
        None when the token could not be saved; the seller stays on the step.
        """
        item = self._session.require_item()
        state = self._session.state
        token = ContinuationToken(
            item_id=item.id,
            step=WizardStep.PHOTOS,
            photo_edit_baseline=state.photo_edit_baseline,
        )
        try:
            await self._store.save(item.owner_id, token)
        except RepositoryError as exc:
            logger.error("continuation_save_failed", item_id=str(item.id), error=str(exc))
            self._session.notifications.error(HANDOFF_FAILED_MESSAGE, step=WizardStep.PHOTOS)
            return None
        state.record_photo_studio_visit()
        logger.info("photo_studio_handoff", item_id=str(item.id))

        query = urlencode({"itemId": str(item.id), "image_url": item.primary_photo_url or ""})
        return PhotoStudioHandoff(
            url=f"{self._studio_url}?{query}",
            note=None if item.primary_photo_url else NO_PHOTO_NOTE,
        )

    async def on_enter(self) -> None:
        """
        Entering the Photos step, whether by resume, back/forward or advance:
        fetch the marker once. Already changed means done, no polling at all;
        otherwise poll only if the seller has been to the studio.
        """
        state = self._session.state
        if state.photo_edit_detected or state.status_of(WizardStep.PHOTOS) is StepStatus.SKIPPED:
            return
        item = self._session.require_item()

        try:
            edited_at = await self._item_repo.get_last_photo_edit_at(item.id)
        except RepositoryError as exc:
            logger.warning("photo_reentry_check_failed", item_id=str(item.id), error=str(exc))
            edited_at = None

        if not self._session.is_live_for(item):
            return
        if self._changed(edited_at):
            await self._complete(edited_at)  # type: ignore[arg-type]
            return
        if state.visited_photo_studio:
            self.start_polling()

    def start_polling(self) -> None:
        item = self._session.require_item()
        state = self._session.state
        state.set_step_status(WizardStep.PHOTOS, StepStatus.LOADING)
        self._poller.start(state.photo_edit_baseline, self._complete)
        logger.info("photo_polling_started", item_id=str(item.id))

    def cancel_polling(self) -> None:
        """Stop waiting; the step goes back to pending."""
        self._poller.stop()
        state = self._session.state
        if state.status_of(WizardStep.PHOTOS) is StepStatus.LOADING:
            state.set_step_status(WizardStep.PHOTOS, StepStatus.PENDING)

    def skip(self) -> None:
        self.cancel_polling()
        self._cancel_auto_advance()
        self._session.state.skip_photos()

    def teardown(self) -> None:
        """Leaving the step or unmounting: no timer may outlive us."""
        self.cancel_polling()
        self._cancel_auto_advance()

    def _changed(self, edited_at: datetime | None) -> bool:
        return edited_at is not None and edited_at != self._session.state.photo_edit_baseline

    async def _fetch_marker(self) -> datetime | None:
        item = self._session.require_item()
        return await self._item_repo.get_last_photo_edit_at(item.id)

    async def _complete(self, edited_at: datetime) -> None:
        item = self._session.item
        if item is None or not self._session.mounted:
            return
        self._poller.stop()
        item.record_photo_edit(edited_at)
        self._session.state.mark_photo_edit_detected(edited_at)
        self._session.notifications.success("Photo enhancement detected!", step=WizardStep.PHOTOS)
        self._schedule_auto_advance()

    def _schedule_auto_advance(self) -> None:
        self._cancel_auto_advance()
        self._auto_advance = asyncio.create_task(self._advance_after_delay())
        self._auto_advance.add_done_callback(_log_auto_advance_failure)

    def _cancel_auto_advance(self) -> None:
        task, self._auto_advance = self._auto_advance, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _advance_after_delay(self) -> None:
        await asyncio.sleep(self._auto_advance_delay)
        if self._session.mounted and self._session.state.current_step is WizardStep.PHOTOS:
            await self._on_complete()
