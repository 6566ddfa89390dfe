"""Unit tests for the photo edit poller and the photo completion detector."""
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from sellwizard.application.coordinators.photo_completion_detector import (
    HANDOFF_FAILED_MESSAGE,
    NO_PHOTO_NOTE,
    PhotoCompletionDetector,
)
from sellwizard.application.coordinators.photo_edit_poller import PhotoEditPoller
from sellwizard.application.interfaces.item_repository import RepositoryError
from sellwizard.application.notifications import NotificationLevel
from sellwizard.application.session import WizardSession
from sellwizard.domain.entities.item_record import ItemRecord
from sellwizard.domain.enums.wizard_step import StepStatus, WizardStep
from tests.fakes import InMemoryContinuationStore, InMemoryItemRepository, wait_for

BASELINE = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
EDITED = BASELINE + timedelta(minutes=5)


class TestPhotoEditPoller:
    @pytest.mark.asyncio
    async def test_fires_once_when_marker_changes(self) -> None:
        markers = iter([BASELINE, None, EDITED, EDITED])
        on_change = AsyncMock()
        poller = PhotoEditPoller(AsyncMock(side_effect=lambda: next(markers)), 0.001)

        poller.start(BASELINE, on_change)
        await wait_for(lambda: on_change.await_count == 1)
        await asyncio.sleep(0.01)

        on_change.assert_awaited_once_with(EDITED)
        assert poller.ticks == 3
        assert poller.is_running is False

    @pytest.mark.asyncio
    async def test_start_replaces_previous_poll(self) -> None:
        fetch = AsyncMock(return_value=BASELINE)
        poller = PhotoEditPoller(fetch, 0.001)

        poller.start(BASELINE, AsyncMock())
        first = poller._task
        poller.start(BASELINE, AsyncMock())
        await asyncio.sleep(0)

        assert first.cancelled() or first.cancelling()
        assert poller.is_running is True
        poller.stop()
        assert poller.is_running is False

    @pytest.mark.asyncio
    async def test_failed_tick_keeps_polling(self) -> None:
        fetch = AsyncMock(side_effect=[RuntimeError("network"), EDITED])
        on_change = AsyncMock()
        poller = PhotoEditPoller(fetch, 0.001)

        poller.start(BASELINE, on_change)
        await wait_for(lambda: on_change.await_count == 1)

        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_stop_without_start_is_harmless(self) -> None:
        poller = PhotoEditPoller(AsyncMock(), 1.0)
        poller.stop()
        assert poller.is_running is False


def _make_detector(
    *,
    primary_photo: str | None = "https://cdn.test/a.jpg",
    baseline: datetime | None = None,
) -> tuple[PhotoCompletionDetector, WizardSession, InMemoryItemRepository, InMemoryContinuationStore, AsyncMock]:
    owner_id = uuid4()
    item = ItemRecord(owner_id=owner_id, title="Jacket", primary_photo_url=primary_photo, last_photo_edit_at=baseline)
    repo = InMemoryItemRepository()
    repo.items[item.id] = item
    store = InMemoryContinuationStore()
    session = WizardSession(owner_id=owner_id, item=item, mounted=True)
    session.state.resume_at_photos(item.id, baseline)
    session.state.visited_photo_studio = False
    on_complete = AsyncMock()
    detector = PhotoCompletionDetector(
        session,
        repo,
        store,
        on_complete,
        poll_interval_seconds=0.005,
        auto_advance_delay_seconds=0.005,
        photo_studio_url="/vintography",
    )
    return detector, session, repo, store, on_complete


class TestHandOff:
    @pytest.mark.asyncio
    async def test_writes_token_and_records_visit(self) -> None:
        detector, session, _, store, _ = _make_detector(baseline=BASELINE)

        handoff = await detector.hand_off()

        token = store.tokens[session.owner_id]
        assert token.item_id == session.item.id
        assert token.step is WizardStep.PHOTOS
        assert token.photo_edit_baseline == BASELINE
        assert session.state.visited_photo_studio is True
        assert handoff.url.startswith("/vintography?itemId=")
        assert "image_url=https%3A%2F%2Fcdn.test%2Fa.jpg" in handoff.url
        assert handoff.note is None

    @pytest.mark.asyncio
    async def test_note_when_no_primary_photo(self) -> None:
        detector, *_ = _make_detector(primary_photo=None)
        handoff = await detector.hand_off()
        assert handoff.note == NO_PHOTO_NOTE

    @pytest.mark.asyncio
    async def test_failed_token_save_notifies_and_keeps_step(self) -> None:
        detector, session, _, store, _ = _make_detector(baseline=BASELINE)
        store.save = AsyncMock(side_effect=RepositoryError("store unavailable"))

        handoff = await detector.hand_off()

        assert handoff is None
        assert session.state.visited_photo_studio is False
        assert session.state.current_step is WizardStep.PHOTOS
        assert session.state.status_of(WizardStep.PHOTOS) is StepStatus.PENDING
        notification = session.notifications.items[-1]
        assert notification.level is NotificationLevel.ERROR
        assert notification.message == HANDOFF_FAILED_MESSAGE
        assert notification.step is WizardStep.PHOTOS


class TestReentry:
    @pytest.mark.asyncio
    async def test_changed_marker_completes_without_polling(self) -> None:
        detector, session, repo, _, on_complete = _make_detector(baseline=BASELINE)
        repo.edit_photos(session.item.id, EDITED)

        await detector.on_enter()

        assert detector.is_polling is False
        assert session.state.photo_edit_detected is True
        assert session.state.photo_edit_baseline == EDITED
        assert session.item.last_photo_edit_at == EDITED
        assert session.state.status_of(WizardStep.PHOTOS) is StepStatus.DONE
        await wait_for(lambda: on_complete.await_count == 1)

    @pytest.mark.asyncio
    async def test_failed_auto_advance_is_logged(self) -> None:
        detector, session, repo, _, on_complete = _make_detector(baseline=BASELINE)
        on_complete.side_effect = RuntimeError("advance blew up")
        repo.edit_photos(session.item.id, EDITED)

        with patch("sellwizard.application.coordinators.photo_completion_detector.logger") as log:
            await detector.on_enter()
            await wait_for(lambda: log.error.called)

        assert log.error.call_args.args[0] == "photo_auto_advance_failed"
        assert log.error.call_args.kwargs["error"] == "advance blew up"

    @pytest.mark.asyncio
    async def test_unchanged_and_not_visited_stays_idle(self) -> None:
        detector, session, repo, _, _ = _make_detector(baseline=BASELINE)

        await detector.on_enter()

        assert detector.is_polling is False
        assert repo.marker_fetches == 1
        assert session.state.status_of(WizardStep.PHOTOS) is StepStatus.PENDING

    @pytest.mark.asyncio
    async def test_unchanged_and_visited_starts_polling(self) -> None:
        detector, session, repo, _, on_complete = _make_detector(baseline=BASELINE)
        session.state.record_photo_studio_visit()

        await detector.on_enter()
        assert detector.is_polling is True
        assert session.state.status_of(WizardStep.PHOTOS) is StepStatus.LOADING

        repo.edit_photos(session.item.id, EDITED)
        await wait_for(lambda: on_complete.await_count == 1)
        assert detector.is_polling is False
        assert session.state.photo_edit_detected is True

    @pytest.mark.asyncio
    async def test_failed_reentry_fetch_falls_back_to_polling(self) -> None:
        detector, session, repo, _, _ = _make_detector(baseline=BASELINE)
        session.state.record_photo_studio_visit()
        repo.fail_marker_fetches = 1

        await detector.on_enter()

        assert detector.is_polling is True
        detector.teardown()


class TestCancelAndSkip:
    @pytest.mark.asyncio
    async def test_cancel_stops_timer_and_leaves_pending(self) -> None:
        detector, session, repo, _, _ = _make_detector(baseline=BASELINE)
        detector.start_polling()
        await asyncio.sleep(0.02)

        detector.cancel_polling()
        ticks = detector.poll_ticks
        await asyncio.sleep(0.02)

        assert detector.is_polling is False
        assert detector.poll_ticks == ticks
        assert session.state.status_of(WizardStep.PHOTOS) is StepStatus.PENDING

    @pytest.mark.asyncio
    async def test_restart_keeps_single_timer(self) -> None:
        detector, *_ = _make_detector(baseline=BASELINE)
        detector.start_polling()
        detector.start_polling()
        detector.start_polling()
        await asyncio.sleep(0)

        live = [t for t in asyncio.all_tasks() if t is not asyncio.current_task() and not t.done()]
        assert len(live) == 1
        detector.teardown()

    @pytest.mark.asyncio
    async def test_skip_moves_to_pack_without_signal(self) -> None:
        detector, session, _, _, on_complete = _make_detector(baseline=BASELINE)
        detector.start_polling()

        detector.skip()

        assert detector.is_polling is False
        assert session.state.current_step is WizardStep.PACK
        assert session.state.status_of(WizardStep.PHOTOS) is StepStatus.SKIPPED
        on_complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_callback_after_unmount(self) -> None:
        detector, session, repo, _, on_complete = _make_detector(baseline=BASELINE)
        detector.start_polling()
        session.mounted = False
        detector.teardown()
        repo.edit_photos(session.item.id, EDITED)
        await asyncio.sleep(0.03)

        on_complete.assert_not_awaited()
        assert session.state.photo_edit_detected is False
