"""Unit tests for the wizard step state machine and WizardState transitions."""
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from sellwizard.domain.entities.wizard_state import WizardState
from sellwizard.domain.enums.entry_method import EntryMethod
from sellwizard.domain.enums.wizard_step import StepStatus, WizardStep
from sellwizard.domain.events.domain_events import WizardStepChangedEvent
from sellwizard.domain.state_machine.wizard_state_machine import (
    InvalidStepTransitionError,
    WizardStateMachine,
)

EDITED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def sm() -> WizardStateMachine:
    return WizardStateMachine()


def _state_at(step: WizardStep) -> WizardState:
    state = WizardState()
    state.complete_add_item(uuid4(), None)
    if step >= WizardStep.OPTIMISE:
        state.mark_price_accepted()
        state.advance()
    if step >= WizardStep.PHOTOS:
        state.mark_optimisation_saved()
        state.advance()
    if step >= WizardStep.PACK:
        state.skip_photos()
    state.collect_events()
    return state


class TestGuards:
    def test_add_item_guard_needs_created_item(self, sm: WizardStateMachine) -> None:
        state = WizardState()
        assert sm.guard_holds(state, WizardStep.ADD_ITEM) is False
        state.item_id = uuid4()
        assert sm.guard_holds(state, WizardStep.ADD_ITEM) is True

    def test_price_guard_needs_accepted_price(self, sm: WizardStateMachine) -> None:
        state = _state_at(WizardStep.PRICE)
        assert sm.can_advance(state) is False
        state.mark_price_accepted()
        assert sm.can_advance(state) is True

    def test_optimise_guard_needs_saved_result(self, sm: WizardStateMachine) -> None:
        state = _state_at(WizardStep.OPTIMISE)
        assert sm.can_advance(state) is False
        state.mark_optimisation_saved()
        assert sm.can_advance(state) is True

    def test_photos_guard_holds_on_detected_edit(self, sm: WizardStateMachine) -> None:
        state = _state_at(WizardStep.PHOTOS)
        assert sm.can_advance(state) is False
        state.mark_photo_edit_detected(EDITED_AT)
        assert sm.can_advance(state) is True

    def test_pack_is_terminal(self, sm: WizardStateMachine) -> None:
        state = _state_at(WizardStep.PACK)
        assert sm.can_advance(state) is False
        assert sm.blocked_reason(state) is None

    def test_step_one_never_offers_continue(self, sm: WizardStateMachine) -> None:
        state = WizardState(item_id=uuid4())
        assert sm.can_advance(state) is False


class TestBlockedReasons:
    @pytest.mark.parametrize(
        ("step", "reason"),
        [
            (WizardStep.PRICE, "Accept a price to continue"),
            (WizardStep.OPTIMISE, "Save optimised listing to continue"),
            (WizardStep.PHOTOS, "Enhance or skip photos"),
        ],
    )
    def test_reason_for_each_blocked_step(self, step: WizardStep, reason: str) -> None:
        assert _state_at(step).blocked_reason() == reason

    def test_no_item_yet(self) -> None:
        assert WizardState().blocked_reason() == "Create the item to continue"


class TestAdvance:
    def test_marks_step_done_and_moves_forward(self) -> None:
        state = _state_at(WizardStep.PRICE)
        state.mark_price_accepted()

        assert state.advance() is WizardStep.OPTIMISE
        assert state.status_of(WizardStep.PRICE) is StepStatus.DONE

    def test_blocked_advance_raises(self) -> None:
        state = _state_at(WizardStep.PRICE)
        with pytest.raises(InvalidStepTransitionError, match="Accept a price"):
            state.advance()
        assert state.current_step is WizardStep.PRICE

    def test_cannot_advance_from_add_item(self) -> None:
        state = WizardState(item_id=uuid4())
        with pytest.raises(InvalidStepTransitionError):
            state.advance()

    def test_advance_at_pack_is_clamped(self) -> None:
        state = _state_at(WizardStep.PACK)
        assert state.advance() is WizardStep.PACK

    def test_advance_emits_step_changed_event(self) -> None:
        state = _state_at(WizardStep.PRICE)
        state.mark_price_accepted()
        state.advance(triggered_by="user")

        events = state.collect_events()
        assert len(events) == 1
        assert isinstance(events[0], WizardStepChangedEvent)
        assert events[0].from_step is WizardStep.PRICE
        assert events[0].to_step is WizardStep.OPTIMISE


class TestBackAndReturn:
    def test_back_keeps_recorded_statuses(self) -> None:
        state = _state_at(WizardStep.OPTIMISE)
        state.back()

        assert state.current_step is WizardStep.PRICE
        assert state.status_of(WizardStep.PRICE) is StepStatus.DONE
        assert state.price_accepted is True

    def test_back_from_first_step_raises(self) -> None:
        with pytest.raises(InvalidStepTransitionError):
            WizardState().back()

    def test_return_to_earlier_step(self) -> None:
        state = _state_at(WizardStep.PACK)
        assert state.return_to(WizardStep.OPTIMISE) is WizardStep.OPTIMISE
        assert state.optimisation_saved is True

    def test_return_to_later_step_raises(self) -> None:
        state = _state_at(WizardStep.PRICE)
        with pytest.raises(InvalidStepTransitionError):
            state.return_to(WizardStep.PHOTOS)


class TestCompleteAddItem:
    def test_moves_to_price_and_captures_baseline(self) -> None:
        state = WizardState()
        item_id = uuid4()
        state.complete_add_item(item_id, EDITED_AT)

        assert state.current_step is WizardStep.PRICE
        assert state.item_id == item_id
        assert state.photo_edit_baseline == EDITED_AT
        assert state.status_of(WizardStep.ADD_ITEM) is StepStatus.DONE

    def test_second_completion_keeps_first_item(self) -> None:
        state = WizardState()
        first = uuid4()
        state.complete_add_item(first, None)
        state.back()
        state.complete_add_item(uuid4(), EDITED_AT)

        assert state.item_id == first
        assert state.photo_edit_baseline is None
        assert state.current_step is WizardStep.PRICE


class TestPhotos:
    def test_skip_marks_skipped_and_moves_to_pack(self) -> None:
        state = _state_at(WizardStep.PHOTOS)
        state.skip_photos()

        assert state.current_step is WizardStep.PACK
        assert state.status_of(WizardStep.PHOTOS) is StepStatus.SKIPPED

    def test_skip_only_on_photos_step(self) -> None:
        with pytest.raises(InvalidStepTransitionError):
            _state_at(WizardStep.PRICE).skip_photos()

    def test_skipped_status_survives_advance(self) -> None:
        state = _state_at(WizardStep.PHOTOS)
        state.skip_photos()
        state.return_to(WizardStep.PHOTOS)
        state.advance()
        assert state.status_of(WizardStep.PHOTOS) is StepStatus.SKIPPED

    def test_detected_edit_updates_baseline(self) -> None:
        state = _state_at(WizardStep.PHOTOS)
        state.mark_photo_edit_detected(EDITED_AT)

        assert state.photo_edit_baseline == EDITED_AT
        assert state.status_of(WizardStep.PHOTOS) is StepStatus.DONE


class TestResumeAndReset:
    def test_resume_restores_photos_step(self) -> None:
        state = WizardState()
        item_id = uuid4()
        state.resume_at_photos(item_id, EDITED_AT)

        assert state.current_step is WizardStep.PHOTOS
        assert state.item_id == item_id
        assert state.visited_photo_studio is True
        assert state.photo_edit_baseline == EDITED_AT
        for step in (WizardStep.ADD_ITEM, WizardStep.PRICE, WizardStep.OPTIMISE):
            assert state.status_of(step) is StepStatus.DONE
        assert state.can_advance() is False

    def test_reset_clears_everything(self) -> None:
        state = _state_at(WizardStep.PHOTOS)
        state.choose_entry_method(EntryMethod.URL)
        state.record_photo_studio_visit()
        state.reset()

        assert state == WizardState()
        events = state.collect_events()
        assert events[-1].to_step is WizardStep.ADD_ITEM
        assert events[-1].triggered_by == "reset"
