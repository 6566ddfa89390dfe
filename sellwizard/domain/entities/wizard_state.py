from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sellwizard.domain.enums.entry_method import EntryMethod
from sellwizard.domain.enums.wizard_step import StepStatus, WizardStep
from sellwizard.domain.events.domain_events import DomainEvent, WizardStepChangedEvent
from sellwizard.domain.state_machine.wizard_state_machine import (
    InvalidStepTransitionError,
    WizardStateMachine,
)

_state_machine = WizardStateMachine()


def _fresh_statuses() -> dict[WizardStep, StepStatus]:
    return {step: StepStatus.PENDING for step in WizardStep}


@dataclass
class WizardState:
    """
    Progress of one run of the sell wizard.

    Only mutated through the named transitions below so every change can be
    traced and tested without a UI. Going back never clears a step's
    recorded status or guard flag.
    """

    current_step: WizardStep = WizardStep.ADD_ITEM
    step_status: dict[WizardStep, StepStatus] = field(default_factory=_fresh_statuses)
    entry_method: EntryMethod | None = None
    item_id: UUID | None = None

    # Guard flags
    price_accepted: bool = False
    optimisation_saved: bool = False
    photo_edit_detected: bool = False

    # Photo studio hand-off
    visited_photo_studio: bool = False
    photo_edit_baseline: datetime | None = None

    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def status_of(self, step: WizardStep) -> StepStatus:
        return self.step_status[step]

    def can_advance(self) -> bool:
        return _state_machine.can_advance(self)

    def blocked_reason(self) -> str | None:
        return _state_machine.blocked_reason(self)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def set_step_status(self, step: WizardStep, status: StepStatus) -> None:
        self.step_status[step] = status

    def advance(self, triggered_by: str = "user") -> WizardStep:
        """Move forward one step if the current step's guard holds."""
        step = self.current_step
        if step is WizardStep.ADD_ITEM:
            raise InvalidStepTransitionError(step, "the item is saved by the Add Item form")
        if step.is_terminal:
            return step

        _state_machine.validate_advance(self)

        if self.status_of(step) is not StepStatus.SKIPPED:
            self.step_status[step] = StepStatus.DONE
        self._move_to(WizardStep(step + 1), triggered_by)
        return self.current_step

    def back(self, triggered_by: str = "user") -> WizardStep:
        if not _state_machine.can_go_back(self):
            raise InvalidStepTransitionError(self.current_step, "already at the first step")
        self._move_to(WizardStep(self.current_step - 1), triggered_by)
        return self.current_step

    def return_to(self, step: WizardStep, triggered_by: str = "user") -> WizardStep:
        """Jump back to an earlier step (e.g. from the pack to re-optimise)."""
        if step >= self.current_step:
            raise InvalidStepTransitionError(
                self.current_step, f"step {step.value} is not behind the current step"
            )
        self._move_to(step, triggered_by)
        return self.current_step

    def reset(self) -> None:
        """Back to a fresh session: step 1, everything pending, no item."""
        from_step = self.current_step
        item_id = self.item_id
        self.current_step = WizardStep.ADD_ITEM
        self.step_status = _fresh_statuses()
        self.entry_method = None
        self.item_id = None
        self.price_accepted = False
        self.optimisation_saved = False
        self.photo_edit_detected = False
        self.visited_photo_studio = False
        self.photo_edit_baseline = None
        if from_step is not WizardStep.ADD_ITEM:
            self._events.append(
                WizardStepChangedEvent(
                    item_id=item_id,
                    from_step=from_step,
                    to_step=WizardStep.ADD_ITEM,
                    triggered_by="reset",
                )
            )

    def choose_entry_method(self, method: EntryMethod) -> None:
        self.entry_method = method

    def complete_add_item(self, item_id: UUID, photo_edit_baseline: datetime | None) -> None:
        """The Add Item form's completion callback; the only way out of step 1."""
        if self.item_id is None:
            self.item_id = item_id
            self.photo_edit_baseline = photo_edit_baseline
        self.step_status[WizardStep.ADD_ITEM] = StepStatus.DONE
        if self.current_step is WizardStep.ADD_ITEM:
            self._move_to(WizardStep.PRICE, "item_created")

    def mark_price_accepted(self) -> None:
        self.price_accepted = True

    def mark_optimisation_saved(self) -> None:
        self.optimisation_saved = True

    def record_photo_studio_visit(self) -> None:
        self.visited_photo_studio = True

    def mark_photo_edit_detected(self, edited_at: datetime) -> None:
        self.photo_edit_detected = True
        self.photo_edit_baseline = edited_at
        self.step_status[WizardStep.PHOTOS] = StepStatus.DONE

    def skip_photos(self) -> WizardStep:
        """Skip needs no completion signal; moves straight on to the pack."""
        if self.current_step is not WizardStep.PHOTOS:
            raise InvalidStepTransitionError(self.current_step, "only photos can be skipped")
        self.step_status[WizardStep.PHOTOS] = StepStatus.SKIPPED
        self._move_to(WizardStep.PACK, "photos_skipped")
        return self.current_step

    def resume_at_photos(self, item_id: UUID, photo_edit_baseline: datetime | None) -> None:
        """Restore a session torn down by the hand-off to the photo studio."""
        self.item_id = item_id
        self.photo_edit_baseline = photo_edit_baseline
        for step in (WizardStep.ADD_ITEM, WizardStep.PRICE, WizardStep.OPTIMISE):
            self.step_status[step] = StepStatus.DONE
        self.price_accepted = True
        self.optimisation_saved = True
        self.visited_photo_studio = True
        self._move_to(WizardStep.PHOTOS, "resume")

    def _move_to(self, step: WizardStep, triggered_by: str) -> None:
        from_step = self.current_step
        self.current_step = step
        self._events.append(
            WizardStepChangedEvent(
                item_id=self.item_id,
                from_step=from_step,
                to_step=step,
                triggered_by=triggered_by,
            )
        )

    # -------------------------------------------------------------------------
    # Event collection
    # -------------------------------------------------------------------------

    def collect_events(self) -> list[DomainEvent]:
        events = list(self._events)
        self._events.clear()
        return events
