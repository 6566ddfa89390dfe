from typing import TYPE_CHECKING

from sellwizard.domain.enums.wizard_step import StepStatus, WizardStep

if TYPE_CHECKING:
    from sellwizard.domain.entities.wizard_state import WizardState


BLOCKED_REASONS: dict[WizardStep, str] = {
    WizardStep.ADD_ITEM: "Create the item to continue",
    WizardStep.PRICE: "Accept a price to continue",
    WizardStep.OPTIMISE: "Save optimised listing to continue",
    WizardStep.PHOTOS: "Enhance or skip photos",
}


class InvalidStepTransitionError(Exception):
    """Raised when a wizard navigation is not permitted from the current step."""

    def __init__(self, from_step: WizardStep, reason: str) -> None:
        self.from_step = from_step
        self.reason = reason
        super().__init__(f"Cannot leave step {from_step.value} ({from_step.label}): {reason}")


class WizardStateMachine:
    """
    Evaluates step guards for the sell wizard.

    Stateless: every method takes the ``WizardState`` to inspect.
    """

    def guard_holds(self, state: "WizardState", step: WizardStep) -> bool:
        """Return True if ``step``'s completion predicate is satisfied."""
        if step is WizardStep.ADD_ITEM:
            return state.item_id is not None
        if step is WizardStep.PRICE:
            return state.price_accepted
        if step is WizardStep.OPTIMISE:
            return state.optimisation_saved
        if step is WizardStep.PHOTOS:
            return state.photo_edit_detected or state.status_of(step) is StepStatus.SKIPPED
        return True

    def can_advance(self, state: "WizardState") -> bool:
        step = state.current_step
        # Step 1 is left only through the Add Item completion callback
        if step.is_terminal or step is WizardStep.ADD_ITEM:
            return False
        return self.guard_holds(state, step)

    def blocked_reason(self, state: "WizardState") -> str | None:
        step = state.current_step
        if step.is_terminal or self.guard_holds(state, step):
            return None
        return BLOCKED_REASONS[step]

    def validate_advance(self, state: "WizardState") -> None:
        """Raise InvalidStepTransitionError if the current guard does not hold."""
        reason = self.blocked_reason(state)
        if reason is not None:
            raise InvalidStepTransitionError(state.current_step, reason)

    def can_go_back(self, state: "WizardState") -> bool:
        return state.current_step > WizardStep.ADD_ITEM
