from enum import Enum, IntEnum


class WizardStep(IntEnum):
    """The five ordered stages of the sell wizard."""

    ADD_ITEM = 1
    PRICE = 2
    OPTIMISE = 3
    PHOTOS = 4
    PACK = 5

    @property
    def is_terminal(self) -> bool:
        return self is WizardStep.PACK

    @property
    def is_skippable(self) -> bool:
        return self is WizardStep.PHOTOS

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS: dict[WizardStep, str] = {
    WizardStep.ADD_ITEM: "Add Item",
    WizardStep.PRICE: "Price",
    WizardStep.OPTIMISE: "Optimise",
    WizardStep.PHOTOS: "Photos",
    WizardStep.PACK: "Pack",
}


class StepStatus(str, Enum):
    PENDING = "pending"
    LOADING = "loading"
    DONE = "done"
    SKIPPED = "skipped"
