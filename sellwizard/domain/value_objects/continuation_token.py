from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sellwizard.domain.enums.wizard_step import WizardStep


@dataclass(frozen=True)
class ContinuationToken:
    """
    Written just before the seller leaves for the photo studio and consumed
    exactly once when a wizard session is next opened.

    ``photo_edit_baseline`` is the last-photo-edit timestamp the session was
    comparing against at hand-off, so an edit made while away still counts.
    """

    item_id: UUID
    step: WizardStep = WizardStep.PHOTOS
    photo_edit_baseline: datetime | None = None
