from dataclasses import dataclass


@dataclass(frozen=True)
class HealthScore:
    """0-100 listing quality score with its four sub-scores."""

    overall: int
    title_score: int = 0
    description_score: int = 0
    photo_score: int = 0
    completeness_score: int = 0

    def is_good_enough(self, threshold: int) -> bool:
        return self.overall >= threshold

    def rating(self, threshold: int, excellent: int) -> str:
        if self.overall >= excellent:
            return "Excellent - ready to post!"
        if self.overall >= threshold:
            return "Good - above average"
        return "Needs improvement"


@dataclass(frozen=True)
class OptimisationResult:
    optimised_title: str
    optimised_description: str
    health_score: HealthScore
    seller_notes_disclosed: bool = False
