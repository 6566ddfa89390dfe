from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_PENNY = Decimal("0.01")
# Prices are stored as NUMERIC(10, 2)
MAX_PRICE = Decimal("99999999.99")


class InvalidPriceError(ValueError):
    """Raised when a price cannot be accepted."""


def parse_price(value: str | float | Decimal) -> Decimal:
    """Parse a price to pence. Must be a finite, positive number that fits the price columns."""
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidPriceError(f"'{value}' is not a valid price") from exc
    if not price.is_finite() or price <= 0:
        raise InvalidPriceError("Price must be a positive number")
    if price > MAX_PRICE:
        raise InvalidPriceError(f"Price must be at most £{MAX_PRICE:,}")
    try:
        price = price.quantize(_PENNY, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise InvalidPriceError(f"'{value}' is not a valid price") from exc
    if price <= 0:
        raise InvalidPriceError("Price must be a positive number")
    return price


@dataclass(frozen=True)
class PriceAssessment:
    """Result of one Market Pricing Service call. Never persisted as-is."""

    recommended_price: Decimal | None
    price_range_low: Decimal | None = None
    price_range_high: Decimal | None = None
    confidence_score: int | None = None
    ai_insights: str | None = None

    def range_position(self) -> float | None:
        """Where the recommendation sits in the market range, as a 5-95 percentage."""
        low, high = self.price_range_low, self.price_range_high
        if low is None or high is None or high <= low:
            return None
        recommended = self.recommended_price if self.recommended_price is not None else (low + high) / 2
        pct = float((recommended - low) / (high - low) * 100)
        return max(5.0, min(95.0, pct))
