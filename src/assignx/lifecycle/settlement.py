"""Settlement calculator.

Pure functions: identical inputs always give identical outputs, and the three
shares always add up exactly to the client quote.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from src.assignx.models.enums import ComplexityTier, UrgencyTier

CENT = Decimal("0.01")

URGENCY_MULTIPLIERS: dict[UrgencyTier, Decimal] = {
    UrgencyTier.STANDARD: Decimal("1.0"),
    UrgencyTier.HOURS_72: Decimal("1.15"),
    UrgencyTier.HOURS_48: Decimal("1.3"),
    UrgencyTier.HOURS_24: Decimal("1.5"),
}

COMPLEXITY_MULTIPLIERS: dict[ComplexityTier, Decimal] = {
    ComplexityTier.EASY: Decimal("1.0"),
    ComplexityTier.MEDIUM: Decimal("1.2"),
    ComplexityTier.HARD: Decimal("1.5"),
}

DOER_SHARE = Decimal("0.65")
SUPERVISOR_SHARE = Decimal("0.15")
PLATFORM_SHARE = Decimal("0.20")


@dataclass(frozen=True)
class Settlement:
    """Three-way split of what the client pays."""

    client_quote: Decimal
    doer_payout: Decimal
    supervisor_commission: Decimal
    platform_fee: Decimal

    def as_dict(self) -> dict[str, str]:
        return {
            "client_quote": str(self.client_quote),
            "doer_payout": str(self.doer_payout),
            "supervisor_commission": str(self.supervisor_commission),
            "platform_fee": str(self.platform_fee),
        }


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize to the minor currency unit, rounding half-up."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def split_quote(client_quote: Decimal | int | str) -> Settlement:
    """Split an already-rounded client quote 65/15/20.

    Doer and supervisor shares are rounded individually; the platform fee takes
    the remainder so rounding never creates or destroys a cent.
    """
    quote = to_money(client_quote)
    if quote < 0:
        raise ValueError("client_quote must not be negative")
    doer = to_money(quote * DOER_SHARE)
    supervisor = to_money(quote * SUPERVISOR_SHARE)
    return Settlement(
        client_quote=quote,
        doer_payout=doer,
        supervisor_commission=supervisor,
        platform_fee=quote - doer - supervisor,
    )


def calculate_settlement(
    base_rate: Decimal | int | str,
    count: int,
    urgency_tier: UrgencyTier | str,
    complexity_tier: ComplexityTier | str,
) -> Settlement:
    """Price a project and split the price between doer, supervisor and platform.

    Args:
        base_rate: Price per unit (word, page, or flat job).
        count: Number of units.
        urgency_tier: Deadline pressure tier at quoting time.
        complexity_tier: Supervisor-assessed difficulty.

    Raises:
        ValueError: On negative inputs or unknown tiers.
    """
    rate = Decimal(str(base_rate)) if isinstance(base_rate, float) else Decimal(base_rate)
    if rate < 0:
        raise ValueError("base_rate must not be negative")
    if count < 0:
        raise ValueError("count must not be negative")

    urgency = URGENCY_MULTIPLIERS[UrgencyTier(urgency_tier)]
    complexity = COMPLEXITY_MULTIPLIERS[ComplexityTier(complexity_tier)]
    return split_quote(to_money(rate * count * urgency * complexity))


def urgency_tier_for(deadline: datetime | None, now: datetime) -> UrgencyTier:
    """Derive the urgency tier from hours remaining until the deadline."""
    if deadline is None:
        return UrgencyTier.STANDARD
    hours_left = (deadline - now).total_seconds() / 3600
    if hours_left <= 24:
        return UrgencyTier.HOURS_24
    if hours_left <= 48:
        return UrgencyTier.HOURS_48
    if hours_left <= 72:
        return UrgencyTier.HOURS_72
    return UrgencyTier.STANDARD


def default_rate_and_count(
    word_count: int | None,
    page_count: int | None,
    *,
    price_per_word: Decimal,
    price_per_page: Decimal,
    minimum_base_price: Decimal,
) -> tuple[Decimal, int]:
    """Pick the pricing unit from the project's size.

    Word count wins over page count; without either, the project is priced
    as a single unit at the minimum base price.
    """
    if word_count:
        return price_per_word, word_count
    if page_count:
        return price_per_page, page_count
    return minimum_base_price, 1
