"""Cart totals — derived on every read, never stored.

    subtotal = Σ quantity × current price
    tax      = subtotal × tax_rate                  (8%)
    shipping = 0 if subtotal > threshold else fee   ($30 / $5.99)
    total    = subtotal + tax + shipping

Amounts are Decimals rounded half-up to cents. An empty cart costs nothing,
shipping included.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ordering.config import StorefrontSettings

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal = ZERO
    tax: Decimal = ZERO
    shipping: Decimal = ZERO
    total: Decimal = ZERO

    def as_dict(self) -> dict:
        return {
            "subtotal": str(self.subtotal),
            "tax": str(self.tax),
            "shipping": str(self.shipping),
            "total": str(self.total),
        }


def compute_totals(
    priced_lines: Iterable[tuple[int, Decimal]],
    settings: StorefrontSettings | None = None,
) -> CartTotals:
    """Totals for ``(quantity, unit_price)`` pairs."""
    settings = settings or StorefrontSettings()
    priced_lines = list(priced_lines)
    if not priced_lines:
        return CartTotals()

    subtotal = to_money(sum((Decimal(quantity) * Decimal(price) for quantity, price in priced_lines), ZERO))
    tax = to_money(subtotal * settings.tax_rate)
    shipping = ZERO if subtotal > settings.free_shipping_threshold else to_money(settings.flat_shipping_fee)
    return CartTotals(subtotal=subtotal, tax=tax, shipping=shipping, total=to_money(subtotal + tax + shipping))
