"""
Money value object.

Prices and order totals are carried as Money: a non-negative Decimal rounded
to cents plus an ISO 4217 currency code. Arithmetic between different
currencies is rejected.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """
    Amount plus currency.

    Example:
        >>> (Money(Decimal("100"), "USD") + Money(Decimal("10"), "USD")).amount
        Decimal('110.00')
    """

    amount: Decimal
    currency: str = "USD"

    def __post_init__(self) -> None:
        try:
            amount = Decimal(str(self.amount)).quantize(CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation as e:
            raise ValueError(f"Invalid money amount: {self.amount!r}") from e
        if amount < 0:
            raise ValueError(f"Money amount cannot be negative: {amount}")

        currency = (self.currency or "").upper()
        if len(currency) != 3 or not currency.isalpha():
            raise ValueError(f"Invalid currency code: {self.currency!r}")

        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "currency", currency)

    def _same_currency(self, other: Any, verb: str) -> "Money":
        if not isinstance(other, Money):
            raise TypeError(f"Cannot {verb} Money and {type(other).__name__}")
        if other.currency != self.currency:
            raise ValueError(f"Cannot {verb} {self.currency} and {other.currency}")
        return other

    def __add__(self, other: "Money") -> "Money":
        return Money(self.amount + self._same_currency(other, "add").amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        return Money(self.amount - self._same_currency(other, "subtract").amount, self.currency)

    def __mul__(self, factor: int | float | Decimal) -> "Money":
        if isinstance(factor, bool) or not isinstance(factor, (int, float, Decimal)):
            raise TypeError(f"Cannot multiply Money by {type(factor).__name__}")
        return Money(self.amount * Decimal(str(factor)), self.currency)

    def __str__(self) -> str:
        return f"{self.currency} {self.amount:.2f}"

    @property
    def is_zero(self) -> bool:
        return not self.amount

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(Decimal("0"), currency)

    @classmethod
    def from_string(cls, amount: str | None, currency: str = "USD") -> "Money":
        """Parse a platform amount string; None and blank strings are zero."""
        if amount is None or not str(amount).strip():
            return cls.zero(currency)
        return cls(Decimal(str(amount).strip()), currency)
