# Overview: Static category -> tax rate table.

"""
Tax rate table (authoritative)

- Rates are exact Decimals; no float ever enters tax arithmetic.
- Lookup is case-insensitive and whitespace-tolerant.
- Unknown or empty categories are taxed at DEFAULT_TAX_RATE (standard rate).
  This is policy: a new category is never silently untaxed.
- A rate of zero marks the category as exempt; its amounts are reported as
  exempt_amount rather than taxable_amount on invoices.
"""

from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType

DEFAULT_TAX_RATE = Decimal("0.18")

TAX_RATES = MappingProxyType({
    "electronics": Decimal("0.18"),
    "books": Decimal("0.00"),
    "groceries": Decimal("0.05"),
    "clothing": Decimal("0.12"),
    "luxury": Decimal("0.28"),
})


def _normalize(category: str | None) -> str:
    return (category or "").strip().lower()


def rate_for(category: str | None) -> Decimal:
    return TAX_RATES.get(_normalize(category), DEFAULT_TAX_RATE)


def is_exempt(category: str | None) -> bool:
    return rate_for(category) == 0
