"""Quantity and cost arithmetic for reward redemptions.

These helpers guide the catalog UI only; the transaction manager re-checks
balance and stock inside the locked unit of work.
"""

from __future__ import annotations

from berkomunitas_api.core.settings import settings


def total_cost(unit_cost: int, quantity: int) -> int:
    return int(unit_cost) * int(quantity)


def max_quantity(balance: int, unit_cost: int, stock: int, cap: int | None = None) -> int:
    """Largest quantity affordable with ``balance`` and available in ``stock``."""

    if unit_cost <= 0:
        raise ValueError("unit_cost must be a positive integer")
    system_cap = settings.redemption_max_quantity if cap is None else cap
    affordable = max(int(balance), 0) // int(unit_cost)
    return max(0, min(affordable, int(stock), int(system_cap)))
