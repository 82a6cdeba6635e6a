"""
Availability predicates over EffectiveStock. Pure and total.
"""

from quincy.types import EffectiveStock


def is_equipment_overbooked(stock: EffectiveStock, additional_usage: int = 0) -> bool:
    """
    True when the day is (or would become) overbooked.

    Args:
        stock: EffectiveStock for the item/day
        additional_usage: Extra units a caller is about to book
    """
    return stock.available_quantity - additional_usage < 0


def get_available_quantity(stock: EffectiveStock) -> int:
    """Units that can still be booked. Never negative; see stock.available_quantity for the raw value."""
    return max(stock.available_quantity, 0)
