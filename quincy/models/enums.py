"""
Enums for Quincy models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class StockCalculation(models.TextChoices):
    """
    Where an equipment's base stock comes from.

    MANUAL:         Equipment.stock as typed in by a user.
    SERIAL_NUMBERS: Number of serialized units currently available.
    CONSUMABLE:     Equipment.stock, but the units don't come back.
    """
    MANUAL = 'manual', _('Manual')
    SERIAL_NUMBERS = 'serial_numbers', _('Serial numbers')
    CONSUMABLE = 'consumable', _('Consumable')


class SerialStatus(models.TextChoices):
    """Lifecycle of one serialized unit. Only AVAILABLE counts as stock."""
    AVAILABLE = 'available', _('Available')
    IN_REPAIR = 'in_repair', _('In repair')
    RETIRED = 'retired', _('Retired')
