"""
Equipment model — what can be booked, and how much of it exists.
"""

from django.db import models
from django.db.models import Count, IntegerField, OuterRef, Q, Subquery, Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

from quincy.models.enums import SerialStatus, StockCalculation


class EquipmentQuerySet(models.QuerySet):
    """QuerySet with helpers used when feeding the stock engine."""

    def with_serial_count(self):
        """Annotate _serial_count (available serialized units) to avoid N+1."""
        return self.annotate(
            _serial_count=Count(
                'serial_numbers',
                filter=Q(serial_numbers__status=SerialStatus.AVAILABLE),
            )
        )

    def with_committed_on(self, day):
        """Annotate _committed_on_day (units booked by events on day) in the same query."""
        from quincy.models.project import EventEquipment

        booked = (
            EventEquipment.objects
            .filter(equipment=OuterRef('pk'), event__date=day)
            .values('equipment')
            .annotate(total=Sum('quantity'))
            .values('total')
        )
        return self.annotate(
            _committed_on_day=Coalesce(Subquery(booked, output_field=IntegerField()), 0),
        )

    def in_folders(self, folder_ids):
        """Equipment filed directly in, or one level under, the given folders."""
        return self.filter(Q(folder_id__in=folder_ids) | Q(folder__parent_id__in=folder_ids))


class Equipment(models.Model):
    """
    One rentable equipment line (e.g. "Speaker-A", 10 units).

    base_stock is what the engine works with. For serialized equipment
    it is the number of available units, otherwise the stock field.
    """

    name = models.CharField(
        max_length=200,
        verbose_name=_('Name'),
    )
    code = models.CharField(
        max_length=50,
        blank=True,
        default='',
        db_index=True,
        verbose_name=_('Code'),
    )
    stock = models.IntegerField(
        default=0,
        verbose_name=_('Stock'),
        help_text=_('Ignored when stock is calculated from serial numbers'),
    )
    stock_calculation = models.CharField(
        max_length=20,
        choices=StockCalculation.choices,
        default=StockCalculation.MANUAL,
        verbose_name=_('Stock calculation'),
    )
    folder = models.ForeignKey(
        'quincy.Folder',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='equipment',
        verbose_name=_('Folder'),
    )
    rental_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Rental price'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = EquipmentQuerySet.as_manager()

    class Meta:
        verbose_name = _('Equipment')
        verbose_name_plural = _('Equipment')
        ordering = ['name']
        indexes = [
            models.Index(fields=['folder', 'name'], name='quincy_equip_folder_name_idx'),
        ]

    @property
    def base_stock(self) -> int:
        """Declared stock the engine starts from."""
        if self.stock_calculation != StockCalculation.SERIAL_NUMBERS:
            return self.stock
        count = getattr(self, '_serial_count', None)
        if count is None:
            count = self.serial_numbers.filter(status=SerialStatus.AVAILABLE).count()
        return count

    def __str__(self) -> str:
        if self.code:
            return f"{self.name} ({self.code})"
        return self.name


class SerialNumber(models.Model):
    """A single serialized unit of an Equipment."""

    equipment = models.ForeignKey(
        Equipment,
        on_delete=models.CASCADE,
        related_name='serial_numbers',
        verbose_name=_('Equipment'),
    )
    serial = models.CharField(
        max_length=100,
        verbose_name=_('Serial number'),
    )
    status = models.CharField(
        max_length=20,
        choices=SerialStatus.choices,
        default=SerialStatus.AVAILABLE,
        db_index=True,
        verbose_name=_('Status'),
    )
    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Serial number')
        verbose_name_plural = _('Serial numbers')
        ordering = ['serial']
        constraints = [
            models.UniqueConstraint(
                fields=['equipment', 'serial'],
                name='unique_serial_per_equipment',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.equipment.name} #{self.serial}"
