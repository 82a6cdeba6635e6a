"""
Project models — where booking commitments come from.

A Project has dated events; each event books equipment quantities.
Every EventEquipment row is one BookingCommitment for the event's day.
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Project(models.Model):
    """A production/rental job."""

    name = models.CharField(
        max_length=200,
        verbose_name=_('Name'),
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Owner'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Project')
        verbose_name_plural = _('Projects')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class ProjectEvent(models.Model):
    """A scheduled day of a project (show, rig, rehearsal...)."""

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='events',
        verbose_name=_('Project'),
    )
    name = models.CharField(
        max_length=200,
        verbose_name=_('Name'),
    )
    date = models.DateField(
        db_index=True,
        verbose_name=_('Date'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Event')
        verbose_name_plural = _('Events')
        ordering = ['date', 'name']
        indexes = [
            models.Index(fields=['project', 'date'], name='quincy_event_project_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.project.name}: {self.name} ({self.date})"


class EventEquipment(models.Model):
    """Quantity of one equipment line booked for an event."""

    event = models.ForeignKey(
        ProjectEvent,
        on_delete=models.CASCADE,
        related_name='equipment',
        verbose_name=_('Event'),
    )
    equipment = models.ForeignKey(
        'quincy.Equipment',
        on_delete=models.CASCADE,
        related_name='bookings',
        verbose_name=_('Equipment'),
    )
    quantity = models.PositiveIntegerField(
        default=1,
        verbose_name=_('Quantity'),
    )

    class Meta:
        verbose_name = _('Booked equipment')
        verbose_name_plural = _('Booked equipment')
        indexes = [
            models.Index(fields=['equipment', 'event'], name='quincy_booking_equip_event_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.quantity}x {self.equipment.name} @ {self.event}"
