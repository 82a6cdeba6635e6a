"""
Pytest fixtures for Quincy tests.

Pure-engine fixtures work on fixed days and plain records; ORM fixtures
book relative to today so the façade's default warning timeframe sees them.
"""

from datetime import date, timedelta

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import caches

from quincy.dates import utc_today
from quincy.models import (
    Equipment,
    EventEquipment,
    Folder,
    Project,
    ProjectEvent,
    SerialNumber,
    SerialStatus,
    StockCalculation,
)
from quincy.types import BookingCommitment, EquipmentItem, WarningTimeframe


User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache():
    """Engine results must never leak between tests."""
    caches['default'].clear()
    yield
    caches['default'].clear()


# ══════════════════════════════════════════════════════════════
# PURE ENGINE
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def day1():
    """First day of the reference window."""
    return date(2026, 5, 4)


@pytest.fixture
def days(day1):
    """days[n] is day n of the reference window (days[0] unused)."""
    return [day1 + timedelta(days=n - 1) for n in range(0, 40)]


@pytest.fixture
def window(day1):
    """30-day warning timeframe starting on day 1."""
    return WarningTimeframe.starting(day1, 30)


@pytest.fixture
def speaker_a():
    return EquipmentItem(id='spk-a', name='Speaker-A', base_stock=10, folder_id='sound')


@pytest.fixture
def light_b():
    return EquipmentItem(id='lgt-b', name='Light-B', base_stock=4, folder_id='light')


@pytest.fixture
def speaker_commitments(days):
    """6 units on days 1-3, 12 units on day 4."""
    return [
        BookingCommitment(
            equipment_id='spk-a', start_date=days[1], end_date=days[3], quantity=6,
            event_id='ev-1', event_name='Rehearsal', project_name='Festival',
        ),
        BookingCommitment.on(
            'spk-a', days[4], 12,
            event_id='ev-2', event_name='Show', project_name='Festival',
        ),
    ]


# ══════════════════════════════════════════════════════════════
# ORM
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def today():
    """Today as a UTC calendar day."""
    return utc_today()


@pytest.fixture
def user(db):
    return User.objects.create_user(username='planner', password='testpass123')


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username='other', password='testpass123')


@pytest.fixture
def sound(db):
    return Folder.objects.create(name='Sound')


@pytest.fixture
def speakers(db, sound):
    return Folder.objects.create(name='Speakers', parent=sound)


@pytest.fixture
def lighting(db):
    return Folder.objects.create(name='Lighting')


@pytest.fixture
def speaker(db, speakers):
    """Manual stock: 10 units."""
    return Equipment.objects.create(name='Speaker-A', code='SPK-A', stock=10, folder=speakers)


@pytest.fixture
def mixer(db, sound):
    """Serialized: 3 available, 1 in repair, 1 retired."""
    equipment = Equipment.objects.create(
        name='Mixer',
        code='MIX',
        stock=99,
        stock_calculation=StockCalculation.SERIAL_NUMBERS,
        folder=sound,
    )
    for serial in ('M-1', 'M-2', 'M-3'):
        SerialNumber.objects.create(equipment=equipment, serial=serial)
    SerialNumber.objects.create(equipment=equipment, serial='M-4', status=SerialStatus.IN_REPAIR)
    SerialNumber.objects.create(equipment=equipment, serial='M-5', status=SerialStatus.RETIRED)
    return equipment


@pytest.fixture
def spotlight(db, lighting):
    """Manual stock: 4 units."""
    return Equipment.objects.create(name='Spotlight', code='SPOT', stock=4, folder=lighting)


@pytest.fixture
def project(db, user):
    return Project.objects.create(name='Festival', owner=user)


@pytest.fixture
def book(db, project):
    """
    Book equipment for a one-day event.

    Usage:
        book(speaker, today, 12)
        book(speaker, today, 3, project=other_project)
    """
    def _book(equipment, day, quantity, project=project, name='Show'):
        event, _ = ProjectEvent.objects.get_or_create(project=project, name=name, date=day)
        return EventEquipment.objects.create(event=event, equipment=equipment, quantity=quantity)
    return _book
