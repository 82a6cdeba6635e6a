"""
Boundary coercion — backend rows in, typed engine records out.

Rows arrive as dicts (ORM ``values()``, JSON payloads, fixtures). They are
validated exactly once, here. A row that can't be read is dropped and
logged; it never aborts the batch, so one bad booking can't hide the
conflicts of unrelated items.

Usage:
    items = coerce_equipment(Equipment.objects.values(...))
    commitments = coerce_commitments(rows)
"""

import logging
from collections.abc import Iterable, Mapping

from quincy.dates import parse_day
from quincy.types import BookingCommitment, EquipmentItem

logger = logging.getLogger(__name__)


def _first(row: Mapping, *keys, default=None):
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return default


def _as_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    # Decimal and friends
    try:
        as_int = int(value)
    except (TypeError, ValueError):
        return None
    return as_int if as_int == value else None


def _drop(kind: str, reason: str, row: Mapping) -> None:
    logger.warning(
        "stock.row.dropped",
        extra={"kind": kind, "reason": reason, "row": dict(row)},
    )


def coerce_equipment_row(row: Mapping) -> EquipmentItem | None:
    """Build an EquipmentItem from one row, or None if it is unusable."""
    item_id = _first(row, 'id', 'equipment_id')
    if item_id is None or str(item_id) == '':
        _drop('equipment', 'missing_id', row)
        return None

    base_stock = _as_int(_first(row, 'base_stock', 'baseStock', 'stock', default=0))
    if base_stock is None:
        _drop('equipment', 'invalid_stock', row)
        return None

    folder_id = _first(row, 'folder_id', 'folderId')
    return EquipmentItem(
        id=str(item_id),
        name=str(_first(row, 'name', default='')),
        base_stock=base_stock,
        code=str(_first(row, 'code', default='')),
        folder_id=str(folder_id) if folder_id is not None else None,
        folder_name=str(_first(row, 'folder_name', 'folderName', default='')),
    )


def coerce_equipment(rows: Iterable[Mapping]) -> list[EquipmentItem]:
    """Coerce equipment rows. First row wins on duplicate ids."""
    items: dict[str, EquipmentItem] = {}
    for row in rows:
        item = coerce_equipment_row(row)
        if item is None:
            continue
        if item.id in items:
            _drop('equipment', 'duplicate_id', row)
            continue
        items[item.id] = item
    return list(items.values())


def coerce_commitment_row(row: Mapping) -> BookingCommitment | None:
    """Build a BookingCommitment from one row, or None if it is unusable."""
    equipment_id = _first(row, 'equipment_id', 'equipmentId')
    if equipment_id is None or str(equipment_id) == '':
        _drop('commitment', 'missing_equipment', row)
        return None

    if _first(row, 'start_date', 'startDate') is not None:
        start = parse_day(_first(row, 'start_date', 'startDate'))
        end = parse_day(_first(row, 'end_date', 'endDate', 'start_date', 'startDate'))
    else:
        start = end = parse_day(row.get('date'))

    if start is None or end is None:
        _drop('commitment', 'invalid_date', row)
        return None
    if end < start:
        _drop('commitment', 'reversed_range', row)
        return None

    quantity = _as_int(_first(row, 'quantity', default=0))
    if quantity is None:
        _drop('commitment', 'invalid_quantity', row)
        return None

    event_id = _first(row, 'event_id', 'eventId')
    return BookingCommitment(
        equipment_id=str(equipment_id),
        start_date=start,
        end_date=end,
        quantity=quantity,
        event_id=str(event_id) if event_id is not None else None,
        event_name=str(_first(row, 'event_name', 'eventName', default='')),
        project_name=str(_first(row, 'project_name', 'projectName', default='')),
    )


def coerce_commitments(rows: Iterable[Mapping]) -> list[BookingCommitment]:
    """Coerce booking rows, dropping the unreadable ones."""
    commitments = []
    for row in rows:
        commitment = coerce_commitment_row(row)
        if commitment is not None:
            commitments.append(commitment)
    return commitments
