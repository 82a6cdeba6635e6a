"""
Stock queries — read-only fetching of engine inputs.

All methods are classmethods and use no locking. Rows go through
quincy.records so the engine only ever sees typed, validated records.
"""

from datetime import date

from django.db.models import F

from quincy.models import Equipment, EventEquipment
from quincy.records import coerce_commitments, coerce_equipment
from quincy.types import BookingCommitment, EquipmentItem


class StockQueries:
    """Read-only queries feeding the stock engine."""

    @classmethod
    def equipment_queryset(cls, equipment_ids=None, folder_ids=None):
        qs = Equipment.objects.with_serial_count().select_related('folder')
        if equipment_ids is not None:
            qs = qs.filter(pk__in=list(equipment_ids))
        if folder_ids is not None:
            qs = qs.in_folders(list(folder_ids))
        return qs.order_by('name', 'pk')

    @classmethod
    def equipment_rows(cls, equipment_ids=None, folder_ids=None) -> list[dict]:
        """
        Equipment as plain rows.

        Args:
            equipment_ids: Restrict to these pks (None = all)
            folder_ids: Restrict to these folders and their sub-folders (None = all)

        Returns:
            List of {id, name, code, base_stock, folder_id, folder_name}
        """
        return [
            {
                'id': equipment.pk,
                'name': equipment.name,
                'code': equipment.code,
                'base_stock': equipment.base_stock,
                'folder_id': equipment.folder_id,
                'folder_name': equipment.folder.name if equipment.folder else '',
            }
            for equipment in cls.equipment_queryset(equipment_ids, folder_ids)
        ]

    @classmethod
    def commitment_rows(cls, start: date, end: date,
                        equipment_ids=None, owner=None) -> list[dict]:
        """
        Booked equipment for events dated within [start, end].

        Args:
            start: First day (inclusive)
            end: Last day (inclusive)
            equipment_ids: Restrict to these equipment pks (None = all)
            owner: Restrict to projects owned by this user (None = all)

        Returns:
            List of {equipment_id, date, quantity, event_id, event_name, project_name}
        """
        qs = EventEquipment.objects.filter(
            event__date__gte=start,
            event__date__lte=end,
        )
        if equipment_ids is not None:
            qs = qs.filter(equipment_id__in=list(equipment_ids))
        if owner is not None:
            qs = qs.filter(event__project__owner=owner)

        return list(
            qs.order_by('event__date', 'pk').values(
                'equipment_id',
                'quantity',
                'event_id',
                date=F('event__date'),
                event_name=F('event__name'),
                project_name=F('event__project__name'),
            )
        )

    @classmethod
    def items(cls, equipment_ids=None, folder_ids=None) -> list[EquipmentItem]:
        """Equipment as engine records."""
        return coerce_equipment(cls.equipment_rows(equipment_ids, folder_ids))

    @classmethod
    def commitments(cls, start: date, end: date,
                    equipment_ids=None, owner=None) -> list[BookingCommitment]:
        """Bookings in [start, end] as engine records."""
        return coerce_commitments(cls.commitment_rows(start, end, equipment_ids, owner))
