"""
Quincy Models.

Data the stock engine reads:
- Folder: Equipment grouping
- Equipment: Rentable line with its base stock
- SerialNumber: Serialized unit (drives base stock when configured)
- Project / ProjectEvent: Scheduled work
- EventEquipment: Quantity booked for an event (a booking commitment)
"""

from quincy.models.enums import SerialStatus, StockCalculation
from quincy.models.equipment import Equipment, SerialNumber
from quincy.models.folder import Folder
from quincy.models.project import EventEquipment, Project, ProjectEvent

__all__ = [
    'StockCalculation',
    'SerialStatus',
    'Folder',
    'Equipment',
    'SerialNumber',
    'Project',
    'ProjectEvent',
    'EventEquipment',
]
