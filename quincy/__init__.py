"""
Quincy — Equipment Stock & Conflict Engine.

Effective stock per day, overbooking conflicts and subrental suggestions
for rental/production equipment.

Usage:
    from quincy import engine, EngineError

    engine.available(speaker, friday)   # 4
    engine.conflicts().total_conflicts  # next 30 days
    engine.suggestions()
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'engine':
        from quincy.service import StockEngine
        return StockEngine
    elif name == 'EngineError':
        from quincy.exceptions import EngineError
        return EngineError
    elif name == 'run_engine':
        from quincy.pipeline import run_engine
        return run_engine
    elif name == 'Equipment':
        from quincy.models.equipment import Equipment
        return Equipment
    elif name == 'Folder':
        from quincy.models.folder import Folder
        return Folder
    elif name == 'ProjectEvent':
        from quincy.models.project import ProjectEvent
        return ProjectEvent
    elif name == 'EventEquipment':
        from quincy.models.project import EventEquipment
        return EventEquipment
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'engine',
    'EngineError',
    'run_engine',
    'Equipment',
    'Folder',
    'ProjectEvent',
    'EventEquipment',
]

__version__ = '0.1.0'
