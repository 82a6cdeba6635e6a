"""
Cache invalidation on data changes.

Any write to folders, equipment, serial numbers, projects, events or
booked equipment can change effective stock or the folder and owner
scopes of a cached result, so cached engine results are dropped.
Connected in QuincyConfig.ready().
"""

from django.db.models.signals import post_delete, post_save

from quincy.services.cache import EngineCache

WATCHED_MODELS = (
    'Folder',
    'Equipment',
    'SerialNumber',
    'Project',
    'ProjectEvent',
    'EventEquipment',
)


def invalidate_engine_cache(sender, **kwargs):
    EngineCache().invalidate()


def connect_signals(app_config) -> None:
    for model_name in WATCHED_MODELS:
        model = app_config.get_model(model_name)
        for signal in (post_save, post_delete):
            signal.connect(
                invalidate_engine_cache,
                sender=model,
                dispatch_uid=f"quincy.invalidate.{signal_name(signal)}.{model_name}",
            )


def signal_name(signal) -> str:
    return 'save' if signal is post_save else 'delete'
