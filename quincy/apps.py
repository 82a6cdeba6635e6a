"""Django app configuration for Quincy."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class QuincyConfig(AppConfig):
    """Configuration for Quincy app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "quincy"
    verbose_name = _("Equipment Stock & Conflicts")

    def ready(self):
        from quincy.signals import connect_signals
        connect_signals(self)
