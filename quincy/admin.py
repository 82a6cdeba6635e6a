"""
Quincy Admin.

- Folder: list + edit
- Equipment: edit, with serial numbers inline and effective stock for today
- Project: edit, with events inline
- ProjectEvent: edit, with booked equipment inline
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from quincy.dates import utc_today
from quincy.models import Equipment, EventEquipment, Folder, Project, ProjectEvent, SerialNumber


# =========================================================================
# FOLDER ADMIN
# =========================================================================

@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'parent']
    list_filter = ['parent']
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at']


# =========================================================================
# EQUIPMENT ADMIN
# =========================================================================

class SerialNumberInline(admin.TabularInline):
    model = SerialNumber
    extra = 0
    fields = ['serial', 'status', 'notes']


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    """Equipment admin — base stock and today's availability are read-only."""

    list_display = ['name', 'code', 'folder', 'stock_calculation',
                    'base_stock_display', 'available_today_display']
    list_filter = ['stock_calculation', 'folder']
    search_fields = ['name', 'code']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [SerialNumberInline]

    def get_queryset(self, request):
        return (
            super().get_queryset(request)
            .with_serial_count()
            .with_committed_on(utc_today())
            .select_related('folder__parent')
        )

    @admin.display(description=_('Base stock'))
    def base_stock_display(self, obj):
        return obj.base_stock

    @admin.display(description=_('Available today'))
    def available_today_display(self, obj):
        # Negative when today is overbooked, like EffectiveStock.available_quantity
        return obj.base_stock - obj._committed_on_day


# =========================================================================
# PROJECT / EVENT ADMIN
# =========================================================================

class ProjectEventInline(admin.TabularInline):
    model = ProjectEvent
    extra = 0
    fields = ['name', 'date']
    show_change_link = True


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'created_at']
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ProjectEventInline]


class EventEquipmentInline(admin.TabularInline):
    model = EventEquipment
    extra = 0
    autocomplete_fields = ['equipment']


@admin.register(ProjectEvent)
class ProjectEventAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'date']
    list_filter = ['date']
    search_fields = ['name', 'project__name']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'date'
    inlines = [EventEquipmentInline]
