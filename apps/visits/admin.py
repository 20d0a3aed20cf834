from django.contrib import admin

from .models import Visit


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ('id', 'client_id', 'scheduled_date', 'status', 'completed_date')
    list_filter = ('status', 'is_past_date_visit')
    search_fields = ('client_id', 'notes')
    date_hierarchy = 'scheduled_date'
