from django.contrib import admin

from .models import CorrectiveTask


@admin.register(CorrectiveTask)
class CorrectiveTaskAdmin(admin.ModelAdmin):
    list_display = ('id', 'client_id', 'priority', 'status', 'reported_by', 'reported_date')
    list_filter = ('status', 'priority')
    search_fields = ('description', 'client_id', 'reported_by')
