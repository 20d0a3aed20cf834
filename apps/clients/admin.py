from django.contrib import admin

from .models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ('company_name', 'address', 'referent_name', 'frequency', 'created_at')
    list_filter = ('frequency',)
    search_fields = ('company_name', 'address', 'referent_name')
