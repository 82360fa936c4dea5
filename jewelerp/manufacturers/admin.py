from django.contrib import admin
from .models import Manufacturer


@admin.register(Manufacturer)
class ManufacturerAdmin(admin.ModelAdmin):
    list_display = ['name', 'contact_person', 'rating', 'current_load', 'past_job_count', 'active']
    list_filter = ['active']
    search_fields = ['name', 'contact_person', 'email']
