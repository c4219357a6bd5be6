from django.contrib import admin

from .models import Appointment, Client, Operativo


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'rut', 'phone', 'email', 'sector', 'captured_by', 'created_at']
    list_filter = ['sector']
    search_fields = ['full_name', 'rut', 'email', 'phone']
    readonly_fields = ['id', 'captured_by', 'created_at', 'updated_at']


@admin.register(Operativo)
class OperativoAdmin(admin.ModelAdmin):
    list_display = ['name', 'date', 'location', 'capacity', 'created_at']
    list_filter = ['date']
    search_fields = ['name', 'location']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['client', 'operativo', 'ophthalmologist', 'scheduled_at', 'status']
    list_filter = ['status', 'scheduled_at']
    search_fields = ['client__full_name', 'client__rut']
    readonly_fields = ['id', 'created_at', 'updated_at']
    raw_id_fields = ['client', 'operativo', 'ophthalmologist']

    def has_delete_permission(self, request, obj=None):
        return False
