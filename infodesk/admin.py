"""
Django admin registrations for the directory models, so staff can
inspect and edit departments and doctors at ``/admin/``.
"""

from django.contrib import admin

from .models import Department, Doctor


class DoctorInline(admin.TabularInline):
    model = Doctor
    extra = 0
    fields = ('name', 'specialization')


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'created_at', 'updated_at')
    search_fields = ('name',)
    inlines = [DoctorInline]


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'specialization', 'department', 'updated_at')
    list_filter = ('department',)
    search_fields = ('name', 'specialization', 'department__name')
