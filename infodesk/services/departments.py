from typing import Optional
from django.db.models import Count

from infodesk.models import Department
from infodesk.services.doctors import format_doctor


def format_department(dept: Department, *, with_doctors: bool=False) -> dict:
    data = {
        'id': dept.id,
        'name': dept.name,
        'description': dept.description,
        'createdAt': dept.created_at,
        'updatedAt': dept.updated_at,
    }
    if hasattr(dept, 'doctor_count'):
        data['doctorCount'] = dept.doctor_count
    if with_doctors:
        data['doctors'] = [format_doctor(d) for d in dept.doctors.select_related('department').order_by('id')]
    return data


def list_departments() -> list[dict]:
    qs = Department.objects.annotate(doctor_count=Count('doctors')).order_by('name')
    return [format_department(d) for d in qs]


def save_department(data: dict, dept: Optional[Department]=None) -> Department:
    dept = dept or Department()
    for field in ('name', 'description'):
        if field in data:
            setattr(dept, field, data[field])
    dept.save()
    return dept
