from typing import Optional
from django.db.models import Q

from infodesk.models import Department, Doctor


def format_doctor(d: Doctor) -> dict:
    return {
        'id': d.id,
        'name': d.name,
        'specialization': d.specialization,
        'departmentId': d.department_id,
        'departmentName': d.department.name,
        'createdAt': d.created_at,
        'updatedAt': d.updated_at,
    }


def list_doctors(*, q: Optional[str]=None, department_id: Optional[int]=None,
                 page: Optional[int]=None, page_size: Optional[int]=None) -> tuple[list[dict], int]:
    qs = Doctor.objects.select_related('department').order_by('id')
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(specialization__icontains=q))
    if department_id:
        qs = qs.filter(department_id=department_id)

    total = qs.count()
    if page and page_size:
        start = (page-1)*page_size
        qs = qs[start:start + page_size]
    return [format_doctor(d) for d in qs], total


def save_doctor(data: dict, doctor: Optional[Doctor]=None) -> Doctor:
    """Create a doctor, or update ``doctor`` with the given fields.

    Raises ``Department.DoesNotExist`` when ``departmentId`` is unknown.
    """
    doctor = doctor or Doctor()
    if 'departmentId' in data:
        doctor.department = Department.objects.get(id=data['departmentId'])
    for field in ('name', 'specialization'):
        if field in data:
            setattr(doctor, field, data[field])
    doctor.save()
    return doctor
