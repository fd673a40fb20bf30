"""
Department views.

Anyone may browse departments and their doctors; creating, editing
and deleting require a staff account. A department that still has
doctors cannot be deleted.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework import status

from ..models import Department
from ..permissions import IsStaffOrReadOnly
from ..serializers.directory import DepartmentWriteSerializer
from ..services.departments import format_department, list_departments, save_department


def _name_taken(name: str, exclude_id: int | None = None) -> bool:
    qs = Department.objects.filter(name__iexact=name)
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    return qs.exists()


@api_view(['GET', 'POST'])
@permission_classes([IsStaffOrReadOnly])
def departments(request):
    """``GET`` lists all departments with their doctor counts; ``POST`` creates one."""
    if request.method == 'GET':
        return Response({'ok': True, 'data': list_departments()})

    s = DepartmentWriteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    if _name_taken(s.validated_data['name']):
        return Response({'ok': False, 'detail': 'department name already exists'}, status=status.HTTP_400_BAD_REQUEST)
    dept = save_department(s.validated_data)
    return Response({'ok': True, 'data': format_department(dept)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStaffOrReadOnly])
def department_detail(request, pk: int):
    """Return a department with its doctors, or modify/delete it."""
    dept = Department.objects.filter(id=pk).first()
    if not dept:
        return Response({'ok': False, 'detail': 'not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response({'ok': True, 'data': format_department(dept, with_doctors=True)})

    if request.method == 'DELETE':
        # ProtectedError is turned into 409 by the API exception handler
        dept.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    s = DepartmentWriteSerializer(data=request.data, partial=request.method == 'PATCH')
    s.is_valid(raise_exception=True)
    name = s.validated_data.get('name')
    if name and _name_taken(name, exclude_id=dept.id):
        return Response({'ok': False, 'detail': 'department name already exists'}, status=status.HTTP_400_BAD_REQUEST)
    dept = save_department(s.validated_data, dept)
    return Response({'ok': True, 'data': format_department(dept)})
