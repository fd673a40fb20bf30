from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework import status

from infodesk.models import Department, Doctor
from infodesk.permissions import IsStaffOrReadOnly
from infodesk.serializers.directory import DoctorListQuerySerializer, DoctorWriteSerializer
from infodesk.services.doctors import format_doctor, list_doctors, save_doctor


@api_view(['GET', 'POST'])
@permission_classes([IsStaffOrReadOnly])
def doctors(request):
    """List doctors, or create one (staff only).

    Query params:
      - q: optional search (name/specialization contains)
      - departmentId: only doctors of this department
      - page, pageSize: pagination (optional)
    """
    if request.method == 'POST':
        s = DoctorWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            doctor = save_doctor(s.validated_data)
        except Department.DoesNotExist:
            return Response({'ok': False, 'detail': 'department not found'}, status=400)
        return Response({'ok': True, 'data': format_doctor(doctor)}, status=status.HTTP_201_CREATED)

    q = DoctorListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page = q.validated_data.get('page')
    page_size = q.validated_data.get('pageSize')
    data, total = list_doctors(
        q=(q.validated_data.get('q') or '').strip() or None,
        department_id=q.validated_data.get('departmentId'),
        page=page,
        page_size=page_size,
    )
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page or 1, 'pageSize': page_size or total}})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsStaffOrReadOnly])
def doctor_detail(request, pk: int):
    try:
        doctor = Doctor.objects.select_related('department').get(id=pk)
    except Doctor.DoesNotExist:
        return Response({'ok': False, 'detail': 'not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response({'ok': True, 'data': format_doctor(doctor)})

    if request.method == 'DELETE':
        doctor.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    s = DoctorWriteSerializer(data=request.data, partial=request.method == 'PATCH')
    s.is_valid(raise_exception=True)
    try:
        doctor = save_doctor(s.validated_data, doctor)
    except Department.DoesNotExist:
        return Response({'ok': False, 'detail': 'department not found'}, status=400)
    return Response({'ok': True, 'data': format_doctor(doctor)})
