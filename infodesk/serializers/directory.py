import bleach
from rest_framework import serializers


def clean_text(v: str, *, strip_whitespace: bool = True) -> str:
    """Drop all markup; whitespace is trimmed unless ``strip_whitespace`` is off."""
    v = v or ''
    if strip_whitespace:
        v = v.strip()
    return bleach.clean(v, tags=set(), strip=True)


class DepartmentWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('name is required')
        return v

    def validate_description(self, v):
        return clean_text(v)


class DoctorWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    specialization = serializers.CharField(max_length=255)
    departmentId = serializers.IntegerField(min_value=1)

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('name is required')
        return v

    def validate_specialization(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('specialization is required')
        return v


class DoctorListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    departmentId = serializers.IntegerField(min_value=1, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=200, required=False)
