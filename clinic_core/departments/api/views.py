# clinic_core/departments/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from clinic_core.departments.api.serializers import DepartmentSerializer, DoctorSerializer
from clinic_core.departments.models import Department, Doctor
from clinic_core.departments.selectors import list_departments, list_doctors


class DepartmentViewSet(viewsets.GenericViewSet):
    serializer_class = DepartmentSerializer
    queryset = Department.objects.none()

    @extend_schema(tags=["Departments"], responses={200: DepartmentSerializer(many=True)})
    def list(self, request):
        return Response(DepartmentSerializer(list_departments(), many=True).data, status=status.HTTP_200_OK)


class DoctorViewSet(viewsets.GenericViewSet):
    serializer_class = DoctorSerializer
    queryset = Doctor.objects.none()

    @extend_schema(
        tags=["Departments"],
        responses={200: DoctorSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="department", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        raw = request.query_params.get("department")
        department_id = None
        if raw:
            try:
                department_id = UUID(str(raw))
            except ValueError:
                return Response({"detail": "Invalid department (UUID expected)"}, status=status.HTTP_400_BAD_REQUEST)
        qs = list_doctors(department_id=department_id)
        return Response(DoctorSerializer(qs, many=True).data, status=status.HTTP_200_OK)
