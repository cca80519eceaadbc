# clinic_core/admissions/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from clinic_core.admissions.api.serializers import (
    AdmissionCreateSerializer,
    AdmissionResultSerializer,
    AdmissionSerializer,
    AdmissionUpdateSerializer,
)
from clinic_core.admissions.filters import AdmissionFilter
from clinic_core.admissions.models import Admission
from clinic_core.admissions.selectors import admissions_filtered, get_admission
from clinic_core.admissions.services import AdmissionService
from clinic_core.audit.services import AuditContext
from clinic_core.common.api.pagination import paginate
from clinic_core.common.api.params import operator_id, path_uuid


class AdmissionViewSet(viewsets.GenericViewSet):
    """
    Admissions:
    - list/retrieve
    - create (registers patient, posts charge, collects fee)
    - partial_update (edit, cancel/restore, discharge)
    - destroy (full financial reversal)
    """
    serializer_class = AdmissionSerializer
    queryset = Admission.objects.none()
    filterset_class = AdmissionFilter
    search_fields = ["admission_number", "patient__full_name", "patient__phone_number"]
    ordering_fields = ["date_admitted", "grand_total", "due_amount"]

    @extend_schema(tags=["Admissions"], responses={200: AdmissionSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(admissions_filtered())
        return paginate(request, qs, AdmissionSerializer)

    @extend_schema(tags=["Admissions"], responses={200: AdmissionSerializer})
    def retrieve(self, request, pk=None):
        return Response(AdmissionSerializer(get_admission(admission_id=path_uuid(pk))).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Admissions"], request=AdmissionCreateSerializer, responses={201: AdmissionResultSerializer})
    def create(self, request):
        ser = AdmissionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        patient = data.pop("patient")
        hospital = data.pop("hospital", None)
        department_id = data.pop("department_id", None)
        doctor_id = data.pop("doctor_id", None)
        shift_id = data.pop("shift", None)

        result = AdmissionService.create(
            operator_id=operator_id(request),
            patient=patient,
            hospital=hospital,
            department_id=department_id,
            doctor_id=doctor_id,
            data=data,
            shift_id=shift_id,
            context=AuditContext.from_request(request),
        )
        return Response(AdmissionResultSerializer(result).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Admissions"], request=AdmissionUpdateSerializer, responses={200: AdmissionResultSerializer})
    def partial_update(self, request, pk=None):
        ser = AdmissionUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        shift_id = data.pop("shift", None)

        result = AdmissionService.update(
            operator_id=operator_id(request),
            admission_id=path_uuid(pk),
            data=data,
            shift_id=shift_id,
            context=AuditContext.from_request(request),
        )
        return Response(AdmissionResultSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Admissions"], responses={204: None})
    def destroy(self, request, pk=None):
        AdmissionService.delete(
            operator_id=operator_id(request),
            admission_id=path_uuid(pk),
            context=AuditContext.from_request(request),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
