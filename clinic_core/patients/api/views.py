# clinic_core/patients/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from clinic_core.audit.services import AuditContext
from clinic_core.common.api.pagination import paginate
from clinic_core.common.api.params import operator_id, path_uuid
from clinic_core.patients.api.serializers import PatientSerializer, PatientUpdateSerializer
from clinic_core.patients.models import Patient
from clinic_core.patients.selectors import get_patient, search_patients
from clinic_core.patients.services import PatientService


class PatientViewSet(viewsets.GenericViewSet):
    serializer_class = PatientSerializer
    queryset = Patient.objects.none()

    @extend_schema(
        tags=["Patients"],
        responses={200: PatientSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False,
                             description="Search by name, phone, email or guardian."),
        ],
    )
    def list(self, request):
        qs = search_patients(q=request.query_params.get("q", ""))
        return paginate(request, qs, PatientSerializer)

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer})
    def retrieve(self, request, pk=None):
        patient = get_patient(patient_id=path_uuid(pk))
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], request=PatientUpdateSerializer, responses={200: PatientSerializer})
    def partial_update(self, request, pk=None):
        ser = PatientUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        patient = PatientService.update_patient(
            actor_user_id=operator_id(request),
            patient_id=path_uuid(pk),
            data=ser.validated_data,
            context=AuditContext.from_request(request),
        )
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)
