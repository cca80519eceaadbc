# clinic_core/pathology/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from clinic_core.audit.services import AuditContext
from clinic_core.common.api.pagination import paginate
from clinic_core.common.api.params import operator_id, path_uuid
from clinic_core.pathology.api.serializers import (
    PathologyResultSerializer,
    PathologyTestCreateSerializer,
    PathologyTestSerializer,
    PathologyTestUpdateSerializer,
)
from clinic_core.pathology.filters import PathologyTestFilter
from clinic_core.pathology.models import PathologyTest
from clinic_core.pathology.selectors import get_test, tests_filtered
from clinic_core.pathology.services import PathologyService


class PathologyTestViewSet(viewsets.GenericViewSet):
    serializer_class = PathologyTestSerializer
    queryset = PathologyTest.objects.none()
    filterset_class = PathologyTestFilter
    search_fields = ["test_number", "patient__full_name", "patient__phone_number"]
    ordering_fields = ["test_date", "grand_total", "due_amount"]

    @extend_schema(tags=["Pathology"], responses={200: PathologyTestSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(tests_filtered())
        return paginate(request, qs, PathologyTestSerializer)

    @extend_schema(tags=["Pathology"], responses={200: PathologyTestSerializer})
    def retrieve(self, request, pk=None):
        return Response(PathologyTestSerializer(get_test(test_id=path_uuid(pk))).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Pathology"], request=PathologyTestCreateSerializer, responses={201: PathologyResultSerializer})
    def create(self, request):
        ser = PathologyTestCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        result = PathologyService.create(
            operator_id=operator_id(request),
            patient=data.pop("patient"),
            hospital=data.pop("hospital", None),
            ordered_by_id=data.pop("ordered_by_id"),
            shift_id=data.pop("shift", None),
            data=data,
            context=AuditContext.from_request(request),
        )
        return Response(PathologyResultSerializer(result).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Pathology"], request=PathologyTestUpdateSerializer, responses={200: PathologyResultSerializer})
    def partial_update(self, request, pk=None):
        ser = PathologyTestUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        result = PathologyService.update(
            operator_id=operator_id(request),
            test_id=path_uuid(pk),
            shift_id=data.pop("shift", None),
            data=data,
            context=AuditContext.from_request(request),
        )
        return Response(PathologyResultSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Pathology"], responses={204: None})
    def destroy(self, request, pk=None):
        PathologyService.delete(
            operator_id=operator_id(request),
            test_id=path_uuid(pk),
            context=AuditContext.from_request(request),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
