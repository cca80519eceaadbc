# clinic_core/cash/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from clinic_core.cash.api.serializers import (
    CashMovementSerializer,
    ShiftCloseSerializer,
    ShiftOpenSerializer,
    ShiftSerializer,
)
from clinic_core.cash.models import Shift
from clinic_core.cash.selectors import get_open_shift, get_shift, list_movements, list_shifts
from clinic_core.cash.services import ShiftService
from clinic_core.common.api.pagination import paginate
from clinic_core.common.api.params import operator_id, path_uuid


class ShiftViewSet(viewsets.GenericViewSet):
    """
    Shift cash register:
    - list shifts
    - current: GET (the operator's open shift) / POST (open one with a float)
    - close
    - movements
    """
    serializer_class = ShiftSerializer
    queryset = Shift.objects.none()

    @extend_schema(
        tags=["Cash"],
        responses={200: ShiftSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="mine", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False,
                             description="Only the requesting operator's shifts."),
        ],
    )
    def list(self, request):
        mine = (request.query_params.get("mine") or "").lower() in ("1", "true", "yes")
        qs = list_shifts(
            operator_id=operator_id(request) if mine else None,
            status=request.query_params.get("status") or None,
        )
        return paginate(request, qs, ShiftSerializer)

    @extend_schema(tags=["Cash"], responses={200: ShiftSerializer})
    def retrieve(self, request, pk=None):
        return Response(ShiftSerializer(get_shift(shift_id=path_uuid(pk))).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Cash"],
        methods=["GET"],
        responses={200: ShiftSerializer},
        description="The requesting operator's open shift; 404 if none is open.",
    )
    @extend_schema(tags=["Cash"], methods=["POST"], request=ShiftOpenSerializer, responses={201: ShiftSerializer})
    @action(detail=False, methods=["get", "post"], url_path="current")
    def current(self, request):
        if request.method == "GET":
            shift = get_open_shift(operator_id=operator_id(request))
            if shift is None:
                return Response({"detail": "No open shift."}, status=status.HTTP_404_NOT_FOUND)
            return Response(ShiftSerializer(shift).data, status=status.HTTP_200_OK)

        ser = ShiftOpenSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        shift = ShiftService.open_shift(
            operator_id=operator_id(request),
            opening_cash=ser.validated_data["opening_cash"],
            notes=ser.validated_data.get("notes", ""),
        )
        return Response(ShiftSerializer(shift).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Cash"], request=ShiftCloseSerializer, responses={200: ShiftSerializer})
    @action(detail=True, methods=["post"], url_path="close")
    def close(self, request, pk=None):
        ser = ShiftCloseSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        shift = ShiftService.close_shift(
            shift_id=path_uuid(pk),
            closing_cash=ser.validated_data["closing_cash"],
            operator_id=operator_id(request),
        )
        return Response(ShiftSerializer(shift).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Cash"], responses={200: CashMovementSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="movements")
    def movements(self, request, pk=None):
        shift = get_shift(shift_id=path_uuid(pk))
        return paginate(request, list_movements(shift_id=shift.id), CashMovementSerializer)
