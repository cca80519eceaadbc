# clinic_core/inventory/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from clinic_core.audit.services import AuditContext
from clinic_core.common.api.pagination import paginate
from clinic_core.common.api.params import operator_id, path_uuid
from clinic_core.inventory.api.serializers import (
    InventoryStatsSerializer,
    MedicineGroupCreateSerializer,
    MedicineGroupSerializer,
    SaleCreateSerializer,
    SaleResultSerializer,
    SaleSerializer,
    StockBatchSerializer,
    StockItemCreateSerializer,
    StockItemSerializer,
    StockReceiveSerializer,
    SupplierCreateSerializer,
    SupplierSerializer,
)
from clinic_core.inventory.filters import SaleFilter, StockBatchFilter, StockItemFilter, SupplierFilter
from clinic_core.inventory.models import MedicineGroup, Sale, StockBatch, StockItem, Supplier
from clinic_core.inventory.selectors import (
    batches_filtered,
    get_item,
    get_sale,
    groups_filtered,
    inventory_stats,
    items_filtered,
    sales_filtered,
    suppliers_filtered,
)
from clinic_core.inventory.services import ReferenceDataService, SaleService, StockItemService, StockLedger


class MedicineGroupViewSet(viewsets.GenericViewSet):
    serializer_class = MedicineGroupSerializer
    queryset = MedicineGroup.objects.none()
    search_fields = ["name"]
    ordering_fields = ["name", "created_at"]

    @extend_schema(tags=["Inventory"], responses={200: MedicineGroupSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(groups_filtered())
        return paginate(request, qs, MedicineGroupSerializer)

    @extend_schema(tags=["Inventory"], request=MedicineGroupCreateSerializer, responses={201: MedicineGroupSerializer})
    def create(self, request):
        ser = MedicineGroupCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        group = ReferenceDataService.create_group(
            name=ser.validated_data["name"],
            actor_user_id=operator_id(request),
            context=AuditContext.from_request(request),
        )
        return Response(MedicineGroupSerializer(group).data, status=status.HTTP_201_CREATED)


class SupplierViewSet(viewsets.GenericViewSet):
    serializer_class = SupplierSerializer
    queryset = Supplier.objects.none()
    filterset_class = SupplierFilter
    search_fields = ["name", "contact_person", "phone_number"]
    ordering_fields = ["name", "created_at"]

    @extend_schema(tags=["Inventory"], responses={200: SupplierSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(suppliers_filtered())
        return paginate(request, qs, SupplierSerializer)

    @extend_schema(tags=["Inventory"], request=SupplierCreateSerializer, responses={201: SupplierSerializer})
    def create(self, request):
        ser = SupplierCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        supplier = ReferenceDataService.create_supplier(
            actor_user_id=operator_id(request),
            context=AuditContext.from_request(request),
            **ser.validated_data,
        )
        return Response(SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED)


class StockItemViewSet(viewsets.GenericViewSet):
    serializer_class = StockItemSerializer
    queryset = StockItem.objects.none()
    filterset_class = StockItemFilter
    search_fields = ["generic_name", "brand_name", "group__name"]
    ordering_fields = ["generic_name", "current_stock", "created_at"]

    @extend_schema(tags=["Inventory"], responses={200: StockItemSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(items_filtered())
        return paginate(request, qs, StockItemSerializer)

    @extend_schema(tags=["Inventory"], responses={200: StockItemSerializer})
    def retrieve(self, request, pk=None):
        return Response(StockItemSerializer(get_item(item_id=path_uuid(pk))).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Inventory"], request=StockItemCreateSerializer, responses={201: StockItemSerializer})
    def create(self, request):
        ser = StockItemCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        item = StockItemService.create(
            actor_user_id=operator_id(request),
            context=AuditContext.from_request(request),
            **ser.validated_data,
        )
        return Response(StockItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Inventory"], request=StockReceiveSerializer, responses={201: StockBatchSerializer})
    @action(detail=True, methods=["post"], url_path="receive")
    def receive(self, request, pk=None):
        ser = StockReceiveSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        batch = StockLedger.receive(
            item_id=path_uuid(pk),
            operator_id=operator_id(request),
            context=AuditContext.from_request(request),
            **ser.validated_data,
        )
        return Response(StockBatchSerializer(batch).data, status=status.HTTP_201_CREATED)


class StockBatchViewSet(viewsets.GenericViewSet):
    serializer_class = StockBatchSerializer
    queryset = StockBatch.objects.none()
    filterset_class = StockBatchFilter
    search_fields = ["invoice_number", "batch_number", "supplier__name"]
    ordering_fields = ["received_date", "expiry_date", "remaining_qty"]

    @extend_schema(tags=["Inventory"], responses={200: StockBatchSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(batches_filtered())
        return paginate(request, qs, StockBatchSerializer)


class SaleViewSet(viewsets.GenericViewSet):
    serializer_class = SaleSerializer
    queryset = Sale.objects.none()
    filterset_class = SaleFilter
    search_fields = ["sale_number", "patient__full_name", "item__generic_name", "item__brand_name"]
    ordering_fields = ["sale_date", "total_amount", "due_amount"]

    @extend_schema(tags=["Inventory"], responses={200: SaleSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(sales_filtered())
        return paginate(request, qs, SaleSerializer)

    @extend_schema(tags=["Inventory"], responses={200: SaleSerializer})
    def retrieve(self, request, pk=None):
        return Response(SaleSerializer(get_sale(sale_id=path_uuid(pk))).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Inventory"], request=SaleCreateSerializer, responses={201: SaleResultSerializer})
    def create(self, request):
        ser = SaleCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        result = SaleService.sell(
            operator_id=operator_id(request),
            patient=data.pop("patient"),
            hospital=data.pop("hospital", None),
            shift_id=data.pop("shift", None),
            context=AuditContext.from_request(request),
            **data,
        )
        return Response(SaleResultSerializer(result).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Inventory"], responses={204: None})
    def destroy(self, request, pk=None):
        SaleService.delete(
            operator_id=operator_id(request),
            sale_id=path_uuid(pk),
            context=AuditContext.from_request(request),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class InventoryStatsView(APIView):
    @extend_schema(
        tags=["Inventory"],
        responses={200: InventoryStatsSerializer},
        parameters=[
            OpenApiParameter(name="date_from", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date_to", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def get(self, request):
        field = serializers.DateField(required=False, allow_null=True)
        date_from = _date_param(field, request.query_params.get("date_from"), "date_from")
        date_to = _date_param(field, request.query_params.get("date_to"), "date_to")

        stats = inventory_stats(date_from=date_from, date_to=date_to)
        return Response(InventoryStatsSerializer(stats).data, status=status.HTTP_200_OK)


def _date_param(field: serializers.DateField, raw: str | None, name: str):
    if not raw:
        return None
    try:
        return field.to_internal_value(raw)
    except serializers.ValidationError as exc:
        raise serializers.ValidationError({name: exc.detail})
