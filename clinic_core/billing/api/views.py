# clinic_core/billing/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import viewsets

from clinic_core.billing.api.serializers import ChargeSerializer, PaymentSerializer
from clinic_core.billing.filters import ChargeFilter, PaymentFilter
from clinic_core.billing.models import Charge, Payment
from clinic_core.billing.selectors import charges_filtered, payments_filtered
from clinic_core.common.api.pagination import paginate


class ChargeViewSet(viewsets.GenericViewSet):
    """
    Ledger read model: charges (read-only; they change through their clinical record).
    """
    serializer_class = ChargeSerializer
    queryset = Charge.objects.none()
    filterset_class = ChargeFilter
    search_fields = ["service_name", "patient__full_name"]
    ordering_fields = ["created_at", "final_amount"]

    @extend_schema(tags=["Billing"], responses={200: ChargeSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(charges_filtered())
        return paginate(request, qs, ChargeSerializer)


class PaymentViewSet(viewsets.GenericViewSet):
    """
    Ledger read model: payments / receipts.
    """
    serializer_class = PaymentSerializer
    queryset = Payment.objects.none()
    filterset_class = PaymentFilter
    search_fields = ["receipt_number", "patient__full_name"]
    ordering_fields = ["received_at", "amount"]

    @extend_schema(tags=["Billing"], responses={200: PaymentSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(payments_filtered())
        return paginate(request, qs, PaymentSerializer)
