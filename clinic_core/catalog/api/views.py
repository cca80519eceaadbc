# clinic_core/catalog/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets

from clinic_core.catalog.api.serializers import ServiceItemSerializer
from clinic_core.catalog.models import ServiceItem
from clinic_core.catalog.selectors import list_service_items
from clinic_core.common.api.pagination import paginate


class ServiceItemViewSet(viewsets.GenericViewSet):
    """
    Price list lookups for the order screens.
    """
    serializer_class = ServiceItemSerializer
    queryset = ServiceItem.objects.none()

    @extend_schema(
        tags=["Catalog"],
        responses={200: ServiceItemSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="category", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        qs = list_service_items(
            category=request.query_params.get("category") or None,
            q=request.query_params.get("q"),
        )
        return paginate(request, qs, ServiceItemSerializer)
