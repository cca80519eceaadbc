# clinic_core/accounts/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from clinic_core.accounts.api.serializers import AccountSerializer, ReconciliationSerializer
from clinic_core.accounts.models import Account
from clinic_core.accounts.selectors import get_account
from clinic_core.accounts.services import AccountLedger
from clinic_core.common.api.params import path_uuid


class AccountViewSet(viewsets.GenericViewSet):
    """
    Patient account lookups. The URL id is the patient id.
    """
    serializer_class = AccountSerializer
    queryset = Account.objects.none()

    @extend_schema(tags=["Accounts"], responses={200: AccountSerializer})
    def retrieve(self, request, pk=None):
        account = get_account(patient_id=path_uuid(pk))
        return Response(AccountSerializer(account).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Accounts"],
        methods=["GET"],
        responses={200: ReconciliationSerializer},
        description="Compares stored totals with the ledger. Read-only.",
    )
    @extend_schema(
        tags=["Accounts"],
        methods=["POST"],
        request=None,
        responses={200: ReconciliationSerializer},
        description="Rewrites stored totals from the ledger (staff only).",
    )
    @action(detail=True, methods=["get", "post"], url_path="reconcile")
    def reconcile(self, request, pk=None):
        patient_id = path_uuid(pk)
        get_account(patient_id=patient_id)

        fix = request.method == "POST"
        if fix and not IsAdminUser().has_permission(request, self):
            raise PermissionDenied("Only staff can rewrite account totals.")

        report = AccountLedger.reconcile(patient_id=patient_id, fix=fix)
        return Response(ReconciliationSerializer(report.as_dict()).data, status=status.HTTP_200_OK)
