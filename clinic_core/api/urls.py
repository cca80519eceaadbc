# clinic_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from clinic_core.accounts.api.views import AccountViewSet
from clinic_core.admissions.api.views import AdmissionViewSet
from clinic_core.audit.api.views import AuditEventViewSet
from clinic_core.billing.api.views import ChargeViewSet, PaymentViewSet
from clinic_core.cash.api.views import ShiftViewSet
from clinic_core.catalog.api.views import ServiceItemViewSet
from clinic_core.departments.api.views import DepartmentViewSet, DoctorViewSet
from clinic_core.inventory.api.views import (
    InventoryStatsView,
    MedicineGroupViewSet,
    SaleViewSet,
    StockBatchViewSet,
    StockItemViewSet,
    SupplierViewSet,
)
from clinic_core.pathology.api.views import PathologyTestViewSet
from clinic_core.patients.api.views import PatientViewSet

router = DefaultRouter()

# Registry
router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"departments", DepartmentViewSet, basename="departments")
router.register(r"doctors", DoctorViewSet, basename="doctors")
router.register(r"catalog/items", ServiceItemViewSet, basename="catalog-items")

# Ledger
router.register(r"cash/shifts", ShiftViewSet, basename="cash-shifts")
router.register(r"accounts", AccountViewSet, basename="accounts")
router.register(r"billing/charges", ChargeViewSet, basename="billing-charges")
router.register(r"billing/payments", PaymentViewSet, basename="billing-payments")

# Billable records
router.register(r"admissions", AdmissionViewSet, basename="admissions")
router.register(r"pathology/tests", PathologyTestViewSet, basename="pathology-tests")
router.register(r"inventory/items", StockItemViewSet, basename="inventory-items")
router.register(r"inventory/batches", StockBatchViewSet, basename="inventory-batches")
router.register(r"inventory/sales", SaleViewSet, basename="inventory-sales")
router.register(r"inventory/groups", MedicineGroupViewSet, basename="inventory-groups")
router.register(r"inventory/suppliers", SupplierViewSet, basename="inventory-suppliers")

router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    path("auth/login/", TokenObtainPairView.as_view(), name="login"),
    path("auth/refresh/", TokenRefreshView.as_view(), name="refresh"),
    path("inventory/stats/", InventoryStatsView.as_view(), name="inventory-stats"),
]

urlpatterns += router.urls
