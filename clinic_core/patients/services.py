# clinic_core/patients/services.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound, ValidationError

from clinic_core.audit.services import AuditContext, AuditService
from clinic_core.patients.models import Hospital, Patient


@dataclass(frozen=True)
class PatientData:
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    gender: str = ""
    date_of_birth: date | None = None
    phone_number: str = ""
    email: str = ""
    address: str = ""
    blood_group: str = ""
    guardian_name: str = ""
    guardian_phone: str = ""
    id: UUID | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "PatientData":
        data = dict(data or {})
        allowed = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in data.items() if k in allowed and v is not None})

    def resolved_full_name(self) -> str:
        if self.full_name.strip():
            return self.full_name.strip()
        return " ".join(p for p in (self.first_name.strip(), self.last_name.strip()) if p)


@dataclass(frozen=True)
class HospitalData:
    name: str = ""
    address: str = ""
    phone_number: str = ""
    email: str = ""
    website: str = ""
    type: str = ""
    id: UUID | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "HospitalData":
        data = dict(data or {})
        allowed = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in data.items() if k in allowed and v is not None})


@dataclass(frozen=True)
class PatientUpsertResult:
    patient: Patient
    is_new: bool
    hospital: Hospital | None = None
    hospital_is_new: bool = False
    warnings: list[str] = field(default_factory=list)


class PatientService:
    @staticmethod
    def validate(patient_data: PatientData, hospital_data: HospitalData | None = None) -> None:
        """
        Front-loaded checks; callers run this before the first write of a ledger transaction.
        """
        errors: dict[str, str] = {}
        if not patient_data.first_name.strip() and not patient_data.full_name.strip():
            errors["first_name"] = "Patient first name is required."
        if patient_data.date_of_birth and patient_data.date_of_birth > date.today():
            errors["date_of_birth"] = "Date of birth cannot be in the future."
        if errors:
            raise ValidationError(errors)

        if patient_data.id and not Patient.objects.filter(id=patient_data.id).exists():
            raise NotFound("Patient not found.")
        if hospital_data and hospital_data.id and not Hospital.objects.filter(id=hospital_data.id).exists():
            raise NotFound("Hospital not found.")

    @staticmethod
    def _resolve_hospital(hospital_data: HospitalData | None, actor_user_id: int | None) -> tuple[Hospital | None, bool]:
        if hospital_data is None:
            return None, False
        if hospital_data.id:
            return Hospital.objects.get(id=hospital_data.id), False

        name = hospital_data.name.strip()
        if not name:
            return None, False

        existing = Hospital.objects.filter(name__iexact=name).first()
        if existing:
            return existing, False

        try:
            with transaction.atomic():
                hospital = Hospital.objects.create(
                    name=name,
                    address=hospital_data.address or "",
                    phone_number=hospital_data.phone_number or "",
                    email=hospital_data.email or "",
                    website=hospital_data.website or "",
                    type=hospital_data.type or "",
                )
        except IntegrityError:
            # same name registered concurrently
            return Hospital.objects.get(name__iexact=name), False
        return hospital, True

    @staticmethod
    @transaction.atomic
    def upsert(
        *,
        patient_data: PatientData,
        hospital_data: HospitalData | None = None,
        actor_user_id: int | None = None,
    ) -> PatientUpsertResult:
        """
        Creates the patient, or refreshes demographics of an existing one.
        """
        PatientService.validate(patient_data, hospital_data)
        hospital, hospital_is_new = PatientService._resolve_hospital(hospital_data, actor_user_id)

        values = {
            "first_name": patient_data.first_name.strip() or patient_data.resolved_full_name(),
            "last_name": patient_data.last_name.strip(),
            "full_name": patient_data.resolved_full_name(),
            "gender": patient_data.gender or "",
            "date_of_birth": patient_data.date_of_birth,
            "phone_number": patient_data.phone_number or "",
            "email": patient_data.email or "",
            "address": patient_data.address or "",
            "blood_group": patient_data.blood_group or "",
            "guardian_name": patient_data.guardian_name or "",
            "guardian_phone": patient_data.guardian_phone or "",
        }
        if hospital is not None:
            values["hospital"] = hospital

        if patient_data.id:
            patient = Patient.objects.select_for_update().get(id=patient_data.id)
            for k, v in values.items():
                setattr(patient, k, v)
            patient.save()
            is_new = False
        else:
            patient = Patient.objects.create(created_by_id=actor_user_id, **values)
            is_new = True

        return PatientUpsertResult(
            patient=patient,
            is_new=is_new,
            hospital=hospital,
            hospital_is_new=hospital_is_new,
        )

    @staticmethod
    @transaction.atomic
    def update_patient(
        *,
        actor_user_id: int | None,
        patient_id: UUID,
        data: dict,
        context: AuditContext | None = None,
    ) -> Patient:
        try:
            patient = Patient.objects.select_for_update().get(id=patient_id)
        except Patient.DoesNotExist:
            raise NotFound("Patient not found.")

        allowed = {
            "first_name",
            "last_name",
            "gender",
            "date_of_birth",
            "phone_number",
            "email",
            "address",
            "blood_group",
            "guardian_name",
            "guardian_phone",
        }
        updates = {k: v for k, v in (data or {}).items() if k in allowed}

        for k, v in updates.items():
            setattr(patient, k, v if v is not None else ("" if k != "date_of_birth" else None))

        if "first_name" in updates or "last_name" in updates:
            patient.full_name = " ".join(p for p in (patient.first_name, patient.last_name) if p)

        patient.save()

        AuditService.updated(
            event_code="patient.updated",
            entity_type="Patient",
            entity_id=patient.id,
            actor_user_id=actor_user_id,
            description=f"Updated patient {patient.full_name}",
            metadata={"updated_fields": sorted(updates.keys())},
            context=context,
        )
        return patient
