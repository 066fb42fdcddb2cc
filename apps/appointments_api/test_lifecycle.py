import datetime

import pytest
from django.db import DatabaseError

from apps.audit_api.models import AuditLog
from apps.auth_api.factories import UserFactory
from apps.appointments_api.factories import AppointmentFactory
from apps.appointments_api.lifecycle import AppointmentLifecycle, NOT_ATTENDED_REASON
from apps.appointments_api.models import Appointment, AppointmentStatus
from apps.sites_api.factories import SiteFactory, AvailableHourFactory
from apps.utils.exceptions import (
    ValidationError, NotFoundError, AuthorizationError, SlotConflict, StorageError,
)

REASON = 'El cliente reprogramó la visita'


@pytest.fixture
def appointment(site, appointment_type, customer, booking_date):
    return AppointmentFactory(
        site=site, appointment_type=appointment_type, customer=customer,
        date=booking_date, time=datetime.time(9),
    )


def status_changes(appointment):
    return AuditLog.objects.filter(action='STATUS_CHANGE', object_id=appointment.pk)


@pytest.mark.django_db
class TestComplete:

    def test_complete(self, appointment, operator):
        result = AppointmentLifecycle.complete(
            appointment.pk, '  Carlos Pérez ', technician_notes='Medidor cambiado', actor=operator
        )

        assert result.status == AppointmentStatus.COMPLETED
        assert result.assigned_technician == 'Carlos Pérez'
        assert result.technician_notes == 'Medidor cambiado'
        assert result.completed_at is not None
        assert result.cancellation_reason is None
        log = status_changes(appointment).get()
        assert log.user == operator
        assert log.extra_data['from'] == AppointmentStatus.PENDING
        assert log.extra_data['to'] == AppointmentStatus.COMPLETED

    @pytest.mark.parametrize('technician', [None, '', '   '])
    def test_technician_required(self, appointment, operator, technician):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.complete(appointment.pk, technician, actor=operator)

        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.PENDING
        assert not status_changes(appointment).exists()

    def test_technician_too_long(self, appointment, operator):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.complete(appointment.pk, 'x' * 101, actor=operator)

    def test_technician_notes_too_long(self, appointment, operator):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.complete(appointment.pk, 'Técnico', technician_notes='x' * 1001, actor=operator)

    def test_complete_twice_is_noop(self, appointment, operator):
        AppointmentLifecycle.complete(appointment.pk, 'Técnico uno', actor=operator)

        again = AppointmentLifecycle.complete(appointment.pk, 'Técnico dos', actor=operator)

        assert again.status == AppointmentStatus.COMPLETED
        assert again.assigned_technician == 'Técnico uno'
        assert status_changes(appointment).count() == 1

    def test_cancelled_cannot_complete(self, appointment, operator):
        AppointmentLifecycle.cancel(appointment.pk, REASON, actor=operator)

        with pytest.raises(ValidationError):
            AppointmentLifecycle.complete(appointment.pk, 'Técnico', actor=operator)

        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.CANCELLED
        assert appointment.assigned_technician is None

    def test_completed_slot_stays_occupied(self, appointment, operator, site, booking_date):
        AppointmentLifecycle.complete(appointment.pk, 'Técnico', actor=operator)

        assert Appointment.objects.occupying(site.pk, booking_date, datetime.time(9)).exists()

    def test_requires_update(self, appointment, grant):
        reader = UserFactory()
        grant(reader, 'CITAS', read=True, create=True)

        with pytest.raises(AuthorizationError):
            AppointmentLifecycle.complete(appointment.pk, 'Técnico', actor=reader)

        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.PENDING
        assert not AuditLog.objects.exists()

    def test_anonymous_actor(self, appointment):
        with pytest.raises(AuthorizationError):
            AppointmentLifecycle.complete(appointment.pk, 'Técnico')

    def test_denied_before_lookup(self, db, grant):
        reader = UserFactory()
        grant(reader, 'CITAS', read=True)

        with pytest.raises(AuthorizationError):
            AppointmentLifecycle.complete(999999, 'Técnico', actor=reader)

    def test_unknown_appointment(self, operator):
        with pytest.raises(NotFoundError):
            AppointmentLifecycle.complete(999999, 'Técnico', actor=operator)

    def test_storage_failure(self, appointment, operator, monkeypatch):
        def broken(*args, **kwargs):
            raise DatabaseError('conexión perdida')

        monkeypatch.setattr(Appointment.objects, 'select_related', broken)

        with pytest.raises(StorageError) as excinfo:
            AppointmentLifecycle.complete(appointment.pk, 'Técnico', actor=operator)
        monkeypatch.undo()

        assert excinfo.value.retryable is True
        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.PENDING


@pytest.mark.django_db
class TestCancel:

    def test_cancel(self, appointment, operator):
        result = AppointmentLifecycle.cancel(appointment.pk, f'  {REASON}  ', actor=operator)

        assert result.status == AppointmentStatus.CANCELLED
        assert result.cancellation_reason == REASON
        assert result.cancelled_at is not None

    def test_completed_cannot_cancel(self, appointment, operator):
        AppointmentLifecycle.complete(appointment.pk, 'Técnico', actor=operator)

        with pytest.raises(ValidationError):
            AppointmentLifecycle.cancel(appointment.pk, REASON, actor=operator)

        assert status_changes(appointment).count() == 1

    def test_short_reason(self, appointment, operator):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.cancel(appointment.pk, 'corto', actor=operator)

    def test_not_attended_default_reason(self, appointment, operator):
        result = AppointmentLifecycle.mark_not_attended(appointment.pk, actor=operator)

        assert result.status == AppointmentStatus.CANCELLED
        assert result.cancellation_reason == NOT_ATTENDED_REASON

    def test_not_attended_custom_reason(self, appointment, operator):
        result = AppointmentLifecycle.mark_not_attended(
            appointment.pk, reason='No había nadie en el predio', actor=operator
        )

        assert result.cancellation_reason == 'No había nadie en el predio'


@pytest.mark.django_db
class TestUpdateFields:

    def test_move_to_free_template(self, appointment, operator):
        result = AppointmentLifecycle.update_fields(appointment.pk, actor=operator, time='10:00', notes='Llamar antes')

        assert result.time == datetime.time(10)
        assert result.notes == 'Llamar antes'
        log = AuditLog.objects.get(action='UPDATE', object_id=appointment.pk)
        assert log.extra_data['before']['time'] == '09:00:00'
        assert log.extra_data['after']['time'] == '10:00:00'

    def test_move_to_occupied_slot(self, appointment, operator, site, appointment_type, booking_date):
        AppointmentFactory(site=site, appointment_type=appointment_type, date=booking_date, time=datetime.time(10))

        with pytest.raises(SlotConflict):
            AppointmentLifecycle.update_fields(appointment.pk, actor=operator, time='10:00')

        appointment.refresh_from_db()
        assert appointment.time == datetime.time(9)
        assert not AuditLog.objects.filter(action='UPDATE').exists()

    def test_move_outside_templates(self, appointment, operator):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.update_fields(appointment.pk, actor=operator, time='13:00')

    def test_move_to_other_site(self, appointment, operator):
        other = SiteFactory()
        AvailableHourFactory(site=other, time=datetime.time(9))

        result = AppointmentLifecycle.update_fields(appointment.pk, actor=operator, site_id=other.pk)

        assert result.site == other

    def test_past_date_rejected(self, appointment, operator):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.update_fields(appointment.pk, actor=operator, date='2020-01-01')

    def test_only_pending(self, appointment, operator):
        AppointmentLifecycle.cancel(appointment.pk, REASON, actor=operator)

        with pytest.raises(ValidationError):
            AppointmentLifecycle.update_fields(appointment.pk, actor=operator, notes='Cambio tardío')

    def test_status_not_editable(self, appointment, operator):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.update_fields(appointment.pk, actor=operator, status=AppointmentStatus.COMPLETED)

        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.PENDING

    def test_no_changes(self, appointment, operator):
        result = AppointmentLifecycle.update_fields(appointment.pk, actor=operator)

        assert result == appointment
        assert not AuditLog.objects.filter(action='UPDATE').exists()


@pytest.mark.django_db
class TestOverride:

    def test_requires_delete(self, appointment, operator):
        with pytest.raises(AuthorizationError):
            AppointmentLifecycle.override(appointment.pk, 'Error de digitación en la nota', actor=operator, notes='x')

    def test_fix_completed_appointment(self, appointment, operator, citas_admin):
        AppointmentLifecycle.complete(appointment.pk, 'Técnico equivocado', actor=operator)

        result = AppointmentLifecycle.override(
            appointment.pk, 'El técnico registrado no era el correcto',
            actor=citas_admin, assigned_technician='Técnico correcto',
        )

        assert result.status == AppointmentStatus.COMPLETED
        assert result.assigned_technician == 'Técnico correcto'
        log = AuditLog.objects.get(action='ADMIN_OVERRIDE', object_id=appointment.pk)
        assert log.user == citas_admin
        assert log.extra_data['justification'] == 'El técnico registrado no era el correcto'
        assert log.extra_data['before']['assigned_technician'] == 'Técnico equivocado'

    def test_fix_cancellation_reason(self, appointment, citas_admin):
        AppointmentLifecycle.cancel(appointment.pk, REASON, actor=citas_admin)

        result = AppointmentLifecycle.override(
            appointment.pk, 'Motivo mal digitado por el operador',
            actor=citas_admin, cancellation_reason='El cliente viajó fuera de la ciudad',
        )

        assert result.cancellation_reason == 'El cliente viajó fuera de la ciudad'

    def test_reason_only_on_cancelled(self, appointment, citas_admin):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.override(
                appointment.pk, 'Motivo mal digitado por el operador',
                actor=citas_admin, cancellation_reason='El cliente viajó fuera de la ciudad',
            )

    def test_cannot_change_status(self, appointment, citas_admin):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.override(
                appointment.pk, 'Reabrir la cita completada',
                actor=citas_admin, status=AppointmentStatus.PENDING,
            )

    def test_short_justification(self, appointment, citas_admin):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.override(appointment.pk, 'porque sí', actor=citas_admin, notes='Nueva nota')

    def test_no_changes(self, appointment, citas_admin):
        with pytest.raises(ValidationError):
            AppointmentLifecycle.override(appointment.pk, 'Corrección sin cambios', actor=citas_admin)

    def test_override_still_respects_slot(self, appointment, citas_admin, site, appointment_type, booking_date):
        AppointmentFactory(site=site, appointment_type=appointment_type, date=booking_date, time=datetime.time(8))

        with pytest.raises(SlotConflict):
            AppointmentLifecycle.override(
                appointment.pk, 'Mover la cita por solicitud del cliente', actor=citas_admin, time='08:00'
            )


@pytest.mark.django_db
class TestPurge:

    def test_purge(self, appointment, citas_admin):
        pk, ticket = appointment.pk, appointment.ticket_number

        AppointmentLifecycle.purge(pk, actor=citas_admin)

        assert not Appointment.objects.filter(pk=pk).exists()
        log = AuditLog.objects.get(action='DELETE', object_id=pk)
        assert log.extra_data['ticket_number'] == ticket

    def test_requires_delete(self, appointment, operator):
        with pytest.raises(AuthorizationError):
            AppointmentLifecycle.purge(appointment.pk, actor=operator)

        assert Appointment.objects.filter(pk=appointment.pk).exists()

    def test_unknown(self, citas_admin):
        with pytest.raises(NotFoundError):
            AppointmentLifecycle.purge(999999, actor=citas_admin)
