import datetime
import re
import threading

import pytest
from django.db import connection
from django.utils import timezone

from apps.audit_api.models import AuditLog
from apps.auth_api.factories import UserFactory
from apps.appointments_api.availability import compute_available_slots
from apps.appointments_api.booking import (
    reserve_slot, cancel_reservation, lookup_appointment, customer_appointments,
)
from apps.appointments_api.factories import AppointmentFactory
from apps.appointments_api.models import Appointment, AppointmentStatus
from apps.clients_api.factories import CustomerFactory
from apps.sites_api.factories import AvailableHourFactory, AppointmentTypeFactory
from apps.utils.exceptions import ValidationError, NotFoundError, AuthorizationError, SlotConflict

NINE = datetime.time(9)
REASON = 'El cliente pidió cancelar la visita'


@pytest.mark.django_db
class TestReserveSlot:

    def test_public_reservation(self, reserve, customer, site, booking_date):
        appointment = reserve('09:00', notes='  Portería norte  ')

        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.customer == customer
        assert appointment.site == site
        assert appointment.date == booking_date
        assert appointment.time == NINE
        assert appointment.notes == 'Portería norte'
        assert appointment.created_by is None
        assert re.fullmatch(rf'CITA-{booking_date:%Y%m%d}-[0-9A-F]{{6}}', appointment.ticket_number)

        log = AuditLog.objects.get(action='CREATE', object_id=appointment.pk)
        assert log.source == 'PUBLIC'
        assert log.user is None

    def test_slot_leaves_availability(self, reserve, site, appointment_type, booking_date):
        reserve('09:00')

        slots = compute_available_slots(booking_date, site.pk, appointment_type.pk)

        assert slots == [datetime.time(8), datetime.time(10)]

    def test_operator_needs_create(self, reserve, operator):
        with pytest.raises(AuthorizationError):
            reserve('09:00', actor=operator)

        assert not Appointment.objects.exists()
        assert not AuditLog.objects.filter(action='CREATE').exists()

    def test_console_reservation_records_creator(self, reserve, citas_admin):
        appointment = reserve('10:00', actor=citas_admin)

        assert appointment.created_by == citas_admin
        log = AuditLog.objects.get(action='CREATE', object_id=appointment.pk)
        assert log.source == 'APPOINTMENTS'
        assert log.user == citas_admin

    def test_second_reservation_conflicts(self, reserve, site, booking_date):
        first = reserve('09:00')
        other_customer = CustomerFactory()

        with pytest.raises(SlotConflict):
            reserve('09:00', customer_id=other_customer.pk)

        active = Appointment.objects.occupying(site.pk, booking_date, NINE)
        assert list(active) == [first]
        assert AuditLog.objects.filter(action='CREATE').count() == 1

    def test_slot_conflict_is_retryable(self, reserve):
        reserve('09:00')

        with pytest.raises(SlotConflict) as excinfo:
            reserve('09:00')

        assert excinfo.value.retryable is True
        assert excinfo.value.status_code == 409

    def test_rebook_after_cancellation(self, reserve, customer):
        first = reserve('09:00')
        cancel_reservation(first.pk, REASON, customer_number=customer.customer_number)

        second = reserve('09:00')

        assert second.pk != first.pk
        assert second.status == AppointmentStatus.PENDING

    def test_past_date_rejected(self, reserve):
        yesterday = timezone.localdate() - datetime.timedelta(days=1)

        with pytest.raises(ValidationError):
            reserve('09:00', date=yesterday)

    def test_today_allowed(self, reserve):
        appointment = reserve('08:00', date=timezone.localdate())

        assert appointment.date == timezone.localdate()

    def test_time_outside_templates_rejected(self, reserve):
        with pytest.raises(ValidationError):
            reserve('11:30')

        assert not Appointment.objects.exists()

    def test_template_stored_with_seconds_is_bookable(self, reserve, site):
        site.available_hours.filter(time=NINE).update(time=datetime.time(9, 0, 30))

        appointment = reserve('09:00')

        assert appointment.time == NINE

    def test_template_of_other_type_rejected(self, reserve, site):
        AvailableHourFactory(site=site, time=datetime.time(14), appointment_type=AppointmentTypeFactory())

        with pytest.raises(ValidationError):
            reserve('14:00')

    @pytest.mark.parametrize('time', ['', 'nueve', '25:00'])
    def test_invalid_time(self, reserve, time):
        with pytest.raises(ValidationError):
            reserve(time)

    def test_notes_too_long(self, reserve):
        with pytest.raises(ValidationError):
            reserve('09:00', notes='x' * 501)

    def test_inactive_site(self, reserve, site):
        site.is_active = False
        site.save()

        with pytest.raises(NotFoundError):
            reserve('09:00')

    def test_inactive_customer(self, reserve, customer):
        customer.is_active = False
        customer.save()

        with pytest.raises(NotFoundError):
            reserve('09:00')

    def test_unknown_appointment_type(self, reserve):
        with pytest.raises(NotFoundError):
            reserve('09:00', appointment_type_id=999999)


@pytest.mark.django_db
class TestCancelReservation:

    def test_customer_cancels_own_appointment(self, reserve, customer):
        appointment = reserve('09:00')

        cancelled = cancel_reservation(appointment.pk, REASON, customer_number=customer.customer_number)

        assert cancelled.status == AppointmentStatus.CANCELLED
        assert cancelled.cancellation_reason == REASON
        assert cancelled.cancelled_at is not None
        log = AuditLog.objects.get(action='STATUS_CHANGE', object_id=appointment.pk)
        assert log.source == 'PUBLIC'
        assert log.extra_data['to'] == AppointmentStatus.CANCELLED

    def test_cancel_twice_is_idempotent(self, reserve, customer):
        appointment = reserve('09:00')
        cancel_reservation(appointment.pk, REASON, customer_number=customer.customer_number)

        again = cancel_reservation(appointment.pk, 'Otro motivo diferente', customer_number=customer.customer_number)

        assert again.status == AppointmentStatus.CANCELLED
        assert again.cancellation_reason == REASON
        assert AuditLog.objects.filter(action='STATUS_CHANGE', object_id=appointment.pk).count() == 1

    def test_other_customer_cannot_cancel(self, reserve):
        appointment = reserve('09:00')
        stranger = CustomerFactory()

        with pytest.raises(NotFoundError):
            cancel_reservation(appointment.pk, REASON, customer_number=stranger.customer_number)

        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.PENDING

    def test_anonymous_without_customer_number(self, reserve):
        appointment = reserve('09:00')

        with pytest.raises(AuthorizationError):
            cancel_reservation(appointment.pk, REASON)

    @pytest.mark.parametrize('reason', [None, '', '   corto   ', 'x' * 501])
    def test_reason_length(self, reserve, customer, reason):
        appointment = reserve('09:00')

        with pytest.raises(ValidationError):
            cancel_reservation(appointment.pk, reason, customer_number=customer.customer_number)

        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.PENDING

    def test_operator_cancels(self, reserve, operator):
        appointment = reserve('09:00')

        cancelled = cancel_reservation(appointment.pk, REASON, actor=operator)

        assert cancelled.status == AppointmentStatus.CANCELLED
        log = AuditLog.objects.get(action='STATUS_CHANGE', object_id=appointment.pk)
        assert log.user == operator
        assert log.source == 'APPOINTMENTS'

    def test_actor_without_update(self, reserve, grant):
        reader = UserFactory()
        grant(reader, 'CITAS', read=True)
        appointment = reserve('09:00')

        with pytest.raises(AuthorizationError):
            cancel_reservation(appointment.pk, REASON, actor=reader)

        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.PENDING

    def test_completed_cannot_be_cancelled(self, operator):
        appointment = AppointmentFactory(status=AppointmentStatus.COMPLETED, assigned_technician='Técnico')

        with pytest.raises(ValidationError):
            cancel_reservation(appointment.pk, REASON, actor=operator)

    def test_unknown_appointment(self, operator):
        with pytest.raises(NotFoundError):
            cancel_reservation(999999, REASON, actor=operator)


@pytest.mark.django_db
class TestLookup:

    def test_lookup_by_ticket_and_customer(self, reserve, customer):
        appointment = reserve('09:00')

        found = lookup_appointment(appointment.ticket_number.lower(), customer.customer_number)

        assert found == appointment

    def test_lookup_other_customer(self, reserve):
        appointment = reserve('09:00')

        with pytest.raises(NotFoundError):
            lookup_appointment(appointment.ticket_number, CustomerFactory().customer_number)

    def test_unknown_ticket(self, customer):
        with pytest.raises(NotFoundError):
            lookup_appointment('CITA-20250601-ABCDEF', customer.customer_number)

    def test_customer_appointments(self, reserve, customer):
        first = reserve('08:00')
        second = reserve('10:00')
        AppointmentFactory()

        appointments = list(customer_appointments(f' {customer.customer_number} '))

        assert appointments == [second, first]

    def test_customer_appointments_unknown(self, db):
        with pytest.raises(NotFoundError):
            customer_appointments('000000')


@pytest.mark.django_db(transaction=True, serialized_rollback=True)
def test_simultaneous_reservations_only_one_wins(site, appointment_type, booking_date):
    customers = [CustomerFactory(), CustomerFactory()]
    barrier = threading.Barrier(len(customers))
    outcomes = []

    def book(customer):
        try:
            barrier.wait()
            reserve_slot(customer.pk, site.pk, appointment_type.pk, booking_date, '09:00')
            outcomes.append('ok')
        except SlotConflict:
            outcomes.append('conflict')
        finally:
            connection.close()

    threads = [threading.Thread(target=book, args=(customer,)) for customer in customers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ['conflict', 'ok']
    assert Appointment.objects.occupying(site.pk, booking_date, NINE).count() == 1
