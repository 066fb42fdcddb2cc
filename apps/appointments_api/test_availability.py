import datetime

import pytest

from apps.appointments_api.availability import compute_available_slots, is_slot_available
from apps.appointments_api.booking import cancel_reservation
from apps.appointments_api.factories import AppointmentFactory
from apps.appointments_api.models import AppointmentStatus
from apps.sites_api.factories import SiteFactory, AppointmentTypeFactory, AvailableHourFactory
from apps.sites_api.models import AvailableHour

EIGHT, NINE, TEN = datetime.time(8), datetime.time(9), datetime.time(10)
JUNE_FIRST = datetime.date(2025, 6, 1)


@pytest.mark.django_db
class TestComputeAvailableSlots:

    def test_occupied_slot_is_removed_and_freed_on_cancel(self, site, appointment_type, customer):
        appointment = AppointmentFactory(
            site=site, appointment_type=appointment_type, customer=customer,
            date=JUNE_FIRST, time=NINE,
        )

        assert compute_available_slots(JUNE_FIRST, site.pk, appointment_type.pk) == [EIGHT, TEN]

        cancel_reservation(appointment.pk, 'El cliente reprogramó la visita', customer_number=customer.customer_number)

        assert compute_available_slots(JUNE_FIRST, site.pk, appointment_type.pk) == [EIGHT, NINE, TEN]

    def test_completed_appointment_keeps_slot(self, site, appointment_type):
        AppointmentFactory(site=site, appointment_type=appointment_type, date=JUNE_FIRST, time=EIGHT,
                           status=AppointmentStatus.COMPLETED, assigned_technician='Técnico 1')

        assert compute_available_slots(JUNE_FIRST, site.pk, appointment_type.pk) == [NINE, TEN]

    def test_other_dates_and_sites_do_not_interfere(self, site, appointment_type):
        other_site = SiteFactory()
        AvailableHourFactory(site=other_site, time=NINE)
        AppointmentFactory(site=other_site, appointment_type=appointment_type, date=JUNE_FIRST, time=NINE)
        AppointmentFactory(site=site, appointment_type=appointment_type,
                           date=JUNE_FIRST + datetime.timedelta(days=1), time=NINE)

        assert compute_available_slots(JUNE_FIRST, site.pk, appointment_type.pk) == [EIGHT, NINE, TEN]

    def test_duplicate_templates_collapse(self, site, appointment_type):
        AvailableHourFactory(site=site, time=NINE, appointment_type=appointment_type)
        AvailableHourFactory(site=site, time=NINE, appointment_type=None)

        slots = compute_available_slots(JUNE_FIRST, site.pk, appointment_type.pk)

        assert slots == [EIGHT, NINE, TEN]
        assert len(slots) == len(set(slots))

    def test_type_specific_templates(self, site, appointment_type):
        other_type = AppointmentTypeFactory()
        AvailableHourFactory(site=site, time=datetime.time(11), appointment_type=other_type)
        AvailableHourFactory(site=site, time=datetime.time(7), appointment_type=appointment_type)

        assert compute_available_slots(JUNE_FIRST, site.pk, appointment_type.pk) == [
            datetime.time(7), EIGHT, NINE, TEN
        ]

    def test_without_type_lists_every_site_template(self, site):
        AvailableHourFactory(site=site, time=datetime.time(11), appointment_type=AppointmentTypeFactory())

        assert compute_available_slots(JUNE_FIRST, site.pk) == [EIGHT, NINE, TEN, datetime.time(11)]

    def test_inactive_templates_are_ignored(self, site, appointment_type):
        site.available_hours.filter(time=TEN).update(is_active=False)

        assert compute_available_slots(JUNE_FIRST, site.pk, appointment_type.pk) == [EIGHT, NINE]

    def test_string_arguments(self, site, appointment_type):
        assert compute_available_slots('2025-06-01', str(site.pk), str(appointment_type.pk)) == [EIGHT, NINE, TEN]

    @pytest.mark.parametrize('date', [None, '', 'mañana', '2025-02-30', '01/06/2025'])
    def test_invalid_date_is_empty(self, site, date):
        assert compute_available_slots(date, site.pk) == []

    def test_unknown_site_is_empty(self, db):
        assert compute_available_slots(JUNE_FIRST, 999999) == []
        assert compute_available_slots(JUNE_FIRST, 'abc') == []

    def test_inactive_site_is_empty(self, site):
        site.is_active = False
        site.save()

        assert compute_available_slots(JUNE_FIRST, site.pk) == []

    def test_result_is_sorted(self, site):
        AvailableHourFactory(site=site, time=datetime.time(7, 30))

        slots = compute_available_slots(JUNE_FIRST, site.pk)

        assert slots == sorted(slots)


@pytest.mark.django_db
def test_is_slot_available(site, appointment_type):
    AppointmentFactory(site=site, appointment_type=appointment_type, date=JUNE_FIRST, time=NINE)

    assert is_slot_available(JUNE_FIRST, site.pk, '08:00', appointment_type.pk) is True
    assert is_slot_available(JUNE_FIRST, site.pk, '09:00', appointment_type.pk) is False
    assert is_slot_available(JUNE_FIRST, site.pk, '12:00', appointment_type.pk) is False
    assert is_slot_available(JUNE_FIRST, site.pk, 'nueve', appointment_type.pk) is False


@pytest.mark.django_db
class TestMinutePrecision:

    def test_template_seconds_are_dropped_on_save(self, site):
        hour = AvailableHourFactory(site=site, time=datetime.time(11, 0, 30))

        hour.refresh_from_db()
        assert hour.time == datetime.time(11)

    def test_stored_seconds_collapse_with_same_minute(self, site, appointment_type):
        extra = AvailableHourFactory(site=site, time=datetime.time(7))
        # filas escritas sin pasar por save()
        AvailableHour.objects.filter(pk=extra.pk).update(time=datetime.time(9, 0, 30))

        slots = compute_available_slots(JUNE_FIRST, site.pk, appointment_type.pk)

        assert slots == [EIGHT, NINE, TEN]

    def test_appointment_blocks_template_with_seconds(self, site, appointment_type):
        site.available_hours.filter(time=NINE).update(time=datetime.time(9, 0, 45))
        AppointmentFactory(site=site, appointment_type=appointment_type, date=JUNE_FIRST, time=NINE)

        assert compute_available_slots(JUNE_FIRST, site.pk, appointment_type.pk) == [EIGHT, TEN]
