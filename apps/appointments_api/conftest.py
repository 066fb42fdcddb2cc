import datetime

import pytest
from django.utils import timezone

from apps.clients_api.factories import CustomerFactory
from apps.sites_api.factories import SiteFactory, AppointmentTypeFactory, AvailableHourFactory

TEMPLATE_TIMES = [datetime.time(8, 0), datetime.time(9, 0), datetime.time(10, 0)]


@pytest.fixture
def site(db):
    site = SiteFactory(code='S1', name='Sede Principal', is_primary=True)
    for time in TEMPLATE_TIMES:
        AvailableHourFactory(site=site, time=time, appointment_type=None)
    return site


@pytest.fixture
def appointment_type(db):
    return AppointmentTypeFactory(name='Revisión de medidor', estimated_minutes=45)


@pytest.fixture
def customer(db):
    return CustomerFactory(customer_number='100200')


@pytest.fixture
def booking_date():
    return timezone.localdate() + datetime.timedelta(days=3)


@pytest.fixture
def reserve(site, appointment_type, customer, booking_date):
    """Reserva desde el flujo público con valores por defecto."""
    from apps.appointments_api.booking import reserve_slot

    def _reserve(time='09:00', **overrides):
        kwargs = {
            'customer_id': customer.pk,
            'site_id': site.pk,
            'appointment_type_id': appointment_type.pk,
            'date': booking_date,
            'time': time,
        }
        kwargs.update(overrides)
        return reserve_slot(**kwargs)

    return _reserve
