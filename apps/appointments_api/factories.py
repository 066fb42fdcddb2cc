import datetime

import factory
from django.utils import timezone

from apps.clients_api.factories import CustomerFactory
from apps.sites_api.factories import SiteFactory, AppointmentTypeFactory
from .models import Appointment, AppointmentStatus, generate_ticket_number


class AppointmentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Appointment

    customer = factory.SubFactory(CustomerFactory)
    site = factory.SubFactory(SiteFactory)
    appointment_type = factory.SubFactory(AppointmentTypeFactory)
    date = factory.LazyFunction(lambda: timezone.localdate() + datetime.timedelta(days=1))
    time = datetime.time(9, 0)
    status = AppointmentStatus.PENDING
    ticket_number = factory.LazyAttribute(lambda o: generate_ticket_number(o.date))
