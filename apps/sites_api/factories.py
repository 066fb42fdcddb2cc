import datetime

import factory

from .models import Site, AppointmentType, AvailableHour


class SiteFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Site

    code = factory.Sequence(lambda n: f'S{n:03d}')
    name = factory.Sequence(lambda n: f'Sede {n}')
    address = factory.Faker('street_address', locale='es_ES')
    city = 'Bogotá'
    department = 'Cundinamarca'


class AppointmentTypeFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AppointmentType

    name = factory.Sequence(lambda n: f'Tipo de cita {n}')
    description = factory.Faker('sentence', locale='es_ES')
    estimated_minutes = 30


class AvailableHourFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AvailableHour

    site = factory.SubFactory(SiteFactory)
    time = datetime.time(8, 0)
    appointment_type = None
