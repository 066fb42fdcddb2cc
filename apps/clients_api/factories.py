import factory

from .models import Customer


class CustomerFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Customer

    customer_number = factory.Sequence(lambda n: f'{100000 + n}')
    document_type = 'CC'
    document_number = factory.Faker('numerify', text='##########')
    full_name = factory.Faker('name', locale='es_ES')
    email = factory.Faker('email')
    phone = factory.Faker('numerify', text='601#######')
    address = factory.Faker('street_address', locale='es_ES')
