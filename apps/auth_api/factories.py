import factory
from django.contrib.auth import get_user_model

from apps.roles_api.models import UserRole


User = get_user_model()

class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f'empleado{n}')
    email = factory.LazyAttribute(lambda o: f'{o.username}@portal.test')
    full_name = factory.Faker('name', locale='es_ES')
    allowed_tabs = factory.LazyFunction(list)

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        raw_password = extracted or 'testpassword'
        self.set_password(raw_password)
        if create:
            self.save()

    @factory.post_generation
    def roles(self, create, extracted, **kwargs):
        if not create or not extracted:
            return
        for role in extracted:
            UserRole.objects.get_or_create(user=self, role=role)


