import factory

from .models import Form, Permission, Role, RoleFormPermission


class RoleFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Role
        django_get_or_create = ('code',)

    code = factory.Sequence(lambda n: f'ROL{n}')
    name = factory.LazyAttribute(lambda o: o.code.title())


class PermissionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Permission
        django_get_or_create = ('can_read', 'can_create', 'can_update', 'can_delete')

    can_read = True
    can_create = False
    can_update = False
    can_delete = False
    description = factory.LazyAttribute(lambda o: Permission(
        can_read=o.can_read, can_create=o.can_create,
        can_update=o.can_update, can_delete=o.can_delete,
    ).build_description())


class RoleFormPermissionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = RoleFormPermission
        django_get_or_create = ('role', 'form')

    role = factory.SubFactory(RoleFactory)
    form = factory.LazyFunction(lambda: Form.objects.get(code='CITAS'))
    permission = factory.SubFactory(PermissionFactory)
