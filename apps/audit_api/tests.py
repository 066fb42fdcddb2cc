import datetime

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from apps.auth_api.factories import UserFactory
from .models import AuditLog
from .utils import create_audit_log, get_client_ip


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.mark.django_db
class TestCreateAuditLog:

    def test_anonymous_user_is_stored_as_null(self):
        from django.contrib.auth.models import AnonymousUser

        log = create_audit_log(AnonymousUser(), 'CREATE', 'Reserva pública', source='PUBLIC')

        assert log.user is None
        assert log.source == 'PUBLIC'
        assert log.extra_data == {}

    def test_content_object(self):
        user = UserFactory()

        log = create_audit_log(user, 'UPDATE', 'Edición', content_object=user, extra_data={'campo': 'email'})

        assert log.object_id == user.pk
        assert log.content_object == user
        assert log.extra_data == {'campo': 'email'}


def test_get_client_ip(rf):
    request = rf.get('/', HTTP_X_FORWARDED_FOR='10.0.0.1, 10.0.0.2', REMOTE_ADDR='127.0.0.1')
    assert get_client_ip(request) == '10.0.0.1'

    request = rf.get('/', REMOTE_ADDR='127.0.0.2')
    assert get_client_ip(request) == '127.0.0.2'


@pytest.mark.django_db
class TestAuditLogAPI:

    def test_requires_permissions_read(self, authenticated_user):
        _, client = authenticated_user
        response = client.get(reverse('audit-log-list'))
        assert response.status_code == 403

    def test_list_and_filter(self, permissions_admin):
        create_audit_log(None, 'STATUS_CHANGE', 'Cita completada', source='APPOINTMENTS')
        create_audit_log(None, 'PERMISSION_GRANT', 'Permiso asignado', source='ROLES')

        response = client_for(permissions_admin).get(reverse('audit-log-list'), {'source': 'ROLES'})

        assert response.status_code == 200
        assert response.data['count'] == 1
        assert response.data['results'][0]['action'] == 'PERMISSION_GRANT'

    def test_read_only(self, permissions_admin):
        response = client_for(permissions_admin).post(
            reverse('audit-log-list'), {'action': 'CREATE', 'description': 'x'}, format='json'
        )
        assert response.status_code == 405
        assert not AuditLog.objects.exists()

    def test_action_choices(self, permissions_admin):
        response = client_for(permissions_admin).get(reverse('audit-log-actions'))

        assert response.status_code == 200
        assert {'value': 'ADMIN_OVERRIDE', 'label': 'Corrección administrativa'} in response.data

    def test_date_range(self, permissions_admin):
        old = create_audit_log(None, 'UPDATE', 'Edición antigua')
        AuditLog.objects.filter(pk=old.pk).update(timestamp=timezone.now() - datetime.timedelta(days=10))
        recent = create_audit_log(None, 'UPDATE', 'Edición reciente')
        since = (timezone.localdate() - datetime.timedelta(days=1)).isoformat()

        response = client_for(permissions_admin).get(reverse('audit-log-list'), {'date_from': since})

        assert response.status_code == 200
        assert [item['id'] for item in response.data['results']] == [recent.pk]

    @pytest.mark.parametrize('param', ['date_from', 'date_to'])
    def test_malformed_date_is_bad_request(self, permissions_admin, param):
        response = client_for(permissions_admin).get(reverse('audit-log-list'), {param: 'no-es-fecha'})

        assert response.status_code == 400
        assert param in response.data
