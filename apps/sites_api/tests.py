import datetime

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from apps.appointments_api.factories import AppointmentFactory
from apps.audit_api.models import AuditLog
from apps.auth_api.factories import UserFactory
from .factories import SiteFactory, AppointmentTypeFactory, AvailableHourFactory
from .models import Site, AppointmentType, AvailableHour


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.mark.django_db
class TestSiteAPI:

    @pytest.fixture
    def sites_admin(self, grant):
        user = UserFactory()
        grant(user, 'SEDES', read=True, create=True, update=True, delete=True)
        return user

    def test_create_site(self, sites_admin):
        data = {'code': 'ctr', 'name': 'Sede Centro', 'address': 'Calle 10 # 5-20', 'city': 'Bogotá'}
        response = client_for(sites_admin).post(reverse('site-list'), data, format='json')

        assert response.status_code == 201
        assert Site.objects.get(code='CTR').is_active
        assert AuditLog.objects.filter(action='CREATE', source='SITES').exists()

    def test_reader_cannot_create(self, grant):
        user = UserFactory()
        grant(user, 'SEDES', read=True)
        response = client_for(user).post(reverse('site-list'), {'code': 'N', 'name': 'N'}, format='json')
        assert response.status_code == 403

    def test_deactivate_keeps_record(self, sites_admin):
        site = SiteFactory()
        response = client_for(sites_admin).post(reverse('site-deactivate', kwargs={'pk': site.pk}))

        assert response.status_code == 200
        site.refresh_from_db()
        assert site.is_active is False
        assert AuditLog.objects.filter(action='DEACTIVATE').exists()

    def test_delete_site_with_appointments_is_refused(self, sites_admin):
        appointment = AppointmentFactory()
        response = client_for(sites_admin).delete(reverse('site-detail', kwargs={'pk': appointment.site_id}))

        assert response.status_code == 400
        assert Site.objects.filter(pk=appointment.site_id).exists()

    def test_delete_site(self, sites_admin):
        site = SiteFactory()
        response = client_for(sites_admin).delete(reverse('site-detail', kwargs={'pk': site.pk}))
        assert response.status_code == 204
        assert not Site.objects.filter(pk=site.pk).exists()

    def test_update_capability_cannot_delete(self, grant):
        user = UserFactory()
        grant(user, 'SEDES', read=True, update=True)
        site = SiteFactory()

        response = client_for(user).delete(reverse('site-detail', kwargs={'pk': site.pk}))

        assert response.status_code == 403
        assert Site.objects.filter(pk=site.pk).exists()


@pytest.mark.django_db
class TestAppointmentTypeAPI:

    @pytest.fixture
    def types_admin(self, grant):
        user = UserFactory()
        grant(user, 'TIPOS_CITA', read=True, create=True, update=True)
        return user

    @pytest.mark.parametrize('minutes', [0, 481])
    def test_estimated_minutes_out_of_range(self, types_admin, minutes):
        response = client_for(types_admin).post(reverse('appointment-type-list'), {
            'name': 'Revisión de medidor', 'estimated_minutes': minutes
        }, format='json')
        assert response.status_code == 400
        assert not AppointmentType.objects.filter(name='Revisión de medidor').exists()

    @pytest.mark.parametrize('minutes', [1, 480])
    def test_estimated_minutes_bounds(self, types_admin, minutes):
        response = client_for(types_admin).post(reverse('appointment-type-list'), {
            'name': f'Tipo {minutes}', 'estimated_minutes': minutes
        }, format='json')
        assert response.status_code == 201


@pytest.mark.django_db
class TestAvailableHourAPI:

    def test_filter_by_site(self, grant):
        user = UserFactory()
        grant(user, 'HORAS_DISPONIBLES', read=True)
        hour = AvailableHourFactory()
        AvailableHourFactory()

        response = client_for(user).get(reverse('available-hour-list'), {'site': hour.site_id})

        assert response.status_code == 200
        assert [h['id'] for h in response.data['results']] == [hour.pk]
        assert response.data['results'][0]['appointment_type_name'] is None

    def test_create_hour_for_type(self, grant):
        user = UserFactory()
        grant(user, 'HORAS_DISPONIBLES', read=True, create=True)
        site = SiteFactory()
        appointment_type = AppointmentTypeFactory()

        response = client_for(user).post(reverse('available-hour-list'), {
            'time': '14:30', 'site': site.pk, 'appointment_type': appointment_type.pk
        }, format='json')

        assert response.status_code == 201
        assert AvailableHour.objects.get(site=site).appointment_type == appointment_type

    def test_create_hour_drops_seconds(self, grant):
        user = UserFactory()
        grant(user, 'HORAS_DISPONIBLES', read=True, create=True)
        site = SiteFactory()

        response = client_for(user).post(reverse('available-hour-list'), {
            'time': '09:00:30', 'site': site.pk
        }, format='json')

        assert response.status_code == 201
        assert AvailableHour.objects.get(site=site).time == datetime.time(9, 0)
