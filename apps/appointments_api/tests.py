import datetime

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from apps.audit_api.models import AuditLog
from apps.auth_api.factories import UserFactory
from apps.clients_api.factories import CustomerFactory
from .factories import AppointmentFactory
from .models import Appointment, AppointmentStatus

REASON = 'El cliente reprogramó la visita'


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def appointment(site, appointment_type, customer, booking_date):
    return AppointmentFactory(
        site=site, appointment_type=appointment_type, customer=customer,
        date=booking_date, time=datetime.time(9),
    )


@pytest.mark.django_db
class TestAppointmentListAPI:

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse('appointment-list'))
        assert response.status_code == 401

    def test_user_without_roles(self, authenticated_user):
        _, client = authenticated_user
        response = client.get(reverse('appointment-list'))
        assert response.status_code == 403

    def test_list(self, operator, appointment):
        response = client_for(operator).get(reverse('appointment-list'))

        assert response.status_code == 200
        assert response.data['count'] == 1
        item = response.data['results'][0]
        assert item['ticket_number'] == appointment.ticket_number
        assert item['time'] == '09:00'
        assert item['status_display'] == 'Pendiente'
        assert item['estimated_minutes'] == appointment.appointment_type.estimated_minutes

    def test_filter_by_status(self, operator, appointment):
        AppointmentFactory(status=AppointmentStatus.COMPLETED, assigned_technician='Técnico')

        response = client_for(operator).get(reverse('appointment-list'), {'status': 'completed'})

        assert response.data['count'] == 1
        assert response.data['results'][0]['status'] == 'completed'

    def test_search_by_customer_number(self, operator, appointment):
        AppointmentFactory()

        response = client_for(operator).get(reverse('appointment-list'), {'search': appointment.customer.customer_number})

        assert [item['id'] for item in response.data['results']] == [appointment.pk]

    def test_pending_and_completed(self, operator, appointment):
        done = AppointmentFactory(status=AppointmentStatus.COMPLETED, assigned_technician='Técnico')
        client = client_for(operator)

        pending = client.get(reverse('appointment-pending'))
        completed = client.get(reverse('appointment-completed'))

        assert [item['id'] for item in pending.data['results']] == [appointment.pk]
        assert [item['id'] for item in completed.data['results']] == [done.pk]

    def test_retrieve(self, operator, appointment):
        response = client_for(operator).get(reverse('appointment-detail', kwargs={'pk': appointment.pk}))

        assert response.status_code == 200
        assert response.data['customer']['customer_number'] == appointment.customer.customer_number


@pytest.mark.django_db
class TestAppointmentWriteAPI:

    def test_create(self, citas_admin, customer, site, appointment_type, booking_date):
        data = {
            'customer_id': customer.pk,
            'site_id': site.pk,
            'appointment_type_id': appointment_type.pk,
            'date': booking_date.isoformat(),
            'time': '10:00',
        }

        response = client_for(citas_admin).post(reverse('appointment-list'), data, format='json')

        assert response.status_code == 201
        assert response.data['status'] == 'pending'
        assert response.data['created_by'] == citas_admin.pk

    def test_create_requires_create_permission(self, operator, customer, site, appointment_type, booking_date):
        data = {
            'customer_id': customer.pk,
            'site_id': site.pk,
            'appointment_type_id': appointment_type.pk,
            'date': booking_date.isoformat(),
            'time': '10:00',
        }

        response = client_for(operator).post(reverse('appointment-list'), data, format='json')

        assert response.status_code == 403
        assert not Appointment.objects.exists()

    def test_create_taken_slot(self, citas_admin, appointment):
        data = {
            'customer_id': CustomerFactory().pk,
            'site_id': appointment.site_id,
            'appointment_type_id': appointment.appointment_type_id,
            'date': appointment.date.isoformat(),
            'time': '09:00',
        }

        response = client_for(citas_admin).post(reverse('appointment-list'), data, format='json')

        assert response.status_code == 409
        assert response.data['code'] == 'slot_conflict'
        assert response.data['retryable'] is True

    def test_create_past_date(self, citas_admin, customer, site, appointment_type):
        data = {
            'customer_id': customer.pk,
            'site_id': site.pk,
            'appointment_type_id': appointment_type.pk,
            'date': '2020-01-01',
            'time': '09:00',
        }

        response = client_for(citas_admin).post(reverse('appointment-list'), data, format='json')

        assert response.status_code == 400
        assert response.data['code'] == 'validation_error'
        assert response.data['retryable'] is False

    def test_partial_update(self, operator, appointment):
        url = reverse('appointment-detail', kwargs={'pk': appointment.pk})

        response = client_for(operator).patch(url, {'time': '08:00'}, format='json')

        assert response.status_code == 200
        assert response.data['time'] == '08:00'

    def test_complete(self, operator, appointment):
        url = reverse('appointment-complete', kwargs={'pk': appointment.pk})

        response = client_for(operator).post(url, {'assigned_technician': 'Carlos Pérez'}, format='json')

        assert response.status_code == 200
        assert response.data['status'] == 'completed'
        assert response.data['assigned_technician'] == 'Carlos Pérez'

    def test_complete_without_technician(self, operator, appointment):
        url = reverse('appointment-complete', kwargs={'pk': appointment.pk})

        response = client_for(operator).post(url, {'assigned_technician': ''}, format='json')

        assert response.status_code == 400
        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.PENDING

    def test_reader_cannot_complete(self, grant, appointment):
        reader = UserFactory()
        grant(reader, 'CITAS', read=True)
        url = reverse('appointment-complete', kwargs={'pk': appointment.pk})

        response = client_for(reader).post(url, {'assigned_technician': 'Técnico'}, format='json')

        assert response.status_code == 403
        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.PENDING

    def test_cancel(self, operator, appointment):
        url = reverse('appointment-cancel', kwargs={'pk': appointment.pk})

        response = client_for(operator).post(url, {'reason': REASON}, format='json')

        assert response.status_code == 200
        assert response.data['status'] == 'cancelled'
        assert response.data['cancellation_reason'] == REASON

    def test_cancel_completed(self, operator, appointment):
        client = client_for(operator)
        client.post(reverse('appointment-complete', kwargs={'pk': appointment.pk}),
                    {'assigned_technician': 'Técnico'}, format='json')

        response = client.post(reverse('appointment-cancel', kwargs={'pk': appointment.pk}),
                               {'reason': REASON}, format='json')

        assert response.status_code == 400
        assert response.data['code'] == 'validation_error'

    def test_not_attended(self, operator, appointment):
        url = reverse('appointment-not-attended', kwargs={'pk': appointment.pk})

        response = client_for(operator).post(url, {}, format='json')

        assert response.status_code == 200
        assert response.data['status'] == 'cancelled'
        assert response.data['cancellation_reason'] == 'Cliente no asistió a la cita'

    def test_override_requires_delete(self, operator, appointment):
        url = reverse('appointment-override', kwargs={'pk': appointment.pk})
        data = {'justification': 'Corrección solicitada por el cliente', 'notes': 'Nueva nota'}

        response = client_for(operator).post(url, data, format='json')

        assert response.status_code == 403

    def test_override(self, citas_admin, appointment):
        url = reverse('appointment-override', kwargs={'pk': appointment.pk})
        data = {'justification': 'Corrección solicitada por el cliente', 'notes': 'Nueva nota'}

        response = client_for(citas_admin).post(url, data, format='json')

        assert response.status_code == 200
        assert response.data['notes'] == 'Nueva nota'
        assert AuditLog.objects.filter(action='ADMIN_OVERRIDE', object_id=appointment.pk).exists()

    def test_destroy(self, citas_admin, appointment):
        response = client_for(citas_admin).delete(reverse('appointment-detail', kwargs={'pk': appointment.pk}))

        assert response.status_code == 204
        assert not Appointment.objects.filter(pk=appointment.pk).exists()

    def test_destroy_requires_delete(self, operator, appointment):
        response = client_for(operator).delete(reverse('appointment-detail', kwargs={'pk': appointment.pk}))

        assert response.status_code == 403
        assert Appointment.objects.filter(pk=appointment.pk).exists()

    def test_unknown_appointment(self, operator):
        url = reverse('appointment-cancel', kwargs={'pk': 999999})

        response = client_for(operator).post(url, {'reason': REASON}, format='json')

        assert response.status_code == 404
        assert response.data['code'] == 'not_found'


@pytest.mark.django_db
class TestAvailabilityAPI:

    def test_available_hours(self, operator, appointment, site, appointment_type, booking_date):
        params = {'site': site.pk, 'date': booking_date.isoformat(), 'appointment_type': appointment_type.pk}

        response = client_for(operator).get(reverse('appointment-available-hours'), params)

        assert response.status_code == 200
        assert response.data['available_hours'] == ['08:00', '10:00']

    def test_available_hours_requires_params(self, operator):
        response = client_for(operator).get(reverse('appointment-available-hours'), {'site': 1})
        assert response.status_code == 400

    def test_check_availability(self, operator, appointment, site, booking_date):
        url = reverse('appointment-check-availability')
        client = client_for(operator)

        taken = client.get(url, {'site': site.pk, 'date': booking_date.isoformat(), 'time': '09:00'})
        free = client.get(url, {'site': site.pk, 'date': booking_date.isoformat(), 'time': '10:00'})

        assert taken.data == {'available': False}
        assert free.data == {'available': True}
