import pytest
from apps.clients_api.factories import CustomerFactory
from apps.clients_api.models import Customer


@pytest.mark.django_db
class TestCustomerLookup:

    def test_by_number_returns_active_customer(self):
        customer = CustomerFactory(customer_number='778899')
        assert Customer.objects.by_number('778899') == customer

    def test_by_number_strips_whitespace(self):
        customer = CustomerFactory(customer_number='556677')
        assert Customer.objects.by_number(' 556677 ') == customer

    def test_by_number_ignores_inactive_customers(self):
        CustomerFactory(customer_number='112233', is_active=False)
        assert Customer.objects.by_number('112233') is None

    def test_by_number_empty_value(self):
        assert Customer.objects.by_number('') is None
        assert Customer.objects.by_number(None) is None
