from rest_framework import serializers
from .models import Customer

class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ['id', 'customer_number', 'document_type', 'document_number',
                  'full_name', 'email', 'phone', 'mobile', 'address', 'is_active']
        read_only_fields = fields


class PublicCustomerSerializer(serializers.ModelSerializer):
    """Datos mínimos del cliente que puede ver el portal público."""
    class Meta:
        model = Customer
        fields = ['customer_number', 'full_name']
        read_only_fields = fields
