from django.db import models


class CustomerQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def by_number(self, customer_number):
        """Cliente activo por número de cliente, o None."""
        if not customer_number:
            return None
        return self.active().filter(customer_number=str(customer_number).strip()).first()


class Customer(models.Model):
    DOCUMENT_CHOICES = [
        ('CC', 'Cédula de ciudadanía'),
        ('CE', 'Cédula de extranjería'),
        ('NIT', 'NIT'),
        ('PAS', 'Pasaporte'),
    ]
    # Número de cliente impreso en la factura; identifica al usuario en el portal público
    customer_number = models.CharField(max_length=30, unique=True)
    document_type = models.CharField(max_length=3, choices=DOCUMENT_CHOICES, default='CC')
    document_number = models.CharField(max_length=30, blank=True)
    full_name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    mobile = models.CharField(max_length=20, blank=True, null=True)
    address = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomerQuerySet.as_manager()

    class Meta:
        ordering = ['id']
        indexes = [
            models.Index(fields=['document_type', 'document_number'], name='customer_document_idx'),
        ]

    def __str__(self):
        return f"{self.customer_number} - {self.full_name}"
