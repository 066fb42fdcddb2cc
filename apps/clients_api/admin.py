from django.contrib import admin
from .models import Customer

@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ('customer_number', 'full_name', 'document_type', 'document_number', 'is_active')
    list_filter = ('is_active', 'document_type')
    search_fields = ('customer_number', 'full_name', 'document_number', 'email')
