from django.urls import path
from . import public_views

urlpatterns = [
    path('sites/', public_views.public_sites, name='public-sites'),
    path('appointment-types/', public_views.public_appointment_types, name='public-appointment-types'),
    path('available-hours/', public_views.public_available_hours, name='public-available-hours'),
    path('appointments/', public_views.public_book, name='public-book'),
    path('appointments/lookup/', public_views.public_lookup, name='public-lookup'),
    path('appointments/verify/', public_views.public_verify, name='public-verify'),
    path('appointments/<str:ticket_number>/cancel/', public_views.public_cancel, name='public-cancel'),
    path('customers/<str:customer_number>/validate/', public_views.public_validate_customer,
         name='public-validate-customer'),
    path('customers/<str:customer_number>/appointments/', public_views.public_customer_appointments,
         name='public-customer-appointments'),
]
