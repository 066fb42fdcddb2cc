from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import SiteViewSet, AppointmentTypeViewSet, AvailableHourViewSet

router = DefaultRouter()
router.register(r'sites', SiteViewSet, basename='site')
router.register(r'appointment-types', AppointmentTypeViewSet, basename='appointment-type')
router.register(r'available-hours', AvailableHourViewSet, basename='available-hour')

urlpatterns = [
    path('', include(router.urls)),
]
