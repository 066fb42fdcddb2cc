from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    RoleViewSet, FormViewSet, PermissionTemplateViewSet,
    RoleFormPermissionViewSet, RolesSummaryView,
)

router = DefaultRouter()
router.register(r'roles', RoleViewSet, basename='role')
router.register(r'forms', FormViewSet, basename='form')
router.register(r'permissions', PermissionTemplateViewSet, basename='permission')
router.register(r'assignments', RoleFormPermissionViewSet, basename='assignment')

urlpatterns = [
    path('', include(router.urls)),
    path('summary/', RolesSummaryView.as_view(), name='roles-summary'),
]
