from django.contrib import admin
from django.http import JsonResponse
from django.views.decorators.cache import cache_page
from django.views.decorators.http import require_http_methods

from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView


@require_http_methods(["GET"])
@cache_page(60)
def health_check(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include([
        path('auth/', include('apps.auth_api.urls')),
        path('roles/', include('apps.roles_api.urls')),
        path('schema/', SpectacularAPIView.as_view(), name='schema'),
        path('docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
        path('sites/', include('apps.sites_api.urls')),
        path('appointments/', include('apps.appointments_api.urls')),
        path('public/', include('apps.appointments_api.public_urls')),
        path('audit/', include('apps.audit_api.urls')),

        path("healthz/", health_check, name="health_check"),
    ])),
]
