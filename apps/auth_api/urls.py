from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from .views import MeView, UserViewSet, UserTabsView, UserTabsDetailView, AvailableTabsView

router = DefaultRouter()
router.register(r'users', UserViewSet, basename='user')

urlpatterns = [
    path('token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('me/', MeView.as_view(), name='me'),
    path('user-tabs/', UserTabsView.as_view(), name='user-tabs'),
    path('user-tabs/<int:user_id>/', UserTabsDetailView.as_view(), name='user-tabs-detail'),
    path('available-tabs/', AvailableTabsView.as_view(), name='available-tabs'),
    path('', include(router.urls)),
]
