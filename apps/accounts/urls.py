from django.urls import path, include
from rest_framework.routers import SimpleRouter

from . import views

app_name = 'users'

router = SimpleRouter()
router.register(r'', views.UserViewSet, basename='user')

urlpatterns = [
    path('password/validate/', views.check_password_strength, name='password-validate'),
    path('', include(router.urls)),
]
