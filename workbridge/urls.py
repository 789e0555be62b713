from django.contrib import admin
from django.urls import path, include
from drf_yasg.views import get_schema_view
from drf_yasg import openapi
from rest_framework.authtoken.views import obtain_auth_token

schema_view = get_schema_view(
    openapi.Info(
        title="WorkBridge API",
        default_version='v1',
        description="Project lifecycle API for the WorkBridge marketplace",
    ),
    public=True,
)

urlpatterns = [
    path('', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('admin/', admin.site.urls),
    path('auth/token/', obtain_auth_token, name='api_token'),
    path('', include('apps.projects.urls')),
]
