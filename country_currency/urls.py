"""
URL configuration for country_currency project.

All API routes live in countries.urls; error handlers below answer with the
same {"error": {...}} body the API uses.
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse

from countries.exceptions import error_body

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('countries.urls'))
]


def custom_404(request, exception):
    return JsonResponse(
        error_body(404, "Endpoint not found", "try /countries or /status"), status=404
    )


def custom_500(request):
    return JsonResponse(error_body(500, "Internal server error"), status=500)


handler404 = "country_currency.urls.custom_404"
handler500 = "country_currency.urls.custom_500"
