# marketplace/urls.py
#
# Purpose:
# - Project URL router.
# - All JSON APIs live under /api/ via the booking app's DRF router.
#
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("booking.urls")),
]
