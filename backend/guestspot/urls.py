from django.conf import settings
from django.contrib import admin
from django.urls import include, path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/payments/", include("payments.urls")),
    path("api/bookings/", include(("bookings.urls", "bookings"), namespace="bookings")),
    path(
        "api/guest-spots/",
        include(("guest_spots.urls", "guest_spots"), namespace="guest_spots"),
    ),
    path("api/tips/", include(("tips.urls", "tips"), namespace="tips")),
    path(
        "api/notifications/",
        include(("notifications.urls", "notifications"), namespace="notifications"),
    ),
]

if settings.ENABLE_DJANGO_ADMIN:
    urlpatterns.insert(0, path("admin/", admin.site.urls))
