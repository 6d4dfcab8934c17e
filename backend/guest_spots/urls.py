from rest_framework.routers import DefaultRouter

from .api import GuestSpotBookingViewSet

app_name = "guest_spots"

router = DefaultRouter()
router.register("", GuestSpotBookingViewSet, basename="guest-spot")

urlpatterns = router.urls
