from django.urls import path
from rest_framework.routers import DefaultRouter

from payments.webhooks import tip_stripe_webhook

from .api import TipViewSet

app_name = "tips"

router = DefaultRouter()
router.register("", TipViewSet, basename="tip")

urlpatterns = [
    path("stripe/webhook/", tip_stripe_webhook, name="stripe_webhook"),
    *router.urls,
]
