"""config URL Configuration

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/4.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path
from django.views.decorators.csrf import csrf_exempt
from django.views.generic.base import RedirectView
from graphene_django.views import GraphQLView
from telegram_verification.views import telegram_webhook
from .views import health_view
import json
import logging

# Customize admin site
admin.site.site_header = "Stars Admin"
admin.site.site_title = "Stars Admin Portal"
admin.site.index_title = "Welcome to Stars Administration"

logger = logging.getLogger(__name__)

class LoggingGraphQLView(GraphQLView):
    def dispatch(self, request, *args, **kwargs):
        if request.method == 'POST':
            try:
                body = json.loads(request.body)
                # Variables carry passwords and OTP codes; only the operation is logged
                logger.info("GraphQL operation: %s", body.get('operationName') or 'anonymous')
            except (ValueError, AttributeError) as e:
                logger.error("Error parsing GraphQL request: %s", str(e))
        return super().dispatch(request, *args, **kwargs)

urlpatterns = [
    # Ensure /admin (no trailing slash) redirects to /admin/
    path('admin', RedirectView.as_view(url='/admin/', permanent=True)),
    path('admin/', admin.site.urls),
    path('graphql/', csrf_exempt(LoggingGraphQLView.as_view(graphiql=True))),
    path('telegram/webhook/', telegram_webhook, name='telegram_webhook'),
    path('health/', health_view, name='health'),
]
