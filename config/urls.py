from django.urls import path, include

# Main URL Configuration
# Routes all requests to appropriate apps

urlpatterns = [
    path('api/', include('apps.reminders.urls')),
]
