from django.urls import path
from . import views

app_name = 'reminders'

urlpatterns = [
    path('check-appointments/', views.check_appointments_api, name='check_appointments'),
    path('reminders/', views.recent_reminders_api, name='recent_reminders'),
]
