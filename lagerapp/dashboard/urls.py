from django.urls import path
from .views import dashboard_summary, dashboard_activity

urlpatterns = [
    path('dashboard/', dashboard_summary, name='dashboard-summary'),
    path('dashboard/activity/', dashboard_activity, name='dashboard-activity'),
]
