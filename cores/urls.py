from django.urls import path
from .views import NotificationListView, MarkNotificationsReadView, AuditLogListView

urlpatterns = [
    path('notifications/', NotificationListView.as_view(), name='notifications'),
    path('notifications/read/', MarkNotificationsReadView.as_view(), name='notifications-read'),
    path('audit-logs/', AuditLogListView.as_view(), name='audit-logs'),
]
