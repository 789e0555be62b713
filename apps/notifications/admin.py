from django.contrib import admin
from .models import Notification

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('user', 'title', 'kind', 'read', 'delivery_status', 'created_at')
    list_filter = ('kind', 'read', 'delivery_status')
    search_fields = ('user__username', 'title')
