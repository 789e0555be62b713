from django.contrib import admin
from .models import User, Client, Professional

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'phone_number', 'is_client', 'is_professional', 'is_superuser')
    list_filter = ('is_superuser',)
    search_fields = ('username', 'email', 'phone_number')

@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ('user', 'company_name', 'location')
    search_fields = ('user__username', 'user__email')

@admin.register(Professional)
class ProfessionalAdmin(admin.ModelAdmin):
    list_display = ('user', 'skills', 'hourly_rate', 'location')
    search_fields = ('user__username', 'user__email', 'skills')
