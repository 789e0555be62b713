from django.contrib import admin
from .models import Project, Application, Review, Payment, ProjectUpdate

@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('title', 'client', 'assigned_to', 'status', 'work_status', 'budget', 'created_at')
    list_filter = ('status', 'work_status')
    search_fields = ('title', 'client__username', 'assigned_to__username')

@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ('project', 'professional', 'status', 'bid_amount', 'created_at')
    list_filter = ('status',)
    search_fields = ('project__title', 'professional__username')

@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('project', 'reviewer_role', 'client', 'professional', 'rating', 'created_at')
    list_filter = ('reviewer_role', 'rating')

@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('project', 'client', 'professional', 'amount', 'currency', 'status', 'created_at')
    list_filter = ('status', 'currency')

@admin.register(ProjectUpdate)
class ProjectUpdateAdmin(admin.ModelAdmin):
    list_display = ('project', 'update_type', 'created_by', 'created_at')
    list_filter = ('update_type',)
