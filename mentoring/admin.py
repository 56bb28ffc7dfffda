from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (Account, ActivityLog, ClassGroup, CredentialLink, MenteeProfile, MentoringSession,
                     Notification, ProfileEditGrant, Query, Report, ReportRecipient)


@admin.register(Account)
class AccountAdmin(BaseUserAdmin):
    list_display = ("email", "display_name", "role", "is_active", "created_at")
    list_filter = ("role", "is_active")
    search_fields = ("email", "display_name")
    ordering = ("email",)
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Mentoring", {"fields": ("role", "display_name", "created_by")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Mentoring", {"fields": ("email", "role", "display_name")}),
    )
    list_per_page = 25


@admin.register(ClassGroup)
class ClassGroupAdmin(admin.ModelAdmin):
    list_display = ("name", "year", "section", "mentor", "created_at")
    list_filter = ("year", "section")
    search_fields = ("name", "mentor__email")


@admin.register(MenteeProfile)
class MenteeProfileAdmin(admin.ModelAdmin):
    list_display = ("account", "enrollment_no", "class_group", "primary_mentor", "guide", "co_guide")
    search_fields = ("enrollment_no", "account__email", "account__display_name")
    list_filter = ("class_group",)
    raw_id_fields = ("account", "primary_mentor", "guide", "co_guide")


@admin.register(ProfileEditGrant)
class ProfileEditGrantAdmin(admin.ModelAdmin):
    list_display = ("mentee", "allowed_by", "allowed_at", "expires_at", "consumed")
    list_filter = ("consumed",)


class ReportRecipientInline(admin.TabularInline):
    model = ReportRecipient
    extra = 0
    readonly_fields = ("account", "role_at_submission")


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("title", "author", "status", "viewed", "submitted_at", "reviewed_by")
    list_filter = ("status", "viewed")
    search_fields = ("title", "author__email")
    ordering = ("-submitted_at",)
    inlines = [ReportRecipientInline]


@admin.register(Query)
class QueryAdmin(admin.ModelAdmin):
    list_display = ("subject", "mentee", "mentor", "status", "asked_at", "answered_at")
    list_filter = ("status",)
    search_fields = ("subject", "mentee__email", "mentor__email")


@admin.register(CredentialLink)
class CredentialLinkAdmin(admin.ModelAdmin):
    list_display = ("owner", "linked_email", "linked_account", "updated_at")
    exclude = ("linked_secret_encrypted",)


@admin.register(MentoringSession)
class MentoringSessionAdmin(admin.ModelAdmin):
    list_display = ("topic", "mentor", "scheduled_for", "duration_minutes", "status")
    list_filter = ("status",)
    filter_horizontal = ("mentees",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("mentor")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("user", "severity", "message", "is_read", "created_at")
    list_filter = ("severity", "is_read")


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "user", "action", "module", "ip_address")
    list_filter = ("module", "action")
    search_fields = ("user__email", "details")
    readonly_fields = [f.name for f in ActivityLog._meta.fields]
    ordering = ("-timestamp",)
