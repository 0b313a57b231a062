from django.contrib import admin
from .models import (
    Achievement,
    Activity,
    ActivitySubmission,
    AttendanceRecord,
    AttendanceSession,
    ClassInvitation,
    ClassNotice,
    Classroom,
    ClassTeacher,
    Module,
    ModuleProgress,
    Notification,
    Quiz,
    QuizResult,
    UserGamification,
)


class ClassTeacherInline(admin.TabularInline):
    model = ClassTeacher
    extra = 0


@admin.register(Classroom)
class ClassroomAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "teacher", "is_archived", "created_at")
    list_filter = ("is_archived",)
    search_fields = ("name", "code", "teacher__email")
    filter_horizontal = ("students",)
    inlines = [ClassTeacherInline]


@admin.register(ClassInvitation)
class ClassInvitationAdmin(admin.ModelAdmin):
    list_display = ("classroom", "inviter", "invitee", "subject", "created_at")
    search_fields = ("classroom__name", "invitee__email")


@admin.register(ClassNotice)
class ClassNoticeAdmin(admin.ModelAdmin):
    list_display = ("classroom", "author", "created_at")


class AttendanceRecordInline(admin.TabularInline):
    model = AttendanceRecord
    extra = 0


@admin.register(AttendanceSession)
class AttendanceSessionAdmin(admin.ModelAdmin):
    list_display = ("classroom", "date", "shift", "period")
    list_filter = ("shift", "date")
    inlines = [AttendanceRecordInline]


@admin.register(Module)
class ModuleAdmin(admin.ModelAdmin):
    list_display = ("title", "creator", "status", "visibility", "created_at")
    list_filter = ("status", "visibility")
    search_fields = ("title", "description")
    filter_horizontal = ("classes",)


@admin.register(ModuleProgress)
class ModuleProgressAdmin(admin.ModelAdmin):
    list_display = ("student", "module", "progress", "status", "completed_at")
    list_filter = ("status",)


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ("title", "activity_type", "classroom", "status", "points", "due_date")
    list_filter = ("status", "activity_type")
    search_fields = ("title",)


@admin.register(ActivitySubmission)
class ActivitySubmissionAdmin(admin.ModelAdmin):
    list_display = ("activity", "student", "status", "grade", "created_at")
    list_filter = ("status",)


@admin.register(Quiz)
class QuizAdmin(admin.ModelAdmin):
    list_display = ("title", "classroom", "module", "status", "created_at")
    list_filter = ("status",)


@admin.register(QuizResult)
class QuizResultAdmin(admin.ModelAdmin):
    list_display = ("quiz", "student", "score", "submitted_at")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("user", "notification_type", "title", "urgency", "read", "created_at")
    list_filter = ("notification_type", "urgency", "read")


@admin.register(Achievement)
class AchievementAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "criterion_type", "criterion_count", "points", "status", "sort_order")
    list_filter = ("status", "criterion_type", "rarity")
    list_editable = ("status", "sort_order")
    search_fields = ("id", "title")


@admin.register(UserGamification)
class UserGamificationAdmin(admin.ModelAdmin):
    list_display = ("user", "xp", "level", "updated_at")
    search_fields = ("user__email",)
    readonly_fields = ("created_at", "updated_at")
