from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r"classes", views.ClassroomViewSet, basename="classroom")
router.register(r"modules", views.ModuleViewSet, basename="module")
router.register(r"activities", views.ActivityViewSet, basename="activity")
router.register(r"quizzes", views.QuizViewSet, basename="quiz")
router.register(r"achievements", views.AchievementViewSet, basename="achievement")
router.register(r"invitations", views.ClassInvitationViewSet, basename="invitation")

urlpatterns = [
    # Attendance
    path("attendance/<int:session_id>/", views.attendance_session_detail, name="attendance-detail"),
    path("attendance/records/<int:record_id>/", views.attendance_record_update, name="attendance-record"),

    # Notifications
    path("notifications/", views.notification_list, name="notification-list"),
    path("notifications/read_all/", views.notification_read_all, name="notification-read-all"),
    path("notifications/<int:notification_id>/read/", views.notification_read, name="notification-read"),

    # Gamification
    path("gamification/profile/", views.gamification_profile, name="gamification-profile"),
    path("gamification/events/", views.gamification_event, name="gamification-event"),
    path("gamification/achievements/seen/", views.achievements_seen, name="achievements-seen"),

    path("", include(router.urls)),
]
