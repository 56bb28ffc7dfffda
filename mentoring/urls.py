from django.urls import path

from .views import accounts, admin, mentee, mentor

urlpatterns = [
    # accounts
    path("login/", accounts.user_login, name="login"),
    path("logout/", accounts.user_logout, name="logout"),
    path("identity/link/", accounts.linked_identity, name="linked-identity"),
    path("identity/switch/", accounts.switch_identity, name="switch-identity"),

    # mentee
    path("mentee/reports/", mentee.my_reports, name="my-reports"),
    path("mentee/reports/submit/", mentee.submit_report, name="submit-report"),
    path("mentee/queries/", mentee.my_queries, name="my-queries"),
    path("mentee/queries/ask/", mentee.ask_query, name="ask-query"),
    path("mentee/profile/edit-status/", mentee.edit_status, name="edit-status"),
    path("mentee/profile/edit/", mentee.edit_profile, name="edit-profile"),
    path("notifications/", mentee.notifications, name="notifications"),
    path("notifications/<int:notification_id>/read/", mentee.read_notification, name="read-notification"),
    path("sessions/upcoming/", mentee.upcoming_sessions, name="upcoming-sessions"),

    # mentor
    path("mentor/mentees/", mentor.my_mentees, name="my-mentees"),
    path("mentor/mentees/add/", mentor.add_mentee, name="add-mentee"),
    path("mentor/mentees/<int:mentee_id>/edit/", mentor.edit_mentee, name="edit-mentee"),
    path("mentor/delegation/verify/", mentor.verify_delegation, name="verify-delegation"),
    path("mentor/delegation/commit/", mentor.commit_delegation, name="commit-delegation"),
    path("mentor/delegation/release/", mentor.release_delegation, name="release-delegation"),
    path("mentor/mentees/<int:mentee_id>/allow-edit/", mentor.allow_edit, name="allow-edit"),
    path("mentor/mentees/allow-edit/", mentor.bulk_allow_edit, name="bulk-allow-edit"),
    path("mentor/reports/", mentor.received_reports, name="received-reports"),
    path("mentor/reports/<int:report_id>/review/", mentor.review_report, name="review-report"),
    path("mentor/reports/<int:report_id>/viewed/", mentor.mark_report_viewed, name="mark-report-viewed"),
    path("mentor/queries/", mentor.query_inbox, name="query-inbox"),
    path("mentor/queries/<int:query_id>/answer/", mentor.answer_query, name="answer-query"),
    path("mentor/classes/", mentor.class_list, name="classes"),
    path("mentor/classes/<int:class_id>/delete/", mentor.delete_class, name="delete-class"),
    path("mentor/classes/<int:class_id>/export/<str:fmt>/", mentor.export_class, name="export-class"),
    path("mentor/sessions/schedule/", mentor.schedule_session, name="schedule-session"),

    # admin
    path("admin-panel/staff/", admin.staff_list, name="staff-list"),
    path("admin-panel/staff/create/", admin.create_staff, name="create-staff"),
    path("admin-panel/staff/<int:account_id>/toggle-admin/", admin.toggle_admin_access, name="toggle-admin"),
    path("admin-panel/mentees/<int:mentee_id>/assign/", admin.assign_mentor, name="assign-mentor"),
    path("admin-panel/activity-logs/", admin.activity_logs_api, name="activity-logs-api"),
]
