"""URL configuration for the campus LMS."""
from django.contrib import admin
from django.urls import include, path

from academics import views

api_patterns = [
    path("health/", views.HealthView.as_view(), name="health"),
    path("health/ping/", views.PingView.as_view(), name="health_ping"),
    # admin CRUD
    path("departments/", views.DepartmentCollectionView.as_view(), name="department_list"),
    path("departments/<int:pk>/", views.DepartmentDetailView.as_view(), name="department_detail"),
    path("courses/", views.CourseCollectionView.as_view(), name="course_list"),
    path("courses/<int:pk>/", views.CourseDetailView.as_view(), name="course_detail"),
    path(
        "courses/<int:pk>/approval-toggle/",
        views.CourseApprovalToggleView.as_view(),
        name="course_approval_toggle",
    ),
    path("instructors/", views.InstructorCollectionView.as_view(), name="instructor_list"),
    path("instructors/<int:pk>/", views.InstructorDetailView.as_view(), name="instructor_detail"),
    path("students/", views.StudentCollectionView.as_view(), name="student_list"),
    path("students/<int:pk>/", views.StudentDetailView.as_view(), name="student_detail"),
    path("enrollments/", views.EnrollmentCollectionView.as_view(), name="enrollment_list"),
    path(
        "enrollments/complete-ended/",
        views.CompleteEndedEnrollmentsView.as_view(),
        name="enrollment_complete_ended",
    ),
    path("enrollments/<int:pk>/", views.EnrollmentDetailView.as_view(), name="enrollment_detail"),
    path("enrollments/<int:pk>/decision/", views.EnrollmentDecisionView.as_view(), name="enrollment_decision"),
    path("enrollments/<int:pk>/grade/", views.EnrollmentGradeView.as_view(), name="enrollment_grade"),
    # student portal
    path("student/courses/", views.StudentCourseListView.as_view(), name="student_courses"),
    path("student/courses/<int:pk>/enroll/", views.StudentEnrollView.as_view(), name="student_enroll"),
    path("student/courses/<int:pk>/drop/", views.StudentDropView.as_view(), name="student_drop"),
    path("student/assignments/", views.StudentAssignmentListView.as_view(), name="student_assignments"),
    path(
        "student/assignments/<int:pk>/submit/", views.StudentSubmitView.as_view(), name="student_assignment_submit"
    ),
    path("approvals/", views.ApprovalQueueView.as_view(), name="approval_queue"),
    # instructor course content
    path("instructor/materials/", views.MaterialCollectionView.as_view(), name="material_list"),
    path("instructor/materials/<int:pk>/", views.MaterialDetailView.as_view(), name="material_detail"),
    path("instructor/announcements/", views.AnnouncementCollectionView.as_view(), name="announcement_list"),
    path(
        "instructor/announcements/<int:pk>/", views.AnnouncementDetailView.as_view(), name="announcement_detail"
    ),
    path("instructor/assignments/", views.AssignmentCollectionView.as_view(), name="assignment_list"),
    path("instructor/assignments/<int:pk>/", views.AssignmentDetailView.as_view(), name="assignment_detail"),
    path(
        "instructor/assignments/<int:pk>/submissions/",
        views.AssignmentSubmissionListView.as_view(),
        name="assignment_submissions",
    ),
    path(
        "instructor/submissions/<int:pk>/grade/", views.SubmissionGradeView.as_view(), name="submission_grade"
    ),
    # dashboards
    path("dashboard/student/", views.StudentDashboardApi.as_view(), name="student_dashboard"),
    path("dashboard/instructor/", views.InstructorDashboardApi.as_view(), name="instructor_dashboard"),
    path("dashboard/admin/trend/", views.AdminTrendApi.as_view(), name="admin_trend"),
    path("dashboard/admin/capacity/", views.AdminCapacityApi.as_view(), name="admin_capacity"),
    path("dashboard/admin/departments/", views.AdminDepartmentsApi.as_view(), name="admin_departments"),
    path("dashboard/metrics/", views.DashboardMetricsApi.as_view(), name="dashboard_metrics"),
    # charts
    path("charts/grades-by-course/", views.GradesByCourseChart.as_view(), name="chart_grades_by_course"),
    path("charts/course-capacity/", views.CourseCapacityChart.as_view(), name="chart_course_capacity"),
    path("charts/grade-distribution/", views.GradeDistributionChart.as_view(), name="chart_grade_distribution"),
    path("charts/role-distribution/", views.RoleDistributionChart.as_view(), name="chart_role_distribution"),
    path("charts/enrollment-heatmap/", views.EnrollmentHeatmapChart.as_view(), name="chart_enrollment_heatmap"),
]

urlpatterns = [
    path("admin/", admin.site.urls),
    path("accounts/home/", views.AccountHomeView.as_view(), name="account_home"),
    path("api/", include(api_patterns)),
]
