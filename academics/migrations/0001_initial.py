# Generated manually for initial Django models
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.core.validators
import django.db.models.deletion
import django.utils.timezone


GRADE_VALIDATORS = [
    django.core.validators.MinValueValidator(Decimal("0.00")),
    django.core.validators.MaxValueValidator(Decimal("4.00")),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Department",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True, verbose_name="Code")),
                ("name", models.CharField(max_length=255, verbose_name="Name")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                ("office_location", models.CharField(blank=True, max_length=255, verbose_name="Office location")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="Email")),
                ("phone", models.CharField(blank=True, max_length=50, verbose_name="Phone")),
            ],
            options={
                "verbose_name": "department",
                "verbose_name_plural": "departments",
                "ordering": ["code"],
            },
        ),
        migrations.CreateModel(
            name="Instructor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=100, verbose_name="First name")),
                ("last_name", models.CharField(max_length=100, verbose_name="Last name")),
                ("email", models.EmailField(max_length=254, unique=True, verbose_name="Email")),
                ("title", models.CharField(blank=True, max_length=100, verbose_name="Title")),
                ("office_phone", models.CharField(blank=True, max_length=50, verbose_name="Office phone")),
                (
                    "department",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="instructors",
                        to="academics.department",
                        verbose_name="Department",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="instructor_profile",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Account",
                    ),
                ),
            ],
            options={
                "verbose_name": "instructor",
                "verbose_name_plural": "instructors",
                "ordering": ["last_name", "first_name"],
            },
        ),
        migrations.AddField(
            model_name="department",
            name="chair",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="chaired_departments",
                to="academics.instructor",
                verbose_name="Chair",
            ),
        ),
        migrations.CreateModel(
            name="Student",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, verbose_name="Name")),
                ("email", models.EmailField(max_length=254, unique=True, verbose_name="Email")),
                ("major", models.CharField(blank=True, max_length=255, verbose_name="Major")),
                ("phone", models.CharField(blank=True, max_length=50, verbose_name="Phone")),
                (
                    "academic_level",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("freshman", "Freshman"),
                            ("sophomore", "Sophomore"),
                            ("junior", "Junior"),
                            ("senior", "Senior"),
                            ("graduate", "Graduate"),
                        ],
                        max_length=20,
                        verbose_name="Academic level",
                    ),
                ),
                (
                    "gpa",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=3, verbose_name="GPA"),
                ),
                ("total_credits_required", models.PositiveIntegerField(default=120, verbose_name="Credits required")),
                (
                    "enrollment_date",
                    models.DateField(default=django.utils.timezone.localdate, verbose_name="Enrollment date"),
                ),
                (
                    "advisor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="advisees",
                        to="academics.instructor",
                        verbose_name="Advisor",
                    ),
                ),
                (
                    "department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="students",
                        to="academics.department",
                        verbose_name="Department",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="student_profile",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Account",
                    ),
                ),
            ],
            options={
                "verbose_name": "student",
                "verbose_name_plural": "students",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Course",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, verbose_name="Code")),
                ("title", models.CharField(max_length=255, verbose_name="Title")),
                ("credits", models.PositiveSmallIntegerField(default=3, verbose_name="Credits")),
                ("capacity", models.PositiveIntegerField(default=30, verbose_name="Capacity")),
                ("requires_approval", models.BooleanField(default=False, verbose_name="Requires approval")),
                ("start_date", models.DateField(blank=True, null=True, verbose_name="Start date")),
                ("end_date", models.DateField(blank=True, null=True, verbose_name="End date")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                (
                    "department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="courses",
                        to="academics.department",
                        verbose_name="Department",
                    ),
                ),
                (
                    "instructors",
                    models.ManyToManyField(
                        blank=True, related_name="courses", to="academics.instructor", verbose_name="Instructors"
                    ),
                ),
            ],
            options={
                "verbose_name": "course",
                "verbose_name_plural": "courses",
                "ordering": ["code"],
                "constraints": [
                    models.UniqueConstraint(fields=("code", "department"), name="course_code_department_unique"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Enrollment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("term", models.CharField(max_length=20, verbose_name="Term")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("dropped", "Dropped"),
                            ("completed", "Completed"),
                        ],
                        default="pending",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                (
                    "numeric_grade",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=3,
                        null=True,
                        validators=GRADE_VALIDATORS,
                        verbose_name="Grade",
                    ),
                ),
                ("is_repeat_attempt", models.BooleanField(default=False, verbose_name="Repeat attempt")),
                ("attempt_number", models.PositiveSmallIntegerField(default=1, verbose_name="Attempt")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                (
                    "progress_percentage",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=5, verbose_name="Progress %"),
                ),
                ("total_hours_spent", models.PositiveIntegerField(default=0, verbose_name="Hours spent")),
                ("last_access_date", models.DateTimeField(blank=True, null=True, verbose_name="Last access")),
                ("enrolled_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Enrolled at")),
                ("approved_at", models.DateTimeField(blank=True, null=True, verbose_name="Approved at")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="Completed at")),
                (
                    "course",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="enrollments",
                        to="academics.course",
                        verbose_name="Course",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="enrollments",
                        to="academics.student",
                        verbose_name="Student",
                    ),
                ),
            ],
            options={
                "verbose_name": "enrollment",
                "verbose_name_plural": "enrollments",
                "ordering": ["student__name", "course__code"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("student", "course", "term"), name="enrollment_student_course_term_unique"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="EnrollmentHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("term", models.CharField(max_length=20, verbose_name="Term")),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("created", "Created"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("graded", "Graded"),
                            ("completed", "Completed"),
                            ("updated", "Updated"),
                            ("dropped", "Dropped"),
                            ("deleted", "Deleted"),
                        ],
                        max_length=20,
                        verbose_name="Action",
                    ),
                ),
                ("old_status", models.CharField(blank=True, max_length=20, verbose_name="Old status")),
                ("new_status", models.CharField(blank=True, max_length=20, verbose_name="New status")),
                (
                    "old_grade",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=3, null=True, verbose_name="Old grade"),
                ),
                (
                    "new_grade",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=3, null=True, verbose_name="New grade"),
                ),
                ("note", models.TextField(blank=True, verbose_name="Note")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Timestamp")),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="enrollment_changes",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Changed by",
                    ),
                ),
                (
                    "course",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="enrollment_history",
                        to="academics.course",
                        verbose_name="Course",
                    ),
                ),
                (
                    "enrollment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="history",
                        to="academics.enrollment",
                        verbose_name="Enrollment",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="enrollment_history",
                        to="academics.student",
                        verbose_name="Student",
                    ),
                ),
            ],
            options={
                "verbose_name": "enrollment history",
                "verbose_name_plural": "enrollment history",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
