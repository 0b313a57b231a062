import academy.models
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Achievement",
            fields=[
                ("id", models.CharField(max_length=50, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True)),
                ("points", models.PositiveIntegerField(default=0)),
                ("tier", models.CharField(blank=True, max_length=20)),
                ("image_url", models.URLField(blank=True, max_length=500)),
                ("category", models.CharField(blank=True, max_length=50)),
                (
                    "rarity",
                    models.CharField(
                        choices=[("comum", "Comum"), ("rara", "Rara"), ("epica", "Épica"), ("lendaria", "Lendária")],
                        default="comum",
                        max_length=20,
                    ),
                ),
                ("criterion", models.CharField(blank=True, help_text="Human-readable criterion", max_length=255)),
                (
                    "criterion_type",
                    models.CharField(
                        choices=[
                            ("quizzes", "Quizzes concluídos"),
                            ("modules", "Módulos concluídos"),
                            ("activities", "Atividades enviadas"),
                        ],
                        max_length=20,
                    ),
                ),
                ("criterion_count", models.IntegerField(default=1)),
                (
                    "status",
                    models.CharField(choices=[("Ativa", "Ativa"), ("Inativa", "Inativa")], default="Ativa", max_length=20),
                ),
                ("sort_order", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["sort_order", "created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="Classroom",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("code", models.CharField(blank=True, max_length=10, unique=True)),
                ("cover_image_url", models.URLField(blank=True, max_length=500)),
                ("is_archived", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "teacher",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="managed_classes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "students",
                    models.ManyToManyField(blank=True, related_name="enrolled_classes", to=settings.AUTH_USER_MODEL),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="ClassNotice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("text", models.TextField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "author",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="class_notices",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "classroom",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notices",
                        to="academy.classroom",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="AttendanceSession",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                (
                    "shift",
                    models.CharField(
                        choices=[("matutino", "Matutino"), ("vespertino", "Vespertino"), ("noturno", "Noturno")],
                        max_length=20,
                    ),
                ),
                ("period", models.PositiveSmallIntegerField(help_text="Horário (1º, 2º, ...)")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "classroom",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendance_sessions",
                        to="academy.classroom",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="created_attendance_sessions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "shift", "period"],
                "unique_together": {("classroom", "date", "shift", "period")},
            },
        ),
        migrations.CreateModel(
            name="AttendanceRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "status",
                    models.CharField(
                        choices=[("presente", "Presente"), ("ausente", "Ausente"), ("pendente", "Pendente")],
                        default="pendente",
                        max_length=20,
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "session",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="records",
                        to="academy.attendancesession",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendance_records",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["student__full_name"],
                "unique_together": {("session", "student")},
            },
        ),
        migrations.CreateModel(
            name="Module",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("cover_image_url", models.URLField(blank=True, max_length=500)),
                ("video_url", models.URLField(blank=True, max_length=500)),
                ("duration", models.CharField(blank=True, max_length=50)),
                ("subjects", models.JSONField(blank=True, default=list, help_text="Matérias")),
                ("series", models.JSONField(blank=True, default=list, help_text="Séries / anos escolares")),
                ("historical_year", models.IntegerField(blank=True, null=True)),
                ("historical_era", models.CharField(blank=True, max_length=100)),
                (
                    "visibility",
                    models.CharField(
                        choices=[
                            ("public", "Pública"),
                            ("specific_class", "Turmas específicas"),
                            ("private", "Privada"),
                        ],
                        default="public",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(choices=[("Rascunho", "Rascunho"), ("Ativo", "Ativo")], default="Ativo", max_length=20),
                ),
                ("pages", models.JSONField(blank=True, default=list, help_text="Page contents")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="modules",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "classes",
                    models.ManyToManyField(blank=True, related_name="modules", to="academy.classroom"),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["status", "visibility"], name="module_status_visibility_idx")],
            },
        ),
        migrations.CreateModel(
            name="ModuleProgress",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("progress", models.PositiveSmallIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[("Em andamento", "Em andamento"), ("Concluído", "Concluído")],
                        default="Em andamento",
                        max_length=20,
                    ),
                ),
                ("last_updated", models.DateTimeField(auto_now=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "module",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="progress_entries",
                        to="academy.module",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="module_progress",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "unique_together": {("student", "module")},
            },
        ),
        migrations.CreateModel(
            name="Activity",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "activity_type",
                    models.CharField(
                        choices=[
                            ("VisualSourceAnalysis", "Análise de fonte visual"),
                            ("ConceptConnection", "Conexão de conceitos"),
                            ("AdvanceOrganizer", "Organizador prévio"),
                            ("ProgressiveTree", "Árvore progressiva"),
                            ("IntegrativeDragDrop", "Arrastar e soltar integrativo"),
                            ("Discursiva", "Discursiva"),
                        ],
                        default="Discursiva",
                        max_length=30,
                    ),
                ),
                ("points", models.PositiveIntegerField(default=10)),
                ("subject", models.CharField(blank=True, max_length=100)),
                ("unit", models.CharField(blank=True, help_text="Unidade letiva", max_length=50)),
                ("due_date", models.DateTimeField(blank=True, null=True)),
                ("allow_file_upload", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(
                        choices=[("Rascunho", "Rascunho"), ("Pendente", "Pendente")],
                        default="Pendente",
                        max_length=20,
                    ),
                ),
                ("items", models.JSONField(blank=True, default=list)),
                ("data", models.JSONField(blank=True, default=dict, help_text="Interactive payload for the activity type")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "classroom",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="activities",
                        to="academy.classroom",
                    ),
                ),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="created_activities",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "verbose_name_plural": "Activities",
            },
        ),
        migrations.CreateModel(
            name="ActivitySubmission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("content", models.JSONField(blank=True, default=dict)),
                (
                    "status",
                    models.CharField(
                        choices=[("Aguardando correção", "Aguardando correção"), ("Corrigido", "Corrigido")],
                        default="Aguardando correção",
                        max_length=30,
                    ),
                ),
                ("grade", models.FloatField(blank=True, null=True)),
                ("feedback", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("graded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "activity",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="submissions",
                        to="academy.activity",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="activity_submissions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "unique_together": {("activity", "student")},
            },
        ),
        migrations.CreateModel(
            name="Quiz",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("questions", models.JSONField(blank=True, default=list)),
                (
                    "status",
                    models.CharField(choices=[("Rascunho", "Rascunho"), ("Ativo", "Ativo")], default="Ativo", max_length=20),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "classroom",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quizzes",
                        to="academy.classroom",
                    ),
                ),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="created_quizzes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "module",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quizzes",
                        to="academy.module",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "verbose_name_plural": "Quizzes",
            },
        ),
        migrations.CreateModel(
            name="QuizResult",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("score", models.FloatField(default=0.0)),
                ("total_questions", models.IntegerField(default=0)),
                ("correct_answers", models.IntegerField(default=0)),
                ("answers", models.JSONField(blank=True, default=dict)),
                ("submitted_at", models.DateTimeField(auto_now_add=True)),
                (
                    "quiz",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="results",
                        to="academy.quiz",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="quiz_results",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "unique_together": {("quiz", "student")},
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("actor_name", models.CharField(blank=True, max_length=255)),
                (
                    "notification_type",
                    models.CharField(
                        choices=[
                            ("activity_post", "Nova atividade"),
                            ("activity_submission", "Atividade enviada"),
                            ("module_post", "Novo módulo"),
                            ("notice_post", "Novo aviso"),
                            ("activity_correction", "Atividade corrigida"),
                            ("achievement_unlocked", "Conquista desbloqueada"),
                        ],
                        max_length=30,
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("text", models.TextField()),
                ("deep_link", models.JSONField(blank=True, default=dict)),
                (
                    "urgency",
                    models.CharField(
                        choices=[("low", "Baixa"), ("medium", "Média"), ("high", "Alta")],
                        default="medium",
                        max_length=10,
                    ),
                ),
                ("read", models.BooleanField(default=False)),
                ("group_count", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sent_notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["user", "read", "-created_at"], name="notification_unread_idx")],
            },
        ),
        migrations.CreateModel(
            name="UserGamification",
            fields=[
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="gamification",
                        serialize=False,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                ("xp", models.PositiveIntegerField(default=0)),
                ("level", models.PositiveIntegerField(default=1)),
                ("stats", models.JSONField(blank=True, default=academy.models.default_stats)),
                ("unlocked", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
    ]
