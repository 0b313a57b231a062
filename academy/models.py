import secrets
import string

from django.conf import settings
from django.db import models
from django.utils import timezone


def generate_join_code():
    """Generate a 6-character class join code."""
    chars = string.ascii_uppercase + string.digits
    return ''.join(secrets.choice(chars) for _ in range(6))


class Classroom(models.Model):
    """Turma gerenciada por um professor."""
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=10, unique=True, blank=True)
    cover_image_url = models.URLField(max_length=500, blank=True)
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="managed_classes",
    )
    students = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="enrolled_classes",
        blank=True,
    )
    co_teachers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="ClassTeacher",
        related_name="co_taught_classes",
        blank=True,
    )
    is_archived = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def save(self, *args, **kwargs):
        if not self.code:
            # Auto-generate unique join code
            for _ in range(10):  # Try up to 10 times
                code = generate_join_code()
                if not Classroom.objects.filter(code=code).exists():
                    self.code = code
                    break
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.name

    def has_teacher(self, user) -> bool:
        """Owner or co-teacher."""
        if self.teacher_id == user.id:
            return True
        return self.co_teachers.filter(pk=user.pk).exists()


class ClassTeacher(models.Model):
    """Co-teacher of a class and the subject they teach there."""
    classroom = models.ForeignKey(
        Classroom,
        on_delete=models.CASCADE,
        related_name="teacher_links",
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="class_links",
    )
    subject = models.CharField(max_length=100, blank=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('classroom', 'teacher')

    def __str__(self):
        return f"{self.teacher.email} - {self.classroom.name} ({self.subject})"


class ClassInvitation(models.Model):
    """
    Pending co-teaching invitation.
    Accepting adds the invitee as a ClassTeacher; accepting or declining deletes the row.
    """
    classroom = models.ForeignKey(
        Classroom,
        on_delete=models.CASCADE,
        related_name="invitations",
    )
    inviter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_class_invitations",
    )
    invitee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="class_invitations",
    )
    subject = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('classroom', 'invitee')
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.invitee.email} -> {self.classroom.name}"

    def accept(self) -> ClassTeacher:
        link, _ = ClassTeacher.objects.update_or_create(
            classroom=self.classroom,
            teacher=self.invitee,
            defaults={"subject": self.subject},
        )
        self.delete()
        return link


class ClassNotice(models.Model):
    """Aviso publicado pelo professor no mural da turma."""
    classroom = models.ForeignKey(
        Classroom,
        on_delete=models.CASCADE,
        related_name="notices",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="class_notices",
    )
    text = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.classroom.name}: {self.text[:50]}"


# ============================================
# ATTENDANCE
# ============================================

class AttendanceSession(models.Model):
    """
    Chamada de uma turma em uma data/turno/horário.
    One AttendanceRecord per enrolled student is created with the session.
    """
    SHIFT_CHOICES = [
        ("matutino", "Matutino"),
        ("vespertino", "Vespertino"),
        ("noturno", "Noturno"),
    ]

    classroom = models.ForeignKey(
        Classroom,
        on_delete=models.CASCADE,
        related_name="attendance_sessions",
    )
    date = models.DateField()
    shift = models.CharField(max_length=20, choices=SHIFT_CHOICES)
    period = models.PositiveSmallIntegerField(help_text="Horário (1º, 2º, ...)")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="created_attendance_sessions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('classroom', 'date', 'shift', 'period')
        ordering = ['-date', 'shift', 'period']

    def __str__(self):
        return f"{self.classroom.name} - {self.date} ({self.period}º {self.shift})"

    def populate_records(self) -> int:
        """Create a pending record for every enrolled student still missing one."""
        existing = set(self.records.values_list('student_id', flat=True))
        records = [
            AttendanceRecord(session=self, student=student)
            for student in self.classroom.students.all()
            if student.pk not in existing
        ]
        AttendanceRecord.objects.bulk_create(records)
        return len(records)

    def summary(self) -> dict:
        counts = dict(
            self.records.order_by().values_list('status').annotate(total=models.Count('id'))
        )
        return {
            "present": counts.get("presente", 0),
            "absent": counts.get("ausente", 0),
            "pending": counts.get("pendente", 0),
        }


class AttendanceRecord(models.Model):
    STATUS_CHOICES = [
        ("presente", "Presente"),
        ("ausente", "Ausente"),
        ("pendente", "Pendente"),
    ]

    session = models.ForeignKey(
        AttendanceSession,
        on_delete=models.CASCADE,
        related_name="records",
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="attendance_records",
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pendente")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('session', 'student')
        ordering = ['student__full_name']

    def __str__(self):
        return f"{self.student.email} - {self.session}: {self.status}"


# ============================================
# MODULES
# ============================================

class Module(models.Model):
    """Módulo didático (páginas de conteúdo) criado por um professor."""
    STATUS_CHOICES = [
        ("Rascunho", "Rascunho"),
        ("Ativo", "Ativo"),
    ]
    VISIBILITY_CHOICES = [
        ("public", "Pública"),
        ("specific_class", "Turmas específicas"),
        ("private", "Privada"),
    ]

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="modules",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    cover_image_url = models.URLField(max_length=500, blank=True)
    video_url = models.URLField(max_length=500, blank=True)
    duration = models.CharField(max_length=50, blank=True)
    subjects = models.JSONField(default=list, blank=True, help_text="Matérias")
    series = models.JSONField(default=list, blank=True, help_text="Séries / anos escolares")
    historical_year = models.IntegerField(null=True, blank=True)
    historical_era = models.CharField(max_length=100, blank=True)
    visibility = models.CharField(max_length=20, choices=VISIBILITY_CHOICES, default="public")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="Ativo")
    classes = models.ManyToManyField(
        Classroom,
        related_name="modules",
        blank=True,
    )
    pages = models.JSONField(default=list, blank=True, help_text="Page contents")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'visibility'], name='module_status_visibility_idx'),
        ]

    def __str__(self) -> str:
        return self.title


class ModuleProgress(models.Model):
    """Progresso do aluno em um módulo (0 a 100)."""
    STATUS_CHOICES = [
        ("Em andamento", "Em andamento"),
        ("Concluído", "Concluído"),
    ]

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="module_progress",
    )
    module = models.ForeignKey(
        Module,
        on_delete=models.CASCADE,
        related_name="progress_entries",
    )
    progress = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="Em andamento")
    last_updated = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ("student", "module")

    def __str__(self) -> str:
        return f"{self.student} - {self.module}: {self.progress}%"

    def update_progress(self, value: int) -> bool:
        """
        Store new progress (clamped to 0..100) on a saved entry.
        Returns True only the first time the module reaches 100.

        completed_at is claimed with a conditional UPDATE, so two requests
        holding stale copies of the row cannot both report the completion.
        """
        self.progress = max(0, min(100, int(value)))
        self.status = "Concluído" if self.progress == 100 else "Em andamento"
        self.save(update_fields=["progress", "status", "last_updated"])

        if self.progress < 100 or self.completed_at is not None:
            return False

        now = timezone.now()
        claimed = ModuleProgress.objects.filter(pk=self.pk, completed_at__isnull=True).update(completed_at=now)
        if claimed:
            self.completed_at = now
        return bool(claimed)


# ============================================
# ACTIVITIES
# ============================================

class Activity(models.Model):
    """Atividade interativa - rascunho ou publicada para uma turma."""
    STATUS_CHOICES = [
        ("Rascunho", "Rascunho"),
        ("Pendente", "Pendente"),
    ]
    TYPE_CHOICES = [
        ("VisualSourceAnalysis", "Análise de fonte visual"),
        ("ConceptConnection", "Conexão de conceitos"),
        ("AdvanceOrganizer", "Organizador prévio"),
        ("ProgressiveTree", "Árvore progressiva"),
        ("IntegrativeDragDrop", "Arrastar e soltar integrativo"),
        ("Discursiva", "Discursiva"),
    ]

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="created_activities",
    )
    classroom = models.ForeignKey(
        Classroom,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activities",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    activity_type = models.CharField(max_length=30, choices=TYPE_CHOICES, default="Discursiva")
    points = models.PositiveIntegerField(default=10)
    subject = models.CharField(max_length=100, blank=True)
    unit = models.CharField(max_length=50, blank=True, help_text="Unidade letiva")
    due_date = models.DateTimeField(null=True, blank=True)
    allow_file_upload = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="Pendente")
    items = models.JSONField(default=list, blank=True)
    data = models.JSONField(default=dict, blank=True, help_text="Interactive payload for the activity type")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = "Activities"

    def __str__(self) -> str:
        return self.title

    def publish_copy(self, classroom, due_date=None, points=None) -> "Activity":
        """Clone this draft into a published activity for a class."""
        return Activity.objects.create(
            creator=self.creator,
            classroom=classroom,
            title=self.title,
            description=self.description,
            activity_type=self.activity_type,
            points=self.points if points is None else points,
            subject=self.subject,
            unit=self.unit,
            due_date=due_date,
            allow_file_upload=self.allow_file_upload,
            status="Pendente",
            items=self.items,
            data=self.data,
        )


class ActivitySubmission(models.Model):
    """Resposta do aluno a uma atividade."""
    STATUS_CHOICES = [
        ("Aguardando correção", "Aguardando correção"),
        ("Corrigido", "Corrigido"),
    ]

    activity = models.ForeignKey(
        Activity,
        on_delete=models.CASCADE,
        related_name="submissions",
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="activity_submissions",
    )
    content = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default="Aguardando correção")
    grade = models.FloatField(null=True, blank=True)
    feedback = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    graded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ("activity", "student")
        ordering = ['created_at']

    def __str__(self) -> str:
        return f"{self.student} - {self.activity} ({self.status})"

    def grade_submission(self, grade: float, feedback: str = "") -> None:
        self.grade = grade
        self.feedback = feedback
        self.status = "Corrigido"
        self.graded_at = timezone.now()
        self.save(update_fields=['grade', 'feedback', 'status', 'graded_at', 'updated_at'])


# ============================================
# QUIZZES
# ============================================

class Quiz(models.Model):
    """
    Quiz de múltipla escolha.
    questions: [{"id": "q1", "text": "...", "options": [...], "answer": "..."}]
    """
    STATUS_CHOICES = [
        ("Rascunho", "Rascunho"),
        ("Ativo", "Ativo"),
    ]

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="created_quizzes",
    )
    classroom = models.ForeignKey(
        Classroom,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quizzes",
    )
    module = models.ForeignKey(
        Module,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quizzes",
    )
    title = models.CharField(max_length=255)
    questions = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="Ativo")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = "Quizzes"

    def __str__(self) -> str:
        return self.title

    def score_answers(self, answers: dict) -> tuple:
        """Return (correct, total) for a mapping of question id -> chosen answer."""
        total = len(self.questions)
        correct = 0
        for question in self.questions:
            expected = question.get("answer")
            if expected is None:
                continue
            given = answers.get(str(question.get("id")))
            if given is not None and str(given).strip().lower() == str(expected).strip().lower():
                correct += 1
        return correct, total


class QuizResult(models.Model):
    """Resultado do quiz de um aluno."""
    quiz = models.ForeignKey(
        Quiz,
        on_delete=models.CASCADE,
        related_name="results",
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="quiz_results",
    )
    score = models.FloatField(default=0.0)
    total_questions = models.IntegerField(default=0)
    correct_answers = models.IntegerField(default=0)
    answers = models.JSONField(default=dict, blank=True)
    submitted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("quiz", "student")

    def __str__(self) -> str:
        return f"{self.student} - {self.quiz} - {self.score}"


# ============================================
# NOTIFICATIONS
# ============================================

class Notification(models.Model):
    TYPE_CHOICES = [
        ("activity_post", "Nova atividade"),
        ("activity_submission", "Atividade enviada"),
        ("module_post", "Novo módulo"),
        ("notice_post", "Novo aviso"),
        ("activity_correction", "Atividade corrigida"),
        ("achievement_unlocked", "Conquista desbloqueada"),
    ]
    URGENCY_CHOICES = [
        ("low", "Baixa"),
        ("medium", "Média"),
        ("high", "Alta"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_notifications",
    )
    actor_name = models.CharField(max_length=255, blank=True)
    notification_type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    text = models.TextField()
    deep_link = models.JSONField(default=dict, blank=True)
    urgency = models.CharField(max_length=10, choices=URGENCY_CHOICES, default="medium")
    read = models.BooleanField(default=False)
    group_count = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'read', '-created_at'], name='notification_unread_idx'),
        ]

    def __str__(self):
        return f"{self.user.email}: {self.notification_type} - {self.title}"


# ============================================
# ACHIEVEMENTS SYSTEM
# ============================================

class Achievement(models.Model):
    """
    Achievement catalog entry.
    Unlock conditions are checked by achievement_engine.check_new_achievements.
    """
    CRITERION_TYPES = [
        ('quizzes', 'Quizzes concluídos'),
        ('modules', 'Módulos concluídos'),
        ('activities', 'Atividades enviadas'),
    ]

    STATUS_CHOICES = [
        ('Ativa', 'Ativa'),
        ('Inativa', 'Inativa'),
    ]

    RARITY_CHOICES = [
        ('comum', 'Comum'),
        ('rara', 'Rara'),
        ('epica', 'Épica'),
        ('lendaria', 'Lendária'),
    ]

    id = models.CharField(max_length=50, primary_key=True)  # e.g. 'quiz_3', 'modules_5'
    title = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    points = models.PositiveIntegerField(default=0)
    tier = models.CharField(max_length=20, blank=True)
    image_url = models.URLField(max_length=500, blank=True)
    category = models.CharField(max_length=50, blank=True)
    rarity = models.CharField(max_length=20, choices=RARITY_CHOICES, default='comum')

    criterion = models.CharField(max_length=255, blank=True, help_text="Human-readable criterion")
    criterion_type = models.CharField(max_length=20, choices=CRITERION_TYPES)
    criterion_count = models.IntegerField(default=1)  # Value needed to unlock

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Ativa')
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['sort_order', 'created_at', 'id']

    def __str__(self):
        return self.title

    @property
    def is_active(self) -> bool:
        return self.status == 'Ativa'


def default_stats():
    return {
        "quizzes_completed": 0,
        "modules_completed": 0,
        "activities_completed": 0,
    }


class UserGamification(models.Model):
    """
    Per-user gamification record: xp, level, counters and unlocked achievements.
    unlocked: {achievement_id: {"date": iso8601, "seen": bool}}
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="gamification",
    )
    xp = models.PositiveIntegerField(default=0)
    level = models.PositiveIntegerField(default=1)
    stats = models.JSONField(default=default_stats, blank=True)
    unlocked = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user.email} - Level {self.level} ({self.xp} XP)"

    def counters(self) -> dict:
        """Stats merged over the defaults. Missing or non-numeric counters read as 0."""
        merged = default_stats()
        merged.update(self.stats or {})
        for key in default_stats():
            try:
                merged[key] = int(merged[key] or 0)
            except (TypeError, ValueError):
                merged[key] = 0
        return merged

    def unseen_ids(self) -> list:
        return [key for key, entry in self.unlocked.items() if not entry.get("seen")]
