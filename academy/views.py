import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.response import Response

from .exceptions import GamificationPersistenceError, UnknownEventError
from .models import (
    Achievement,
    Activity,
    ActivitySubmission,
    AttendanceRecord,
    AttendanceSession,
    ClassInvitation,
    Classroom,
    Module,
    ModuleProgress,
    Notification,
    Quiz,
    QuizResult,
)
from .permissions import IsStudent, IsTeacher
from .serializers import (
    AchievementSerializer,
    ActivitySerializer,
    ActivitySubmissionSerializer,
    AttendanceRecordSerializer,
    AttendanceSessionDetailSerializer,
    AttendanceSessionSerializer,
    ClassInvitationSerializer,
    ClassNoticeSerializer,
    ClassroomDetailSerializer,
    ClassroomSerializer,
    GamificationEventSerializer,
    GradeSerializer,
    InviteTeacherSerializer,
    ModuleListSerializer,
    ModuleProgressSerializer,
    ModuleSerializer,
    NotificationSerializer,
    PublishActivitySerializer,
    PublishModuleSerializer,
    QuizResultSerializer,
    QuizSerializer,
)
from .services import GamificationService, ModuleSearchIndex
from .services.module_search import filter_modules, get_public_index
from .services.notifications import create_notification, notify_class_students, unread_for

logger = logging.getLogger(__name__)
User = get_user_model()

TEACHER_ACTIONS = {"create", "update", "partial_update", "destroy"}


def gamification_payload(result):
    return {
        "xp": result.state.xp,
        "level": result.state.level,
        "xp_gained": result.xp_gained,
        "leveled_up": result.leveled_up,
        "unlocked": AchievementSerializer(result.unlocked, many=True).data,
        "message": result.message,
    }


def run_gamification_event(user, event_type):
    """
    Process an event that follows a primary write (submission, result, progress).
    A persistence failure is logged and the primary write is kept.
    """
    try:
        result = GamificationService(user).process_event(event_type)
    except GamificationPersistenceError as e:
        logger.warning(f"Gamification skipped for {user.email} after {event_type}: {e}")
        return None
    return gamification_payload(result)


# ============================================
# CLASSES
# ============================================

class ClassroomViewSet(viewsets.ModelViewSet):
    """API endpoint para turmas."""
    serializer_class = ClassroomSerializer

    OWNER_ACTIONS = {"update", "partial_update", "destroy", "archive", "invite"}

    def get_permissions(self):
        if self.action in TEACHER_ACTIONS | self.OWNER_ACTIONS:
            return [IsTeacher()]
        if self.action in {"join", "leave"}:
            return [IsStudent()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        if user.is_teacher and self.action in self.OWNER_ACTIONS:
            queryset = Classroom.objects.filter(teacher=user)
        elif user.is_teacher:
            # Co-teachers see the class and use its notices and attendance
            queryset = Classroom.objects.filter(Q(teacher=user) | Q(co_teachers=user)).distinct()
        else:
            queryset = Classroom.objects.filter(students=user)

        if self.action == "list":
            archived = self.request.query_params.get("archived", "false").lower() == "true"
            queryset = queryset.filter(is_archived=archived)
        return queryset.select_related("teacher")

    def get_serializer_class(self):
        if self.action == "retrieve":
            return ClassroomDetailSerializer
        return ClassroomSerializer

    def perform_create(self, serializer):
        classroom = serializer.save(teacher=self.request.user)
        logger.info(f"Class {classroom.code} created by {self.request.user.email}")

    @action(detail=False, methods=["post"])
    def join(self, request):
        """Aluno entra na turma pelo código."""
        code = (request.data.get("code") or "").strip().upper()
        if not code:
            return Response({"error": "Informe o código da turma."}, status=status.HTTP_400_BAD_REQUEST)

        classroom = Classroom.objects.filter(code=code, is_archived=False).first()
        if not classroom:
            return Response({"error": "Código de turma inválido."}, status=status.HTTP_404_NOT_FOUND)

        if classroom.students.filter(pk=request.user.pk).exists():
            return Response({"error": "Você já está nesta turma."}, status=status.HTTP_400_BAD_REQUEST)

        classroom.students.add(request.user)
        logger.info(f"{request.user.email} joined class {classroom.code}")
        return Response(
            ClassroomSerializer(classroom, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        classroom = self.get_object()
        classroom.students.remove(request.user)
        return Response({"message": "Você saiu da turma."}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        """Arquiva (ou desarquiva com archived=false) a turma."""
        classroom = self.get_object()
        archived = request.data.get("archived", True)
        if isinstance(archived, str):
            archived = archived.lower() != "false"
        classroom.is_archived = bool(archived)
        classroom.save(update_fields=["is_archived"])
        return Response(ClassroomSerializer(classroom, context={"request": request}).data)

    @action(detail=True, methods=["get", "post"])
    def notices(self, request, pk=None):
        classroom = self.get_object()

        if request.method == "GET":
            serializer = ClassNoticeSerializer(classroom.notices.select_related("author"), many=True)
            return Response(serializer.data)

        if not classroom.has_teacher(request.user):
            return Response({"error": "Apenas o professor da turma pode publicar avisos."}, status=status.HTTP_403_FORBIDDEN)

        serializer = ClassNoticeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        notice = serializer.save(classroom=classroom, author=request.user)

        notify_class_students(
            classroom,
            "notice_post",
            title=f"Novo aviso em {classroom.name}",
            text=notice.text,
            actor=request.user,
        )
        return Response(ClassNoticeSerializer(notice).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get", "post"])
    def attendance(self, request, pk=None):
        """Lista as chamadas da turma ou abre uma nova."""
        classroom = self.get_object()
        if not classroom.has_teacher(request.user):
            return Response({"error": "Permissão negada."}, status=status.HTTP_403_FORBIDDEN)

        if request.method == "GET":
            sessions = classroom.attendance_sessions.all()
            return Response(AttendanceSessionSerializer(sessions, many=True).data)

        serializer = AttendanceSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            with transaction.atomic():
                session = serializer.save(classroom=classroom, created_by=request.user)
                session.populate_records()
        except IntegrityError:
            return Response(
                {"error": "Já existe uma chamada para esta data, turno e horário."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        logger.info(f"Attendance opened for {classroom.code} on {session.date} ({session.period}º {session.shift})")
        return Response(AttendanceSessionDetailSerializer(session).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def invite(self, request, pk=None):
        """Convida outro professor (por email) para a co-docência da turma."""
        classroom = self.get_object()
        serializer = InviteTeacherSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        invitee = User.objects.filter(email__iexact=serializer.validated_data["email"]).first()
        if not invitee:
            return Response({"error": "Usuário não encontrado."}, status=status.HTTP_404_NOT_FOUND)
        if not invitee.is_teacher:
            return Response({"error": "O usuário não é um professor."}, status=status.HTTP_400_BAD_REQUEST)
        if classroom.has_teacher(invitee):
            return Response({"error": "Este professor já leciona nesta turma."}, status=status.HTTP_400_BAD_REQUEST)

        invitation, created = ClassInvitation.objects.get_or_create(
            classroom=classroom,
            invitee=invitee,
            defaults={"inviter": request.user, "subject": serializer.validated_data["subject"]},
        )
        if not created:
            return Response({"error": "Já existe um convite pendente para este professor."}, status=status.HTTP_400_BAD_REQUEST)

        create_notification(
            user=invitee,
            notification_type="notice_post",
            title="Convite para Co-Docência",
            text=f'Você foi convidado para ser professor da turma "{classroom.name}".',
            actor=request.user,
        )
        logger.info(f"{request.user.email} invited {invitee.email} to co-teach {classroom.code}")
        return Response(ClassInvitationSerializer(invitation).data, status=status.HTTP_201_CREATED)


class ClassInvitationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Convites de co-docência recebidos pelo professor."""
    serializer_class = ClassInvitationSerializer
    permission_classes = [IsTeacher]

    def get_queryset(self):
        return ClassInvitation.objects.filter(invitee=self.request.user).select_related(
            "classroom", "inviter", "invitee"
        )

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):
        invitation = self.get_object()
        with transaction.atomic():
            link = invitation.accept()

        logger.info(f"{request.user.email} joined {link.classroom.code} as co-teacher ({link.subject})")
        return Response(ClassroomDetailSerializer(link.classroom, context={"request": request}).data)

    @action(detail=True, methods=["post"])
    def decline(self, request, pk=None):
        invitation = self.get_object()
        invitation.delete()
        return Response({"message": "Convite recusado."}, status=status.HTTP_200_OK)


@api_view(["GET", "DELETE"])
@permission_classes([IsTeacher])
def attendance_session_detail(request, session_id):
    session = get_object_or_404(
        AttendanceSession.objects.filter(
            Q(classroom__teacher=request.user) | Q(classroom__co_teachers=request.user)
        ).distinct().select_related("classroom"),
        id=session_id,
    )
    if request.method == "DELETE":
        session.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    return Response(AttendanceSessionDetailSerializer(session).data)


@api_view(["PATCH"])
@permission_classes([IsTeacher])
def attendance_record_update(request, record_id):
    """Marca presença/falta de um aluno."""
    record = get_object_or_404(
        AttendanceRecord.objects.filter(
            Q(session__classroom__teacher=request.user) | Q(session__classroom__co_teachers=request.user)
        ).distinct(),
        id=record_id,
    )
    serializer = AttendanceRecordSerializer(record, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)


# ============================================
# MODULES
# ============================================

class ModuleViewSet(viewsets.ModelViewSet):
    """API endpoint para módulos didáticos."""
    serializer_class = ModuleSerializer

    def get_permissions(self):
        if self.action in TEACHER_ACTIONS | {"publish"}:
            return [IsTeacher()]
        if self.action == "progress":
            return [IsStudent()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        if user.is_teacher:
            return Module.objects.filter(creator=user).prefetch_related("classes")
        return self.visible_modules(user)

    @staticmethod
    def visible_modules(user):
        """Active modules a student may open: public ones plus those linked to their classes."""
        public = Module.objects.filter(status="Ativo", visibility="public")
        linked = Module.objects.filter(status="Ativo", classes__students=user)
        return (public | linked).distinct().select_related("creator").prefetch_related("classes")

    def get_serializer_class(self):
        if self.action == "list":
            return ModuleListSerializer
        return ModuleSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.action == "list" and self.request.user.is_authenticated:
            context["progress_by_module"] = self.progress_by_module(self.request.user)
        return context

    @staticmethod
    def progress_by_module(user):
        return {entry.module_id: entry for entry in ModuleProgress.objects.filter(student=user)}

    def perform_create(self, serializer):
        module = serializer.save(creator=self.request.user)
        if module.status == "Ativo":
            self.notify_classes(module)

    def notify_classes(self, module):
        for classroom in module.classes.all():
            notify_class_students(
                classroom,
                "module_post",
                title=f"Novo módulo: {module.title}",
                text=module.description or module.title,
                actor=self.request.user,
                module_id=module.id,
            )

    @action(detail=True, methods=["post"])
    def publish(self, request, pk=None):
        """Publica um rascunho, opcionalmente vinculando turmas."""
        module = self.get_object()
        serializer = PublishModuleSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)

        if "classes" in serializer.validated_data:
            classes = serializer.validated_data["classes"]
            module.classes.set(classes)
            if classes:
                module.visibility = "specific_class"

        module.status = "Ativo"
        module.save()
        self.notify_classes(module)

        logger.info(f"Module {module.id} published by {request.user.email}")
        return Response(ModuleSerializer(module, context={"request": request}).data)

    @action(detail=True, methods=["get", "post"])
    def progress(self, request, pk=None):
        """
        GET: current progress of the student.
        POST {"progress": 0..100}: store progress; first completion counts as module_complete.
        """
        module = self.get_object()

        if request.method == "GET":
            entry = ModuleProgress.objects.filter(student=request.user, module=module).first()
            if not entry:
                return Response({"module": module.id, "progress": 0, "status": "Em andamento"})
            return Response(ModuleProgressSerializer(entry).data)

        try:
            value = int(request.data.get("progress"))
        except (TypeError, ValueError):
            return Response({"error": "Progresso inválido."}, status=status.HTTP_400_BAD_REQUEST)

        entry, _ = ModuleProgress.objects.get_or_create(student=request.user, module=module)
        just_completed = entry.update_progress(value)

        data = ModuleProgressSerializer(entry).data
        data["gamification"] = run_gamification_event(request.user, "module_complete") if just_completed else None
        return Response(data)

    @action(detail=False, methods=["get"])
    def search(self, request):
        """
        GET /api/v1/modules/search/?q=&scope=public|my_modules&subject=&series=&status=
        """
        params = request.query_params
        scope = params.get("scope", "public")
        progress_by_module = self.progress_by_module(request.user)

        if scope == "my_modules":
            modules = Module.objects.filter(id__in=progress_by_module.keys()).select_related("creator")
            index = ModuleSearchIndex(modules)
        elif scope == "public":
            index = get_public_index()
        else:
            return Response({"error": "Escopo inválido."}, status=status.HTTP_400_BAD_REQUEST)

        results = filter_modules(
            index.search(params.get("q", "")),
            subject=params.get("subject") or None,
            series=params.get("series") or None,
            status=params.get("status") or None,
            progress_by_module=progress_by_module,
        )

        serializer = ModuleListSerializer(
            results,
            many=True,
            context={"request": request, "progress_by_module": progress_by_module},
        )
        return Response({"count": len(results), "results": serializer.data})


# ============================================
# ACTIVITIES
# ============================================

class ActivityViewSet(viewsets.ModelViewSet):
    """API endpoint para atividades."""
    serializer_class = ActivitySerializer

    def get_permissions(self):
        if self.action in TEACHER_ACTIONS | {"publish", "submissions", "grade", "pending"}:
            return [IsTeacher()]
        if self.action == "submit":
            return [IsStudent()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        if user.is_teacher:
            return Activity.objects.filter(creator=user).select_related("classroom")
        return Activity.objects.filter(
            classroom__students=user,
            classroom__is_archived=False,
            status="Pendente",
        ).select_related("classroom")

    def perform_create(self, serializer):
        activity = serializer.save(creator=self.request.user)
        if activity.status == "Pendente" and activity.classroom:
            self.notify_posted(activity)

    def notify_posted(self, activity):
        notify_class_students(
            activity.classroom,
            "activity_post",
            title=f"Nova atividade: {activity.title}",
            text=f"Nova atividade em {activity.classroom.name}",
            actor=self.request.user,
            activity_id=activity.id,
        )

    @action(detail=True, methods=["post"])
    def publish(self, request, pk=None):
        """Publica uma cópia da atividade em uma turma."""
        activity = self.get_object()
        serializer = PublishActivitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        classroom = serializer.validated_data["classroom"]
        if classroom.teacher_id != request.user.id:
            return Response({"error": "Turma não encontrada."}, status=status.HTTP_404_NOT_FOUND)

        published = activity.publish_copy(
            classroom,
            due_date=serializer.validated_data.get("due_date"),
            points=serializer.validated_data.get("points"),
        )
        self.notify_posted(published)

        logger.info(f"Activity {activity.id} published to {classroom.code} as {published.id}")
        return Response(
            ActivitySerializer(published, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        """
        Envio do aluno (um por atividade, reenviável até a correção).
        The first submission counts as activity_sent and notifies the teacher.
        """
        activity = self.get_object()
        content = request.data.get("content", {})

        submission, created = ActivitySubmission.objects.get_or_create(
            activity=activity,
            student=request.user,
            defaults={"content": content},
        )
        if not created:
            if submission.status == "Corrigido":
                return Response({"error": "Esta atividade já foi corrigida."}, status=status.HTTP_400_BAD_REQUEST)
            submission.content = content
            submission.save(update_fields=["content", "updated_at"])

        gamification = None
        if created:
            create_notification(
                user=activity.creator,
                notification_type="activity_submission",
                title=f"Nova entrega: {activity.title}",
                text=f"{request.user.display_name} enviou a atividade {activity.title}",
                actor=request.user,
                activity_id=activity.id,
            )
            gamification = run_gamification_event(request.user, "activity_sent")

        data = ActivitySubmissionSerializer(submission).data
        data["gamification"] = gamification
        return Response(data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @action(detail=True, methods=["get"])
    def submissions(self, request, pk=None):
        activity = self.get_object()
        submissions = activity.submissions.select_related("student", "activity")
        return Response(ActivitySubmissionSerializer(submissions, many=True).data)

    @action(detail=False, methods=["get"])
    def pending(self, request):
        """Entregas aguardando correção em todas as atividades do professor."""
        submissions = ActivitySubmission.objects.filter(
            activity__creator=request.user,
            status="Aguardando correção",
        ).select_related("student", "activity")
        return Response(ActivitySubmissionSerializer(submissions, many=True).data)

    @action(detail=True, methods=["post"])
    def grade(self, request, pk=None):
        activity = self.get_object()
        serializer = GradeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        submission = activity.submissions.filter(id=serializer.validated_data["submission_id"]).first()
        if not submission:
            return Response({"error": "Entrega não encontrada."}, status=status.HTTP_404_NOT_FOUND)

        grade = serializer.validated_data["grade"]
        if grade > activity.points:
            return Response(
                {"error": f"A nota máxima desta atividade é {activity.points}."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        submission.grade_submission(grade, serializer.validated_data["feedback"])
        create_notification(
            user=submission.student,
            notification_type="activity_correction",
            title=f"Atividade corrigida: {activity.title}",
            text=f"Sua nota: {grade:g}/{activity.points}",
            actor=request.user,
            activity_id=activity.id,
        )
        return Response(ActivitySubmissionSerializer(submission).data)


# ============================================
# QUIZZES
# ============================================

class QuizViewSet(viewsets.ModelViewSet):
    """API endpoint para quizzes."""
    serializer_class = QuizSerializer

    def get_permissions(self):
        if self.action in TEACHER_ACTIONS | {"results"}:
            return [IsTeacher()]
        if self.action == "submit":
            return [IsStudent()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        if user.is_teacher:
            return Quiz.objects.filter(creator=user)
        enrolled = Quiz.objects.filter(status="Ativo", classroom__students=user)
        open_quizzes = Quiz.objects.filter(status="Ativo", classroom__isnull=True)
        return (enrolled | open_quizzes).distinct()

    def perform_create(self, serializer):
        serializer.save(creator=self.request.user)

    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        """Corrige as respostas no servidor. The first result counts as quiz_complete."""
        quiz = self.get_object()
        answers = request.data.get("answers") or {}
        if not isinstance(answers, dict):
            return Response({"error": "Respostas inválidas."}, status=status.HTTP_400_BAD_REQUEST)

        correct, total = quiz.score_answers(answers)
        score = round(correct / total * 100, 2) if total else 0.0

        result, created = QuizResult.objects.update_or_create(
            quiz=quiz,
            student=request.user,
            defaults={
                "score": score,
                "correct_answers": correct,
                "total_questions": total,
                "answers": answers,
            },
        )

        data = QuizResultSerializer(result).data
        data["gamification"] = run_gamification_event(request.user, "quiz_complete") if created else None
        return Response(data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @action(detail=True, methods=["get"])
    def results(self, request, pk=None):
        quiz = self.get_object()
        results = quiz.results.select_related("student")
        return Response([
            {
                "student_name": r.student.display_name,
                "email": r.student.email,
                "score": r.score,
                "correct_answers": r.correct_answers,
                "total_questions": r.total_questions,
                "submitted_at": r.submitted_at,
            } for r in results
        ])


# ============================================
# NOTIFICATIONS
# ============================================

@api_view(["GET"])
def notification_list(request):
    """As 20 notificações não lidas mais recentes."""
    return Response(NotificationSerializer(unread_for(request.user), many=True).data)


@api_view(["POST"])
def notification_read(request, notification_id):
    notification = get_object_or_404(Notification, id=notification_id, user=request.user)
    if not notification.read:
        notification.read = True
        notification.save(update_fields=["read"])
    return Response(NotificationSerializer(notification).data)


@api_view(["POST"])
def notification_read_all(request):
    updated = Notification.objects.filter(user=request.user, read=False).update(read=True)
    return Response({"updated": updated})


# ============================================
# GAMIFICATION
# ============================================

@api_view(["GET"])
def gamification_profile(request):
    return Response(GamificationService(request.user).get_profile())


@api_view(["POST"])
@permission_classes([permissions.IsAdminUser])
def gamification_event(request):
    """
    POST /api/v1/gamification/events/ {"event_type": "quiz_complete", "user": 12}
    Staff-only direct pipeline call, e.g. to credit work recorded outside the platform.
    user defaults to the caller. Persistence failure answers 503.
    """
    serializer = GamificationEventSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    target = serializer.validated_data.get("user", request.user)
    event_type = serializer.validated_data["event_type"]

    try:
        result = GamificationService(target).process_event(event_type)
    except UnknownEventError:
        return Response({"error": "Evento inválido."}, status=status.HTTP_400_BAD_REQUEST)
    except GamificationPersistenceError as e:
        return Response({"error": str(e)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    logger.info(f"{request.user.email} applied {event_type} to {target.email}")
    return Response(gamification_payload(result))


@api_view(["POST"])
def achievements_seen(request):
    updated = GamificationService(request.user).mark_achievements_seen()
    return Response({"updated": updated})


class AchievementViewSet(viewsets.ReadOnlyModelViewSet):
    """Catálogo de conquistas ativas."""
    serializer_class = AchievementSerializer
    queryset = Achievement.objects.filter(status="Ativa")
