from django.contrib.auth import get_user_model
from rest_framework import serializers

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
)

User = get_user_model()


class StudentSerializer(serializers.ModelSerializer):
    """Aluno listado em uma turma."""
    class Meta:
        model = User
        fields = ["id", "email", "full_name", "series"]


class ClassroomSerializer(serializers.ModelSerializer):
    student_count = serializers.SerializerMethodField()
    teacher_name = serializers.CharField(source="teacher.display_name", read_only=True)
    is_owner = serializers.SerializerMethodField()

    class Meta:
        model = Classroom
        fields = [
            "id", "name", "code", "cover_image_url", "is_archived", "student_count",
            "teacher", "teacher_name", "is_owner", "created_at",
        ]
        read_only_fields = ["id", "code", "is_archived", "teacher", "created_at"]

    def get_student_count(self, obj):
        return obj.students.count()

    def get_is_owner(self, obj):
        request = self.context.get('request')
        if request and hasattr(request, 'user'):
            return obj.teacher_id == request.user.id
        return False


class ClassTeacherSerializer(serializers.ModelSerializer):
    teacher_name = serializers.CharField(source="teacher.display_name", read_only=True)

    class Meta:
        model = ClassTeacher
        fields = ["teacher", "teacher_name", "subject", "joined_at"]
        read_only_fields = fields


class ClassroomDetailSerializer(ClassroomSerializer):
    """Turma com alunos matriculados e professores convidados."""
    students = StudentSerializer(many=True, read_only=True)
    co_teachers = ClassTeacherSerializer(source="teacher_links", many=True, read_only=True)

    class Meta(ClassroomSerializer.Meta):
        fields = ClassroomSerializer.Meta.fields + ["students", "co_teachers"]


class InviteTeacherSerializer(serializers.Serializer):
    email = serializers.EmailField()
    subject = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")


class ClassInvitationSerializer(serializers.ModelSerializer):
    class_name = serializers.CharField(source="classroom.name", read_only=True)
    inviter_name = serializers.CharField(source="inviter.display_name", read_only=True)
    invitee_email = serializers.CharField(source="invitee.email", read_only=True)

    class Meta:
        model = ClassInvitation
        fields = [
            "id", "classroom", "class_name", "inviter", "inviter_name",
            "invitee", "invitee_email", "subject", "created_at",
        ]
        read_only_fields = fields


class ClassNoticeSerializer(serializers.ModelSerializer):
    author_name = serializers.CharField(source="author.display_name", read_only=True)

    class Meta:
        model = ClassNotice
        fields = ["id", "classroom", "author", "author_name", "text", "created_at"]
        read_only_fields = ["id", "classroom", "author", "created_at"]


class AttendanceRecordSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source="student.display_name", read_only=True)

    class Meta:
        model = AttendanceRecord
        fields = ["id", "student", "student_name", "status", "updated_at"]
        read_only_fields = ["id", "student", "updated_at"]


class AttendanceSessionSerializer(serializers.ModelSerializer):
    summary = serializers.SerializerMethodField()

    class Meta:
        model = AttendanceSession
        fields = ["id", "classroom", "date", "shift", "period", "summary", "created_at"]
        read_only_fields = ["id", "classroom", "created_at"]

    def get_summary(self, obj):
        return obj.summary()


class AttendanceSessionDetailSerializer(AttendanceSessionSerializer):
    records = AttendanceRecordSerializer(many=True, read_only=True)

    class Meta(AttendanceSessionSerializer.Meta):
        fields = AttendanceSessionSerializer.Meta.fields + ["records"]


class ModuleSerializer(serializers.ModelSerializer):
    creator_name = serializers.CharField(source="creator.display_name", read_only=True)
    classes = serializers.PrimaryKeyRelatedField(
        many=True, queryset=Classroom.objects.all(), required=False
    )

    class Meta:
        model = Module
        fields = [
            "id", "title", "description", "cover_image_url", "video_url", "duration",
            "subjects", "series", "historical_year", "historical_era",
            "visibility", "status", "classes", "pages",
            "creator", "creator_name", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "creator", "created_at", "updated_at"]

    def validate_classes(self, value):
        request = self.context.get('request')
        if request:
            foreign = [c for c in value if c.teacher_id != request.user.id]
            if foreign:
                raise serializers.ValidationError("Você só pode vincular suas próprias turmas.")
        return value

    def validate_subjects(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Informe uma lista de matérias.")
        return value

    def validate_series(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Informe uma lista de séries.")
        return value


class PublishModuleSerializer(serializers.Serializer):
    classes = serializers.PrimaryKeyRelatedField(
        many=True, queryset=Classroom.objects.all(), required=False
    )

    def validate_classes(self, value):
        request = self.context.get('request')
        if request and any(c.teacher_id != request.user.id for c in value):
            raise serializers.ValidationError("Turma não encontrada.")
        return value


class ModuleListSerializer(ModuleSerializer):
    """Module card: pages omitted, student's progress included."""
    progress = serializers.SerializerMethodField()

    class Meta(ModuleSerializer.Meta):
        fields = [f for f in ModuleSerializer.Meta.fields if f != "pages"] + ["progress"]

    def get_progress(self, obj):
        progress_by_module = self.context.get("progress_by_module") or {}
        entry = progress_by_module.get(obj.id)
        if entry is None:
            return None
        return {"progress": entry.progress, "status": entry.status}


class ModuleProgressSerializer(serializers.ModelSerializer):
    module_title = serializers.CharField(source="module.title", read_only=True)

    class Meta:
        model = ModuleProgress
        fields = ["id", "module", "module_title", "progress", "status", "last_updated", "completed_at"]
        read_only_fields = fields


class ActivitySerializer(serializers.ModelSerializer):
    classroom_name = serializers.CharField(source="classroom.name", read_only=True, default=None)
    submission_count = serializers.SerializerMethodField()

    class Meta:
        model = Activity
        fields = [
            "id", "title", "description", "activity_type", "points", "subject", "unit",
            "classroom", "classroom_name", "due_date", "allow_file_upload", "status",
            "items", "data", "submission_count", "creator", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "creator", "created_at", "updated_at"]

    def get_submission_count(self, obj):
        return obj.submissions.count()

    def validate_classroom(self, value):
        request = self.context.get('request')
        if value and request and value.teacher_id != request.user.id:
            raise serializers.ValidationError("Turma não encontrada.")
        return value

    def validate(self, attrs):
        status_value = attrs.get("status", getattr(self.instance, "status", "Pendente"))
        classroom = attrs.get("classroom", getattr(self.instance, "classroom", None))
        if status_value == "Pendente" and classroom is None:
            raise serializers.ValidationError("Atividades publicadas precisam de uma turma.")
        return attrs


class ActivitySubmissionSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source="student.display_name", read_only=True)
    activity_title = serializers.CharField(source="activity.title", read_only=True)

    class Meta:
        model = ActivitySubmission
        fields = [
            "id", "activity", "activity_title", "student", "student_name", "content",
            "status", "grade", "feedback", "created_at", "updated_at", "graded_at",
        ]
        read_only_fields = fields


class GradeSerializer(serializers.Serializer):
    submission_id = serializers.IntegerField()
    grade = serializers.FloatField(min_value=0)
    feedback = serializers.CharField(required=False, allow_blank=True, default="")


class GamificationEventSerializer(serializers.Serializer):
    event_type = serializers.CharField()
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), required=False)


class PublishActivitySerializer(serializers.Serializer):
    classroom = serializers.PrimaryKeyRelatedField(queryset=Classroom.objects.all())
    due_date = serializers.DateTimeField(required=False, allow_null=True)
    points = serializers.IntegerField(required=False, min_value=0)


class QuizSerializer(serializers.ModelSerializer):
    class Meta:
        model = Quiz
        fields = ["id", "title", "classroom", "module", "questions", "status", "creator", "created_at"]
        read_only_fields = ["id", "creator", "created_at"]

    def validate_classroom(self, value):
        request = self.context.get('request')
        if value and request and value.teacher_id != request.user.id:
            raise serializers.ValidationError("Turma não encontrada.")
        return value

    def validate_questions(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Informe uma lista de questões.")
        for question in value:
            if not isinstance(question, dict) or "id" not in question:
                raise serializers.ValidationError("Cada questão precisa de um id.")
        return value

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get('request')
        # Students never receive the answer key
        if request and instance.creator_id != request.user.id:
            data["questions"] = [
                {key: value for key, value in question.items() if key != "answer"}
                for question in data["questions"]
            ]
        return data


class QuizResultSerializer(serializers.ModelSerializer):
    quiz_title = serializers.CharField(source="quiz.title", read_only=True)

    class Meta:
        model = QuizResult
        fields = [
            "id", "quiz", "quiz_title", "score", "correct_answers", "total_questions",
            "answers", "submitted_at",
        ]
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source="notification_type", read_only=True)

    class Meta:
        model = Notification
        fields = [
            "id", "type", "actor", "actor_name", "title", "text", "deep_link",
            "urgency", "read", "group_count", "created_at",
        ]
        read_only_fields = fields


class AchievementSerializer(serializers.ModelSerializer):
    class Meta:
        model = Achievement
        fields = [
            "id", "title", "description", "points", "tier", "image_url", "category",
            "rarity", "criterion", "criterion_type", "criterion_count", "status", "sort_order",
        ]
