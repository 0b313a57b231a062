# academy/tests/test_classes_api.py
"""
Tests for class endpoints:
- Class CRUD, join/leave, archive
- Class notices
- Attendance sessions and records
- Co-teacher invitations
"""

import pytest
from django.urls import reverse
from rest_framework import status

from academy.models import (
    AttendanceRecord,
    AttendanceSession,
    ClassInvitation,
    ClassNotice,
    Classroom,
    ClassTeacher,
    Notification,
)


pytestmark = pytest.mark.django_db


class TestClassroomEndpoints:
    """Tests for /api/v1/classes/."""

    def test_teacher_creates_class_with_join_code(self, teacher_client, teacher):
        response = teacher_client.post(reverse('classroom-list'), {'name': 'História 1A'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        classroom = Classroom.objects.get(id=response.data['id'])
        assert classroom.teacher == teacher
        assert len(classroom.code) == 6
        assert response.data['code'] == classroom.code

    def test_student_cannot_create_class(self, student_client):
        response = student_client.post(reverse('classroom-list'), {'name': 'Turma'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unauthenticated_rejected(self, api_client):
        response = api_client.get(reverse('classroom-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_list_separates_active_and_archived(self, teacher_client, teacher):
        Classroom.objects.create(name='Ativa', teacher=teacher)
        Classroom.objects.create(name='Antiga', teacher=teacher, is_archived=True)

        active = teacher_client.get(reverse('classroom-list'))
        archived = teacher_client.get(reverse('classroom-list'), {'archived': 'true'})

        assert [c['name'] for c in active.data] == ['Ativa']
        assert [c['name'] for c in archived.data] == ['Antiga']

    def test_teacher_sees_only_own_classes(self, teacher_client, create_user):
        other = create_user(role='professor')
        Classroom.objects.create(name='Outra', teacher=other)

        response = teacher_client.get(reverse('classroom-list'))

        assert response.data == []

    def test_detail_lists_students(self, teacher_client, classroom, student):
        response = teacher_client.get(reverse('classroom-detail', args=[classroom.id]))

        assert response.status_code == status.HTTP_200_OK
        assert [s['email'] for s in response.data['students']] == [student.email]
        assert response.data['is_owner'] is True

    def test_archive(self, teacher_client, classroom):
        response = teacher_client.post(reverse('classroom-archive', args=[classroom.id]))

        assert response.status_code == status.HTTP_200_OK
        classroom.refresh_from_db()
        assert classroom.is_archived is True

        teacher_client.post(reverse('classroom-archive', args=[classroom.id]), {'archived': False}, format='json')
        classroom.refresh_from_db()
        assert classroom.is_archived is False


class TestJoinAndLeave:
    """Tests for joining a class by code."""

    def test_join_by_code(self, teacher, other_student, api_client):
        classroom = Classroom.objects.create(name='Turma', teacher=teacher)
        api_client.force_authenticate(user=other_student)

        response = api_client.post(reverse('classroom-join'), {'code': classroom.code.lower()}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert classroom.students.filter(pk=other_student.pk).exists()

    def test_join_invalid_code(self, student_client):
        response = student_client.post(reverse('classroom-join'), {'code': 'XXXXXX'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_join_archived_class_rejected(self, teacher, student_client):
        classroom = Classroom.objects.create(name='Arquivada', teacher=teacher, is_archived=True)

        response = student_client.post(reverse('classroom-join'), {'code': classroom.code}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_join_twice_rejected(self, student_client, classroom):
        response = student_client.post(reverse('classroom-join'), {'code': classroom.code}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_teacher_cannot_join(self, teacher_client, classroom):
        response = teacher_client.post(reverse('classroom-join'), {'code': classroom.code}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_leave(self, student_client, classroom, student):
        response = student_client.post(reverse('classroom-leave', args=[classroom.id]))

        assert response.status_code == status.HTTP_200_OK
        assert not classroom.students.filter(pk=student.pk).exists()


class TestNotices:
    """Tests for class notices."""

    def test_post_notice_notifies_students(self, teacher_client, classroom, student):
        response = teacher_client.post(
            reverse('classroom-notices', args=[classroom.id]),
            {'text': 'Prova na sexta-feira!'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert ClassNotice.objects.filter(classroom=classroom).count() == 1
        notification = Notification.objects.get(user=student)
        assert notification.notification_type == 'notice_post'
        assert notification.deep_link == {'page': 'join_class'}
        assert notification.urgency == 'medium'
        assert notification.actor_name == 'Ana Professora'

    def test_student_reads_notices(self, student_client, classroom, teacher):
        ClassNotice.objects.create(classroom=classroom, author=teacher, text='Bem-vindos')

        response = student_client.get(reverse('classroom-notices', args=[classroom.id]))

        assert response.status_code == status.HTTP_200_OK
        assert [n['text'] for n in response.data] == ['Bem-vindos']

    def test_student_cannot_post_notice(self, student_client, classroom):
        response = student_client.post(
            reverse('classroom-notices', args=[classroom.id]), {'text': 'oi'}, format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestAttendance:
    """Tests for attendance sessions and records."""

    def open_session(self, client, classroom, **overrides):
        payload = {'date': '2026-03-10', 'shift': 'matutino', 'period': 1}
        payload.update(overrides)
        return client.post(reverse('classroom-attendance', args=[classroom.id]), payload, format='json')

    def test_open_session_creates_pending_records(self, teacher_client, classroom, other_student):
        classroom.students.add(other_student)

        response = self.open_session(teacher_client, classroom)

        assert response.status_code == status.HTTP_201_CREATED
        assert len(response.data['records']) == 2
        assert {r['status'] for r in response.data['records']} == {'pendente'}
        assert response.data['summary'] == {'present': 0, 'absent': 0, 'pending': 2}

    def test_duplicate_session_rejected(self, teacher_client, classroom):
        self.open_session(teacher_client, classroom)

        response = self.open_session(teacher_client, classroom)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert AttendanceSession.objects.count() == 1

    def test_other_period_allowed(self, teacher_client, classroom):
        self.open_session(teacher_client, classroom)

        response = self.open_session(teacher_client, classroom, period=2)

        assert response.status_code == status.HTTP_201_CREATED

    def test_mark_record(self, teacher_client, classroom, student):
        session_id = self.open_session(teacher_client, classroom).data['id']
        record = AttendanceRecord.objects.get(session_id=session_id, student=student)

        response = teacher_client.patch(
            reverse('attendance-record', args=[record.id]), {'status': 'presente'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        detail = teacher_client.get(reverse('attendance-detail', args=[session_id]))
        assert detail.data['summary'] == {'present': 1, 'absent': 0, 'pending': 0}

    def test_invalid_status_rejected(self, teacher_client, classroom, student):
        session_id = self.open_session(teacher_client, classroom).data['id']
        record = AttendanceRecord.objects.get(session_id=session_id, student=student)

        response = teacher_client.patch(
            reverse('attendance-record', args=[record.id]), {'status': 'atrasado'}, format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_detail_records_sorted_by_name(self, teacher_client, classroom, create_user):
        classroom.students.add(create_user(full_name='Ana Clara'))
        classroom.students.add(create_user(full_name='Zeca'))

        session_id = self.open_session(teacher_client, classroom).data['id']
        response = teacher_client.get(reverse('attendance-detail', args=[session_id]))

        names = [r['student_name'] for r in response.data['records']]
        assert names == ['Ana Clara', 'João Aluno', 'Zeca']

    def test_sessions_listed_newest_first(self, teacher_client, classroom):
        self.open_session(teacher_client, classroom, date='2026-03-01')
        self.open_session(teacher_client, classroom, date='2026-03-15')

        response = teacher_client.get(reverse('classroom-attendance', args=[classroom.id]))

        assert [s['date'] for s in response.data] == ['2026-03-15', '2026-03-01']

    def test_student_cannot_take_attendance(self, student_client, classroom):
        response = self.open_session(student_client, classroom)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_other_teacher_cannot_edit_record(self, teacher_client, classroom, student, create_user, api_client):
        session_id = self.open_session(teacher_client, classroom).data['id']
        record = AttendanceRecord.objects.get(session_id=session_id, student=student)
        api_client.force_authenticate(user=create_user(role='professor'))

        response = api_client.patch(
            reverse('attendance-record', args=[record.id]), {'status': 'ausente'}, format='json'
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestCoTeacherInvitations:
    """Tests for inviting a co-teacher and answering the invitation."""

    @pytest.fixture
    def other_teacher_client(self, other_teacher, api_client):
        api_client.force_authenticate(user=other_teacher)
        return api_client

    def invite(self, client, classroom, email, subject='Geografia'):
        return client.post(
            reverse('classroom-invite', args=[classroom.id]), {'email': email, 'subject': subject}, format='json'
        )

    def test_invite_notifies_teacher(self, teacher_client, classroom, other_teacher):
        response = self.invite(teacher_client, classroom, 'CO.PROFESSOR@test.com')

        assert response.status_code == status.HTTP_201_CREATED
        invitation = ClassInvitation.objects.get(classroom=classroom)
        assert invitation.invitee == other_teacher
        assert invitation.subject == 'Geografia'
        notification = Notification.objects.get(user=other_teacher)
        assert notification.title == 'Convite para Co-Docência'
        assert classroom.name in notification.text

    def test_invite_unknown_email(self, teacher_client, classroom):
        response = self.invite(teacher_client, classroom, 'ninguem@test.com')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_invite_student_rejected(self, teacher_client, classroom, other_student):
        response = self.invite(teacher_client, classroom, other_student.email)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'O usuário não é um professor.'
        assert not ClassInvitation.objects.exists()

    def test_invite_self_rejected(self, teacher_client, classroom, teacher):
        response = self.invite(teacher_client, classroom, teacher.email)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_duplicate_invite_rejected(self, teacher_client, classroom, other_teacher):
        self.invite(teacher_client, classroom, other_teacher.email)

        response = self.invite(teacher_client, classroom, other_teacher.email)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert ClassInvitation.objects.count() == 1

    def test_only_owner_invites(self, classroom, other_teacher, other_teacher_client, create_user):
        ClassTeacher.objects.create(classroom=classroom, teacher=other_teacher)
        third = create_user(role='professor')

        response = self.invite(other_teacher_client, classroom, third.email)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_invitee_lists_pending(self, teacher_client, classroom, other_teacher_client, other_teacher):
        self.invite(teacher_client, classroom, other_teacher.email)

        response = other_teacher_client.get(reverse('invitation-list'))

        assert [i['class_name'] for i in response.data] == [classroom.name]
        assert response.data[0]['inviter_name'] == 'Ana Professora'

    def test_accept_adds_co_teacher(self, teacher_client, classroom, other_teacher_client, other_teacher):
        self.invite(teacher_client, classroom, other_teacher.email)
        invitation = ClassInvitation.objects.get()

        response = other_teacher_client.post(reverse('invitation-accept', args=[invitation.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['co_teachers'][0]['subject'] == 'Geografia'
        assert not ClassInvitation.objects.exists()
        assert classroom.has_teacher(other_teacher)

        listed = other_teacher_client.get(reverse('classroom-list'))
        assert [c['id'] for c in listed.data] == [classroom.id]
        assert listed.data[0]['is_owner'] is False

    def test_co_teacher_posts_notice_and_takes_attendance(self, classroom, other_teacher, other_teacher_client, student):
        ClassTeacher.objects.create(classroom=classroom, teacher=other_teacher, subject='Geografia')

        notice = other_teacher_client.post(
            reverse('classroom-notices', args=[classroom.id]), {'text': 'Trabalho de campo amanhã'}, format='json'
        )
        session = other_teacher_client.post(
            reverse('classroom-attendance', args=[classroom.id]),
            {'date': '2026-03-10', 'shift': 'matutino', 'period': 2},
            format='json',
        )
        record = AttendanceRecord.objects.get(session_id=session.data['id'], student=student)
        marked = other_teacher_client.patch(
            reverse('attendance-record', args=[record.id]), {'status': 'presente'}, format='json'
        )

        assert notice.status_code == status.HTTP_201_CREATED
        assert session.status_code == status.HTTP_201_CREATED
        assert marked.status_code == status.HTTP_200_OK

    def test_co_teacher_cannot_archive(self, classroom, other_teacher, other_teacher_client):
        ClassTeacher.objects.create(classroom=classroom, teacher=other_teacher)

        response = other_teacher_client.post(reverse('classroom-archive', args=[classroom.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        classroom.refresh_from_db()
        assert classroom.is_archived is False

    def test_decline_deletes_invitation(self, teacher_client, classroom, other_teacher_client, other_teacher):
        self.invite(teacher_client, classroom, other_teacher.email)
        invitation = ClassInvitation.objects.get()

        response = other_teacher_client.post(reverse('invitation-decline', args=[invitation.id]))

        assert response.status_code == status.HTTP_200_OK
        assert not ClassInvitation.objects.exists()
        assert not classroom.has_teacher(other_teacher)

    def test_cannot_answer_foreign_invitation(self, teacher_client, classroom, other_teacher, create_user, api_client):
        self.invite(teacher_client, classroom, other_teacher.email)
        invitation = ClassInvitation.objects.get()
        api_client.force_authenticate(user=create_user(role='professor'))

        response = api_client.post(reverse('invitation-accept', args=[invitation.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert ClassInvitation.objects.exists()
