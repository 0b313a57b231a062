# conftest.py
"""
Pytest Configuration and Fixtures

Provides common fixtures for the accounts and academy tests.
"""

import uuid

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from accounts.models import User
from academy.models import Achievement, Classroom, Module


# ==================== CACHE ====================

@pytest.fixture(autouse=True)
def clear_cache():
    """Catalog and module index are cached; start every test cold."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client() -> APIClient:
    """Return a DRF API client instance."""
    return APIClient()


# ==================== USER FIXTURES ====================

@pytest.fixture
def user_password() -> str:
    return 'SenhaForte123!'


@pytest.fixture
def create_user(db, user_password):
    """Factory fixture to create test users."""
    def _create_user(email: str = None, role: str = 'aluno', full_name: str = None, **kwargs) -> User:
        if email is None:
            email = f"user_{uuid.uuid4().hex[:8]}@test.com"
        user = User(
            email=email,
            username=email,
            full_name=full_name or email.split('@')[0],
            role=role,
            series=kwargs.get('series', ''),
        )
        user.set_password(user_password)
        user.save()
        return user

    return _create_user


@pytest.fixture
def teacher(create_user) -> User:
    return create_user(email='professor@test.com', role='professor', full_name='Ana Professora')


@pytest.fixture
def student(create_user) -> User:
    return create_user(email='aluno@test.com', role='aluno', full_name='João Aluno', series='9º ano')


@pytest.fixture
def other_student(create_user) -> User:
    return create_user(email='aluna@test.com', role='aluno', full_name='Maria Aluna')


@pytest.fixture
def other_teacher(create_user) -> User:
    return create_user(email='co.professor@test.com', role='professor', full_name='Bruno Professor')


@pytest.fixture
def staff_user(create_user) -> User:
    user = create_user(email='staff@test.com', role='professor', full_name='Coordenação')
    user.is_staff = True
    user.save(update_fields=['is_staff'])
    return user


@pytest.fixture
def staff_client(staff_user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def teacher_client(teacher) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=teacher)
    return client


@pytest.fixture
def student_client(student) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=student)
    return client


# ==================== ACADEMY FIXTURES ====================

@pytest.fixture
def classroom(teacher, student) -> Classroom:
    room = Classroom.objects.create(name='História - 9º Ano A', teacher=teacher)
    room.students.add(student)
    return room


@pytest.fixture
def module(teacher) -> Module:
    return Module.objects.create(
        creator=teacher,
        title='História do Brasil',
        description='Do período colonial à república.',
        subjects=['História'],
        series=['9º ano'],
    )


@pytest.fixture
def create_achievement(db):
    """Factory fixture to create catalog entries."""
    def _create_achievement(achievement_id: str, criterion_type: str = 'quizzes', count: int = 1, points: int = 10, **kwargs) -> Achievement:
        return Achievement.objects.create(
            id=achievement_id,
            title=kwargs.pop('title', achievement_id),
            criterion_type=criterion_type,
            criterion_count=count,
            points=points,
            **kwargs
        )

    return _create_achievement
