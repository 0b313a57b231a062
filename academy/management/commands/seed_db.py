from django.core.management.base import BaseCommand
from accounts.models import User
from academy.models import Achievement, Classroom, Module

DEFAULT_ACHIEVEMENTS = [
    # id, title, criterion_type, criterion_count, points, tier, rarity
    ("first_quiz", "Primeiro Quiz", "quizzes", 1, 10, "bronze", "comum"),
    ("quiz_3", "Quizzeiro", "quizzes", 3, 20, "bronze", "comum"),
    ("quiz_10", "Mestre dos Quizzes", "quizzes", 10, 50, "prata", "rara"),
    ("first_module", "Primeiro Módulo", "modules", 1, 10, "bronze", "comum"),
    ("modules_5", "Explorador da História", "modules", 5, 40, "prata", "rara"),
    ("first_activity", "Primeira Atividade", "activities", 1, 10, "bronze", "comum"),
    ("activities_10", "Aluno Dedicado", "activities", 10, 60, "ouro", "epica"),
]

CRITERION_LABELS = {
    "quizzes": "Concluir {count} quiz(zes)",
    "modules": "Concluir {count} módulo(s)",
    "activities": "Enviar {count} atividade(s)",
}


class Command(BaseCommand):
    help = 'Seeds database with test data (Teacher, Student, Class, Module, Achievements)'

    def handle(self, *args, **options):
        self.stdout.write('🌱 Seeding database...')

        # 1. Teacher (Lookup by EMAIL - custom User model uses email as login)
        teacher = self.upsert_user('professor@historia.test', 'Ana Professora', 'professor')

        # 2. Student
        student = self.upsert_user('aluno1@historia.test', 'João Aluno', 'aluno', series='9º ano')

        # 3. Class
        classroom, created = Classroom.objects.get_or_create(
            name='História - 9º Ano A',
            defaults={'teacher': teacher}
        )
        if created:
            self.stdout.write(self.style.SUCCESS(f'✅ Created Class: {classroom.name} (code {classroom.code})'))
        else:
            self.stdout.write(f'   Class {classroom.name} already exists')

        if not classroom.students.filter(pk=student.pk).exists():
            classroom.students.add(student)
            self.stdout.write(self.style.SUCCESS('   -> Added aluno1 to class'))

        # 4. Module
        module, created = Module.objects.get_or_create(
            title='História do Brasil Colonial',
            defaults={
                'creator': teacher,
                'description': 'Da chegada dos portugueses à independência.',
                'subjects': ['História'],
                'series': ['9º ano'],
                'historical_era': 'Brasil Colônia',
                'historical_year': 1500,
                'pages': [{'title': 'Introdução', 'content': 'O período colonial brasileiro...'}],
            }
        )
        if created:
            self.stdout.write(self.style.SUCCESS(f'✅ Created Module: {module.title}'))
        else:
            self.stdout.write(f'   Module {module.title} already exists')

        # 5. Achievement catalog
        for order, (key, title, criterion_type, count, points, tier, rarity) in enumerate(DEFAULT_ACHIEVEMENTS):
            _, created = Achievement.objects.update_or_create(
                id=key,
                defaults={
                    'title': title,
                    'criterion_type': criterion_type,
                    'criterion_count': count,
                    'criterion': CRITERION_LABELS[criterion_type].format(count=count),
                    'points': points,
                    'tier': tier,
                    'rarity': rarity,
                    'sort_order': order,
                }
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f'✅ Created Achievement: {title}'))

        self.stdout.write(self.style.SUCCESS('🎉 Database seeded successfully!'))

    def upsert_user(self, email, full_name, role, series=''):
        try:
            user = User.objects.get(email=email)
            action = 'Found/Updated'
        except User.DoesNotExist:
            user = User(email=email, username=email)
            action = 'Created'

        user.full_name = full_name
        user.role = role
        user.series = series
        user.set_password('password123')
        user.save()
        self.stdout.write(self.style.SUCCESS(f'✅ {action} {role}: {email}'))
        return user
