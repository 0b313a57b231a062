from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_CHOICES = (
        ("professor", "Professor"),
        ("aluno", "Aluno"),
    )

    # keep username for admin compatibility, but login by email
    username = models.CharField(max_length=150, unique=True)
    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=255)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="aluno")
    series = models.CharField(max_length=50, blank=True, help_text="Série / ano escolar do aluno")

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    def __str__(self):
        return self.email

    @property
    def is_teacher(self) -> bool:
        return self.role == "professor"

    @property
    def is_student(self) -> bool:
        return self.role == "aluno"

    @property
    def display_name(self) -> str:
        return self.full_name or self.email
