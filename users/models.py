# examhub_platform/users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models

class User(AbstractUser):
    class Role(models.TextChoices):
        CANDIDATE = "candidate", "Candidate"
        INSTRUCTOR = "instructor", "Instructor"
        ADMIN = "admin", "Admin"

    # Enforce unique email for authentication
    email = models.EmailField(unique=True)

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CANDIDATE)
    display_name = models.CharField(max_length=150, blank=True)

    bio = models.TextField(blank=True)
    avatar = models.ImageField(upload_to="avatars/", blank=True, null=True)

    # Set email as the main field for authentication
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username', 'first_name', 'last_name']

    @property
    def is_instructor(self):
        return self.is_staff or self.role in (self.Role.INSTRUCTOR, self.Role.ADMIN)

    def get_display_name(self):
        """Profile name shown to instructors; falls back to full name, then email."""
        return self.display_name or self.get_full_name() or self.email

    def __str__(self):
        return self.email
