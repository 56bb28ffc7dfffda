from django.db import models
from django.conf import settings
from django.utils import timezone
from django.contrib.auth.models import AbstractUser
from PIL import Image
from datetime import timedelta
import uuid


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    MENTOR = "mentor", "Mentor"
    MENTEE = "mentee", "Mentee"
    ADMIN_MENTOR = "admin+mentor", "Admin + Mentor"


class Account(AbstractUser):
    """One record per person. Login happens with the email address."""

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.MENTEE)
    display_name = models.CharField(max_length=150, blank=True)
    email = models.EmailField(unique=True)
    created_by = models.ForeignKey("self", on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name="created_accounts")
    created_at = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return self.display_name or self.email

    @property
    def is_mentee(self):
        return self.role == Role.MENTEE

    @property
    def is_mentor(self):
        return self.role in (Role.MENTOR, Role.ADMIN_MENTOR)

    @property
    def is_admin_capable(self):
        return self.role in (Role.ADMIN, Role.ADMIN_MENTOR)


class ClassGroup(models.Model):
    """Cohort of mentees owned by one mentor"""

    mentor = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="classes")
    name = models.CharField(max_length=100)
    year = models.CharField(max_length=20)
    section = models.CharField(max_length=20)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} - {self.year} {self.section}"


class MenteeProfile(models.Model):
    """Mentee-scoped record: assignment, delegation slots and the locked profile fields."""

    account = models.OneToOneField(Account, primary_key=True, on_delete=models.CASCADE, related_name="mentee_profile")
    enrollment_no = models.CharField(max_length=30, blank=True)
    class_group = models.ForeignKey(ClassGroup, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name="mentees")

    # assignment
    primary_mentor = models.ForeignKey(Account, on_delete=models.SET_NULL, null=True, blank=True,
                                       related_name="primary_mentees")
    # delegation
    guide = models.ForeignKey(Account, on_delete=models.SET_NULL, null=True, blank=True,
                              related_name="guided_mentees")
    co_guide = models.ForeignKey(Account, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name="co_guided_mentees")

    # fields locked unless an edit grant is active
    phone = models.CharField(max_length=15, blank=True)
    parent_mobile = models.CharField(max_length=15, blank=True)
    photo = models.ImageField(upload_to="profile_pics/", blank=True, null=True)

    def __str__(self):
        return self.account.email

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        if not self.photo:
            return
        try:
            path = self.photo.path
        except NotImplementedError:
            return
        img = Image.open(path)

        if img.height > 300 or img.width > 300:
            output_size = (300, 300)
            img.thumbnail(output_size)
            img.save(path)

    def holder_of(self, slot):
        return getattr(self, f"{slot}_id")


class ProfileEditGrant(models.Model):
    """Single-use, expiring permission for a mentee to edit locked profile fields."""

    mentee = models.OneToOneField(MenteeProfile, primary_key=True, on_delete=models.CASCADE, related_name="edit_grant")
    allowed_at = models.DateTimeField()
    expires_at = models.DateTimeField()
    allowed_by = models.ForeignKey(Account, on_delete=models.SET_NULL, null=True, related_name="issued_grants")
    consumed = models.BooleanField(default=False)

    def __str__(self):
        return f"Edit grant for {self.mentee} until {self.expires_at}"

    def is_active(self, now=None):
        now = now or timezone.now()
        return now < self.expires_at and not self.consumed


class Report(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
    ]

    author = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="reports")
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    blob_ref = models.CharField(max_length=500, blank=True)
    submitted_at = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="pending")
    feedback = models.TextField(blank=True, null=True)
    viewed = models.BooleanField(default=False)
    reviewed_by = models.ForeignKey(Account, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name="closed_reports")
    reviewed_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-submitted_at"]

    def __str__(self):
        return f"{self.title} by {self.author}"

    @property
    def is_closed(self):
        return self.status != "pending"


class ReportRecipient(models.Model):
    """Recipient row frozen at submission time."""

    ROLE_CHOICES = [
        ("mentor", "Mentor"),
        ("guide", "Guide"),
        ("co_guide", "Co-Guide"),
    ]

    report = models.ForeignKey(Report, on_delete=models.CASCADE, related_name="recipients")
    account = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="received_reports")
    role_at_submission = models.CharField(max_length=10, choices=ROLE_CHOICES)

    class Meta:
        unique_together = ("report", "account", "role_at_submission")

    def __str__(self):
        return f"{self.account} ({self.get_role_at_submission_display()}) ← {self.report}"


class Query(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("answered", "Answered"),
    ]

    mentee = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="asked_queries")
    mentor = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="received_queries")
    subject = models.CharField(max_length=200)
    question = models.TextField()
    answer = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="pending")
    asked_at = models.DateTimeField(default=timezone.now)
    answered_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ["-asked_at"]
        verbose_name_plural = "queries"

    def __str__(self):
        return f"Query by {self.mentee} to {self.mentor}"


class CredentialLink(models.Model):
    """Stored login material for the owner's second identity. The secret is Fernet-encrypted."""

    owner = models.OneToOneField(Account, primary_key=True, on_delete=models.CASCADE, related_name="credential_link")
    linked_email = models.EmailField()
    linked_secret_encrypted = models.TextField()
    linked_account = models.ForeignKey(Account, on_delete=models.SET_NULL, null=True, blank=True,
                                       related_name="+")
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.owner} → {self.linked_email}"


class Notification(models.Model):
    SEVERITY_CHOICES = [
        ("success", "Success"),
        ("info", "Info"),
        ("warning", "Warning"),
        ("error", "Error"),
    ]

    user = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="notifications")
    message = models.TextField()
    severity = models.CharField(max_length=10, choices=SEVERITY_CHOICES, default="info")
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.user}: {self.message[:40]}"


class ActivityLog(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                             related_name="activity_logs")
    action = models.CharField(max_length=100)
    module = models.CharField(max_length=100)
    details = models.TextField(blank=True)
    old_data = models.JSONField(blank=True, null=True)
    new_data = models.JSONField(blank=True, null=True)
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    browser = models.CharField(max_length=300, blank=True, null=True)
    request_path = models.CharField(max_length=300, blank=True, null=True)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-timestamp"]

    def __str__(self):
        return f"{self.action} ({self.module}) at {self.timestamp}"


class MentoringSession(models.Model):
    STATUS_CHOICES = (
        ('scheduled', 'Scheduled'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    )

    mentor = models.ForeignKey(Account, on_delete=models.CASCADE, related_name="hosted_sessions")
    mentees = models.ManyToManyField(Account, related_name="attended_sessions")
    topic = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    scheduled_for = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField(default=60)
    meeting_link = models.URLField(blank=True)
    video_room_name = models.CharField(max_length=255, unique=True, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='scheduled')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["scheduled_for"]

    def save(self, *args, **kwargs):
        if not self.video_room_name:
            self.video_room_name = str(uuid.uuid4())
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.topic} with {self.mentor} on {self.scheduled_for}"

    @property
    def ends_at(self):
        return self.scheduled_for + timedelta(minutes=self.duration_minutes)
