from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Account, MenteeProfile, Role


@receiver(post_save, sender=Account)
def create_mentee_profile(sender, instance, created, **kwargs):
    if created and instance.role == Role.MENTEE:
        MenteeProfile.objects.get_or_create(account=instance)
