from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from .services import provision_profile


@receiver(post_save, sender=settings.AUTH_USER_MODEL, dispatch_uid="accounts.provision_profile")
def on_user_created(sender, instance, created, raw=False, **kwargs):
    """Give every new identity its Profile in the same transaction."""
    if created and not raw:
        provision_profile(instance)
