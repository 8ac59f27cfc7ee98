"""Drop the cached expiry-alert classification whenever its inputs change."""
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .lifecycle import invalidate_expiry_alerts
from .models import Category, Registration


@receiver(post_save, sender=Registration)
@receiver(post_delete, sender=Registration)
@receiver(post_save, sender=Category)
@receiver(post_delete, sender=Category)
def expiry_inputs_changed(sender, instance, **kwargs):
    invalidate_expiry_alerts()
