# ==================== PARKING/SIGNALS.PY (Django Signals) ====================
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from .models import ParkingLocation, ParkingSlot
import logging

logger = logging.getLogger(__name__)


@receiver(post_save, sender=ParkingSlot)
def slot_saved(sender, instance, created, **kwargs):
    """Keep location slot counters in step with slot status"""
    if created:
        logger.info(f"Slot {instance.slot_number} added to location {instance.location_id}")
    instance.location.refresh_slot_counts()


@receiver(post_delete, sender=ParkingSlot)
def slot_deleted(sender, instance, **kwargs):
    location = ParkingLocation.objects.filter(pk=instance.location_id).first()
    if location is not None:
        location.refresh_slot_counts()
