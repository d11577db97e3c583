import uuid

from django.conf import settings
from django.db import models


class UserVehicle(models.Model):
    """Vehicles registered by a user"""
    TYPE_CHOICES = (
        ('car', 'Car'),
        ('bike', 'Bike'),
        ('bicycle', 'Bicycle'),
        ('truck', 'Truck'),
        ('bus', 'Bus'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='vehicles')
    license_plate = models.CharField(max_length=20, db_index=True)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default='car')
    brand = models.CharField(max_length=50, blank=True)
    model = models.CharField(max_length=50, blank=True)
    color = models.CharField(max_length=30, blank=True)
    is_active = models.BooleanField(default=True)
    specifications = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('user', 'license_plate')
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.license_plate} ({self.get_type_display()})"


class VehicleUsageStats(models.Model):
    """Per-day usage totals, accumulated when bookings complete"""
    vehicle = models.ForeignKey(UserVehicle, on_delete=models.CASCADE, related_name='usage_stats')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='vehicle_usage')
    date = models.DateField()
    booking_count = models.PositiveIntegerField(default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_hours = models.DecimalField(max_digits=8, decimal_places=2, default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('vehicle', 'date')
        ordering = ['-date']
        verbose_name_plural = 'vehicle usage stats'

    def __str__(self):
        return f"{self.vehicle.license_plate} on {self.date}: {self.booking_count} bookings"
