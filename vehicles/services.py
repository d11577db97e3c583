import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, F, Q

from utils.money import to_money
from .models import UserVehicle, VehicleUsageStats

logger = logging.getLogger(__name__)


def normalize_plate(value):
    return ' '.join(value.split()).upper()


class VehicleService:

    @staticmethod
    def get_stats():
        totals = UserVehicle.objects.aggregate(
            total_vehicles=Count('id'),
            active_vehicles=Count('id', filter=Q(is_active=True)),
            inactive_vehicles=Count('id', filter=Q(is_active=False)),
        )
        by_type = UserVehicle.objects.values('type').annotate(count=Count('id')).order_by('type')
        totals['vehicles_by_type'] = {row['type']: row['count'] for row in by_type}
        return totals

    @staticmethod
    @transaction.atomic
    def record_usage(vehicle, user, date, amount, minutes):
        """Add one completed booking to the vehicle's daily totals"""
        stats, _ = VehicleUsageStats.objects.select_for_update().get_or_create(
            vehicle=vehicle, date=date, defaults={'user': user}
        )
        hours = to_money(Decimal(minutes) / Decimal(60))
        VehicleUsageStats.objects.filter(pk=stats.pk).update(
            booking_count=F('booking_count') + 1,
            total_amount=F('total_amount') + to_money(amount),
            total_hours=F('total_hours') + hours,
        )
        logger.info(f"Usage recorded for vehicle {vehicle.id} on {date}: {hours}h, {amount}")
