# ============================= PAYMENTS/FILTERS.PY =============================
import django_filters
from .models import Payment, WalletTransaction


class PaymentFilter(django_filters.FilterSet):
    """Admin payment listing filters"""

    user_id = django_filters.UUIDFilter(field_name='user_id')
    start_date = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    end_date = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = Payment
        fields = ['status', 'method', 'type', 'gateway']


class MyPaymentFilter(django_filters.FilterSet):
    class Meta:
        model = Payment
        fields = ['status', 'method']


class WalletTransactionFilter(django_filters.FilterSet):
    class Meta:
        model = WalletTransaction
        fields = ['type']
