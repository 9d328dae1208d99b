"""API views for analytics.

``overview`` returns KPIs scoped by the caller's role: admins see the
whole marketplace, freelancers their own bookings and earnings, and
clients their bookings and spend.
"""

from __future__ import annotations

from django.db.models import Count, Sum  # type: ignore
from rest_framework.permissions import IsAuthenticated  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.models import Booking
from apps.disputes.models import Dispute
from apps.finances.models import Payment
from apps.payouts.models import Payout
from apps.payouts.services import get_earnings
from apps.users.api.permissions import is_platform_admin
from apps.users.models import CustomUser, FreelancerProfile


def _counts(qs, field: str) -> dict:
    return {row[field]: row['total'] for row in qs.values(field).annotate(total=Count('id')).order_by(field)}


def _sum(qs, field: str) -> int:
    return qs.aggregate(total=Sum(field))['total'] or 0


def admin_overview() -> dict:
    paid = Booking.objects.filter(payment_status=Booking.PaymentStatus.PAID)
    return {
        'users_by_role': _counts(CustomUser.objects.all(), 'role'),
        'bookings_by_status': _counts(Booking.objects.all(), 'status'),
        'gmv_pence': _sum(paid, 'total_price_pence'),
        'platform_fees_pence': _sum(paid, 'platform_fee_pence'),
        'open_disputes': Dispute.objects.exclude(status=Dispute.Status.RESOLVED).count(),
        'pending_payouts_pence': _sum(
            Payout.objects.filter(status__in=Payout.PROCESSABLE_STATUSES), 'amount_pence'
        ),
    }


def freelancer_overview(user) -> dict:
    profile = FreelancerProfile.objects.filter(user=user).first()
    return {
        'bookings_by_status': _counts(Booking.objects.filter(freelancer=user), 'status'),
        'earnings': get_earnings(user),
        'average_rating': profile.average_rating if profile else None,
        'total_reviews': profile.total_reviews if profile else 0,
    }


def client_overview(user) -> dict:
    payments = Payment.objects.filter(
        booking__client=user,
        status__in=(Payment.Status.SUCCEEDED, Payment.Status.REFUNDED),
    )
    return {
        'bookings_by_status': _counts(Booking.objects.filter(client=user), 'status'),
        'total_spent_pence': _sum(payments, 'amount_pence') - _sum(payments, 'refund_amount_pence'),
    }


class OverviewAnalyticsView(APIView):
    """Return KPIs for the platform or for the calling user."""

    permission_classes = [IsAuthenticated]

    def get(self, request, format=None):  # type: ignore
        user = request.user
        if is_platform_admin(user):
            data = admin_overview()
        elif user.is_freelancer():
            data = freelancer_overview(user)
        else:
            data = client_overview(user)
        return Response({'role': user.role, **data})
