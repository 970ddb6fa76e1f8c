import logging

from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, authentication_classes, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .models import Membership
from .serializers import (
    MembershipSerializer,
    PaymentSerializer,
    MembershipFilterSerializer,
    MarkPaidInputSerializer,
    MembershipPlanInputSerializer,
    PaymentConfirmedEventSerializer,
    SweepInputSerializer,
    SweepResultSerializer,
)
from .permissions import (
    IsTeamManagerForMembership,
    HasCronSecret,
    HasPaymentWebhookSecret,
)
from .exceptions import TeamScheduleMisconfigured, MembershipConflict
from .services import (
    confirm_payment,
    update_membership_plan,
    record_manual_payment,
    cancel_membership,
    sweep_memberships,
    # Exceptions
    AnchorError,
    StaleWriteError,
    MembershipNotFoundError,
    MembershipCanceledError,
    InvalidDueDateOverrideError,
)


logger = logging.getLogger(__name__)


class MembershipPagination(PageNumberPagination):
    """Custom pagination for memberships."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


def _raise_schedule_misconfigured(error, membership_id):
    logger.error("Cannot schedule membership %s: %s", membership_id, error)
    raise TeamScheduleMisconfigured(detail=f"{error}. Fix the team's due date settings first.")


class MembershipViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for memberships of teams the user manages.

    list: Get memberships (filterable by team/status)
    retrieve: Get a specific membership
    plan: Change the membership's interval, billing type or price
    mark_paid: Record a manual or bank transfer payment
    cancel: Cancel a membership
    payments: Payment history of a membership
    """

    queryset = Membership.objects.select_related('team', 'player')
    serializer_class = MembershipSerializer
    permission_classes = [IsAuthenticated, IsTeamManagerForMembership]
    pagination_class = MembershipPagination

    def get_queryset(self):
        """Only memberships of teams the user manages."""
        queryset = super().get_queryset().filter(team__owner=self.request.user)

        filter_serializer = MembershipFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if 'team' in params:
            queryset = queryset.filter(team_id=params['team'])
        if 'status' in params:
            queryset = queryset.filter(status=params['status'])

        return queryset.order_by('player__name')

    @extend_schema(request=MembershipPlanInputSerializer, responses={200: MembershipSerializer})
    @action(detail=True, methods=['patch'])
    def plan(self, request, pk=None):
        """
        Change how this membership is billed.

        PATCH /api/billing/memberships/{id}/plan/
        Body: {"plan_interval": "week", "custom_amount": 1500}
        """
        membership = self.get_object()

        input_serializer = MembershipPlanInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        try:
            membership = update_membership_plan(
                membership_id=membership.id,
                updated_by=request.user,
                **input_serializer.validated_data
            )
        except MembershipCanceledError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(MembershipSerializer(membership).data)

    @extend_schema(request=MarkPaidInputSerializer, responses={200: MembershipSerializer})
    @action(detail=True, methods=['post'])
    def mark_paid(self, request, pk=None):
        """
        Record a payment taken outside the gateway.

        POST /api/billing/memberships/{id}/mark_paid/
        Body: {"amount": 2000, "method": "bank_transfer", "due_date_override": "2030-01-31"}
        """
        membership = self.get_object()

        input_serializer = MarkPaidInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        try:
            membership = record_manual_payment(
                membership_id=membership.id,
                recorded_by=request.user,
                amount=data.get('amount'),
                currency=data.get('currency'),
                method=data['method'],
                note=data.get('note', ''),
                due_date_override=data.get('due_date_override'),
            )
        except InvalidDueDateOverrideError as e:
            return Response({'due_date_override': [str(e)]}, status=status.HTTP_400_BAD_REQUEST)
        except MembershipCanceledError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except AnchorError as e:
            _raise_schedule_misconfigured(e, membership.id)
        except StaleWriteError:
            raise MembershipConflict()

        return Response(MembershipSerializer(membership).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        Cancel a membership. The record is kept.

        POST /api/billing/memberships/{id}/cancel/
        """
        membership = self.get_object()

        try:
            membership = cancel_membership(membership_id=membership.id, canceled_by=request.user)
        except MembershipCanceledError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except StaleWriteError:
            raise MembershipConflict()

        return Response(MembershipSerializer(membership).data)

    @action(detail=True, methods=['get'])
    def payments(self, request, pk=None):
        """
        Payment history for a membership.

        GET /api/billing/memberships/{id}/payments/
        """
        membership = self.get_object()
        serializer = PaymentSerializer(membership.payments.all(), many=True)
        return Response(serializer.data)


@extend_schema(
    request=PaymentConfirmedEventSerializer,
    responses={200: MembershipSerializer},
    description="Payment gateway callback: a payment for a membership has been confirmed.",
    tags=['billing'],
)
@api_view(['POST'])
@authentication_classes([])
@permission_classes([HasPaymentWebhookSecret])
def payment_confirmed(request):
    """Apply a confirmed payment to its membership."""
    serializer = PaymentConfirmedEventSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        membership = confirm_payment(
            membership_id=data['membership_id'],
            paid_at=data['paid_at'],
            amount=data.get('amount'),
            currency=data.get('currency'),
            provider_reference=data.get('provider_reference') or None,
            due_date_override=data.get('due_date_override'),
            interval_override=data.get('interval_override') or None,
            billing_type=data.get('billing_type'),
        )
    except MembershipNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except InvalidDueDateOverrideError as e:
        return Response({'due_date_override': [str(e)]}, status=status.HTTP_400_BAD_REQUEST)
    except MembershipCanceledError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    except AnchorError as e:
        _raise_schedule_misconfigured(e, data['membership_id'])
    except StaleWriteError:
        raise MembershipConflict()

    return Response(MembershipSerializer(membership).data)


@extend_schema(
    request=SweepInputSerializer,
    responses={200: SweepResultSerializer},
    description="Advance membership statuses (active -> due -> overdue) based on elapsed time.",
    tags=['billing'],
)
@api_view(['POST'])
@authentication_classes([])
@permission_classes([HasCronSecret])
def run_sweep(request):
    """Run the membership status sweep."""
    serializer = SweepInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    result = sweep_memberships(
        now=data.get('now'),
        grace_period_days=data.get('grace_period_days'),
        dry_run=data['dry_run'],
    )

    return Response(SweepResultSerializer(result).data)
