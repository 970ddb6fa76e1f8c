from django.db.models import Count, Q
from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .models import Team
from .serializers import (
    TeamSerializer,
    TeamCreateSerializer,
    TeamUpdateSerializer,
    TeamJoinInfoSerializer,
    JoinTeamSerializer,
    DueSoonQuerySerializer,
)
from .permissions import IsTeamManager

from apps.teams.services import (
    create_team,
    update_team,
    rotate_join_token,
    get_team_by_join_token,
    join_team,
    # Exceptions
    InvalidJoinTokenError,
    MembershipClosedError,
)
from apps.billing.models import MembershipStatus
from apps.billing.serializers import MembershipSerializer, MembershipFilterSerializer
from apps.billing.services import get_team_memberships, get_due_soon_memberships


class TeamPagination(PageNumberPagination):
    """Custom pagination for teams."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class TeamViewSet(viewsets.ModelViewSet):
    """
    ViewSet for teams managed by the current user.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get all teams the user manages
    create: Create a new team with its billing schedule
    retrieve: Get a specific team
    update/partial_update: Change team details or billing schedule
    """

    serializer_class = TeamSerializer
    permission_classes = [IsAuthenticated, IsTeamManager]
    pagination_class = TeamPagination
    # Teams own billing history, so they aren't deletable through the API
    http_method_names = ['get', 'post', 'put', 'patch', 'head', 'options']

    def get_queryset(self):
        """Return only teams the user manages."""
        return (
            Team.objects
            .filter(owner=self.request.user)
            .select_related('owner')
            .annotate(active_member_count=Count(
                'memberships',
                filter=Q(memberships__status__in=[
                    s for s in MembershipStatus.values if s != MembershipStatus.CANCELED
                ]),
            ))
        )

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'create':
            return TeamCreateSerializer
        elif self.action in ['update', 'partial_update']:
            return TeamUpdateSerializer
        return TeamSerializer

    @extend_schema(request=TeamCreateSerializer, responses={201: TeamSerializer})
    def create(self, request, *args, **kwargs):
        """Create a new team."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        team = create_team(owner=request.user, **serializer.validated_data)

        output_serializer = TeamSerializer(team, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @extend_schema(request=TeamUpdateSerializer, responses={200: TeamSerializer})
    def update(self, request, *args, **kwargs):
        """Update team details and/or billing schedule."""
        team = self.get_object()
        serializer = TeamUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        team = update_team(team_id=team.id, user=request.user, **serializer.validated_data)

        return Response(TeamSerializer(team, context={'request': request}).data)

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    @action(detail=True, methods=['get'])
    def memberships(self, request, pk=None):
        """Get the team's memberships, optionally filtered by status."""
        team = self.get_object()

        filter_serializer = MembershipFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        memberships = get_team_memberships(
            team=team,
            status=filter_serializer.validated_data.get('status'),
        )
        serializer = MembershipSerializer(memberships, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['get'])
    def due_soon(self, request, pk=None):
        """Get active memberships falling due within ``days`` days."""
        team = self.get_object()

        query_serializer = DueSoonQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        memberships = get_due_soon_memberships(
            team=team,
            days=query_serializer.validated_data.get('days'),
        )
        serializer = MembershipSerializer(memberships, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['post'])
    def rotate_join_token(self, request, pk=None):
        """Replace the join link token; the old link stops working."""
        team = self.get_object()
        new_token = rotate_join_token(team_id=team.id, user=request.user)
        return Response({
            'join_token': new_token,
            'message': 'Join link rotated successfully'
        })


@extend_schema(
    methods=['GET'],
    responses={200: TeamJoinInfoSerializer},
    description="Public team info behind a join link.",
    tags=['teams'],
)
@extend_schema(
    methods=['POST'],
    request=JoinTeamSerializer,
    responses={201: MembershipSerializer, 200: MembershipSerializer},
    description=(
        "Join a team through its link. Creates a pending membership (201), "
        "or returns the player's open membership when they rejoin (200)."
    ),
    tags=['teams'],
)
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def join(request, join_token):
    """Show a team's join page data, or join it."""
    try:
        team = get_team_by_join_token(join_token=join_token)
    except InvalidJoinTokenError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(TeamJoinInfoSerializer(team).data)

    serializer = JoinTeamSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        membership, created = join_team(
            join_token=join_token,
            name=serializer.validated_data['name'],
            email=serializer.validated_data['email'],
            phone=serializer.validated_data.get('phone'),
        )
    except InvalidJoinTokenError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except MembershipClosedError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(
        MembershipSerializer(membership).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )
