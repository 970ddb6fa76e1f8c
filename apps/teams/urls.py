from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'teams'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.TeamViewSet, basename='team')

urlpatterns = [
    # Team ViewSet routes
    # GET    /api/teams/              - List managed teams
    # POST   /api/teams/              - Create team
    # GET    /api/teams/{id}/         - Get team details
    # PUT    /api/teams/{id}/         - Update team (manager)
    # PATCH  /api/teams/{id}/         - Partial update (manager)

    # Custom team actions
    # GET    /api/teams/{id}/memberships/         - List memberships
    # GET    /api/teams/{id}/due_soon/            - Memberships due within N days
    # POST   /api/teams/{id}/rotate_join_token/   - Replace join link token

    # Public join link (must come before the router's detail route)
    path('join/<str:join_token>/', views.join, name='join'),

    # Include router URLs
    path('', include(router.urls)),
]
