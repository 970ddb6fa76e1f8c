from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'billing'

router = DefaultRouter()
router.register(r'memberships', views.MembershipViewSet, basename='membership')

urlpatterns = [
    # Membership ViewSet routes
    # GET    /api/billing/memberships/                  - List memberships (manager)
    # GET    /api/billing/memberships/{id}/             - Get membership details
    # POST   /api/billing/memberships/{id}/mark_paid/   - Record manual payment
    # POST   /api/billing/memberships/{id}/cancel/      - Cancel membership
    # GET    /api/billing/memberships/{id}/payments/    - Payment history

    # Machine endpoints (bearer secret)
    path('payments/confirmed/', views.payment_confirmed, name='payment-confirmed'),
    path('sweep/', views.run_sweep, name='sweep'),

    # Include router URLs
    path('', include(router.urls)),
]
