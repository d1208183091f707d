from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'lunches'

# Router for ViewSets
router = DefaultRouter()
router.register(r'members', views.MemberViewSet, basename='member')
router.register(r'lunch-entries', views.LunchEntryViewSet, basename='lunch-entry')
router.register(r'payments', views.PaymentViewSet, basename='payment')

urlpatterns = [
    # Member ViewSet routes
    # GET    /api/members/                  - List members
    # POST   /api/members/                  - Create member
    # GET    /api/members/{id}/             - Get member
    # PUT    /api/members/{id}/             - Update member
    # PATCH  /api/members/{id}/             - Partial update
    # DELETE /api/members/{id}/             - Delete member

    # Lunch entry routes mirror the member routes under /api/lunch-entries/

    # Payment routes
    # GET    /api/payments/                 - List payments
    # POST   /api/payments/                 - Record payment
    # GET    /api/payments/check-entry/     - Is an entry paid?
    # POST   /api/payments/settle/          - Settle a member's debt

    # Reconciliation endpoints
    path('weekly-debt/', views.weekly_debt, name='weekly-debt'),
    path('member-report/', views.member_report, name='member-report'),

    # Include router URLs
    path('', include(router.urls)),
]
