from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from .serializers import (
    MemberSerializer,
    LunchEntrySerializer,
    PaymentSerializer,
    DebtSummarySerializer,
    EntryPaidStatusSerializer,
    MemberReportSerializer,
    ErrorResponseSerializer,
    # Input serializers (request documentation)
    MemberInputSerializer,
    LunchEntryInputSerializer,
    PaymentInputSerializer,
    SettleInputSerializer,
)

from apps.lunches.services import (
    list_members,
    get_member,
    create_member,
    update_member,
    delete_member,
    list_entries,
    get_entry,
    create_entry,
    update_entry,
    delete_entry,
    create_payment,
    list_payments,
    compute_weekly_debt,
    is_entry_paid,
    get_active_policy,
    settle_debt,
    get_member_report,
    # Exceptions
    LunchesServiceError,
    NotFoundError,
    DuplicateEntryError,
    MissingParameterError,
    StorageError,
)


ERROR_RESPONSES = {
    400: ErrorResponseSerializer,
    404: ErrorResponseSerializer,
    503: ErrorResponseSerializer,
}

DATE_RANGE_PARAMETERS = [
    OpenApiParameter('start_date', OpenApiTypes.DATE, description='Inclusive start (YYYY-MM-DD)'),
    OpenApiParameter('end_date', OpenApiTypes.DATE, description='Inclusive end (YYYY-MM-DD)'),
]

ENTRY_FIELDS = ('member_id', 'date', 'quantity', 'price', 'note')


def error_response(error: LunchesServiceError) -> Response:
    """Translate a service exception into an error response."""
    if isinstance(error, NotFoundError):
        http_status = status.HTTP_404_NOT_FOUND
    elif isinstance(error, DuplicateEntryError):
        http_status = status.HTTP_409_CONFLICT
    elif isinstance(error, StorageError):
        http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        http_status = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(error), 'code': error.code}, status=http_status)


def validated_body(serializer_class, data) -> dict:
    """Parse a request body through an input serializer, absent fields skipped."""
    serializer = serializer_class(data=data, partial=True)
    if not serializer.is_valid():
        field, messages = next(iter(serializer.errors.items()))
        raise MissingParameterError(f"{field}: {messages[0]}")
    return serializer.validated_data


class MemberViewSet(viewsets.ViewSet):
    """
    ViewSet for Member CRUD operations.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Get all members (``?active=true`` for active only)
    create: Create a new member
    retrieve: Get a specific member
    update / partial_update: Rename or (de)activate a member
    destroy: Delete a member with their entries and payments
    """

    @extend_schema(
        parameters=[OpenApiParameter('active', OpenApiTypes.BOOL, description='Only active members')],
        responses={200: MemberSerializer(many=True)},
        tags=['members'],
    )
    def list(self, request):
        active_only = request.query_params.get('active', '').lower() in ('1', 'true', 'yes')
        try:
            members = list_members(active_only=active_only)
            return Response(MemberSerializer(members, many=True).data)
        except LunchesServiceError as e:
            return error_response(e)

    @extend_schema(
        request=MemberInputSerializer,
        responses={201: MemberSerializer, **ERROR_RESPONSES},
        tags=['members'],
    )
    def create(self, request):
        try:
            data = validated_body(MemberInputSerializer, request.data)
            member = create_member(
                name=data.get('name'),
                is_active=data.get('is_active'),
            )
        except LunchesServiceError as e:
            return error_response(e)
        return Response(MemberSerializer(member).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: MemberSerializer, **ERROR_RESPONSES}, tags=['members'])
    def retrieve(self, request, pk=None):
        try:
            member = get_member(member_id=pk)
        except LunchesServiceError as e:
            return error_response(e)
        return Response(MemberSerializer(member).data)

    @extend_schema(
        request=MemberInputSerializer,
        responses={200: MemberSerializer, **ERROR_RESPONSES},
        tags=['members'],
    )
    def update(self, request, pk=None):
        try:
            data = validated_body(MemberInputSerializer, request.data)
            member = update_member(
                member_id=pk,
                name=data.get('name'),
                is_active=data.get('is_active'),
            )
        except LunchesServiceError as e:
            return error_response(e)
        return Response(MemberSerializer(member).data)

    @extend_schema(
        request=MemberInputSerializer,
        responses={200: MemberSerializer, **ERROR_RESPONSES},
        tags=['members'],
    )
    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    @extend_schema(responses={204: None, **ERROR_RESPONSES}, tags=['members'])
    def destroy(self, request, pk=None):
        try:
            delete_member(member_id=pk)
        except LunchesServiceError as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LunchEntryViewSet(viewsets.ViewSet):
    """
    ViewSet for LunchEntry CRUD operations.

    One entry per member per day; a second entry for the same pair is
    rejected with 409.
    """

    @extend_schema(
        parameters=DATE_RANGE_PARAMETERS,
        responses={200: LunchEntrySerializer(many=True), **ERROR_RESPONSES},
        tags=['lunch-entries'],
    )
    def list(self, request):
        try:
            entries = list_entries(
                start_date=request.query_params.get('start_date'),
                end_date=request.query_params.get('end_date'),
            )
            return Response(LunchEntrySerializer(entries, many=True).data)
        except LunchesServiceError as e:
            return error_response(e)

    @extend_schema(
        request=LunchEntryInputSerializer,
        responses={201: LunchEntrySerializer, 409: ErrorResponseSerializer, **ERROR_RESPONSES},
        tags=['lunch-entries'],
    )
    def create(self, request):
        try:
            entry = create_entry(
                member_id=request.data.get('member_id'),
                date=request.data.get('date'),
                quantity=request.data.get('quantity'),
                price=request.data.get('price'),
                note=request.data.get('note'),
            )
        except LunchesServiceError as e:
            return error_response(e)
        return Response(LunchEntrySerializer(entry).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: LunchEntrySerializer, **ERROR_RESPONSES}, tags=['lunch-entries'])
    def retrieve(self, request, pk=None):
        try:
            entry = get_entry(entry_id=pk)
        except LunchesServiceError as e:
            return error_response(e)
        return Response(LunchEntrySerializer(entry).data)

    @extend_schema(
        request=LunchEntryInputSerializer,
        responses={200: LunchEntrySerializer, 409: ErrorResponseSerializer, **ERROR_RESPONSES},
        tags=['lunch-entries'],
    )
    def update(self, request, pk=None):
        # Only forward fields present in the body; absent ones stay unchanged
        changes = {field: request.data[field] for field in ENTRY_FIELDS if field in request.data}
        try:
            entry = update_entry(entry_id=pk, **changes)
        except LunchesServiceError as e:
            return error_response(e)
        return Response(LunchEntrySerializer(entry).data)

    @extend_schema(
        request=LunchEntryInputSerializer,
        responses={200: LunchEntrySerializer, 409: ErrorResponseSerializer, **ERROR_RESPONSES},
        tags=['lunch-entries'],
    )
    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    @extend_schema(responses={204: None, **ERROR_RESPONSES}, tags=['lunch-entries'])
    def destroy(self, request, pk=None):
        try:
            delete_entry(entry_id=pk)
        except LunchesServiceError as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PaymentViewSet(viewsets.ViewSet):
    """
    ViewSet for payments.

    Payments are append-only: list and create, plus the paid-status
    check and the settlement action.
    """

    @extend_schema(
        parameters=[
            OpenApiParameter('member_id', OpenApiTypes.UUID, description='Filter by member'),
            OpenApiParameter('start_date', OpenApiTypes.DATE, description='Payments starting on or after'),
            OpenApiParameter('end_date', OpenApiTypes.DATE, description='Payments ending on or before'),
        ],
        responses={200: PaymentSerializer(many=True), **ERROR_RESPONSES},
        tags=['payments'],
    )
    def list(self, request):
        try:
            payments = list_payments(
                member_id=request.query_params.get('member_id'),
                start_date=request.query_params.get('start_date'),
                end_date=request.query_params.get('end_date'),
            )
            return Response(PaymentSerializer(payments, many=True).data)
        except LunchesServiceError as e:
            return error_response(e)

    @extend_schema(
        request=PaymentInputSerializer,
        responses={201: PaymentSerializer, **ERROR_RESPONSES},
        tags=['payments'],
    )
    def create(self, request):
        try:
            payment = create_payment(
                member_id=request.data.get('member_id'),
                start_date=request.data.get('start_date'),
                end_date=request.data.get('end_date'),
                amount=request.data.get('amount'),
                note=request.data.get('note'),
            )
        except LunchesServiceError as e:
            return error_response(e)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        parameters=[OpenApiParameter('entry_id', OpenApiTypes.UUID, required=True)],
        responses={200: EntryPaidStatusSerializer, **ERROR_RESPONSES},
        description="Whether a lunch entry is covered by a payment under the active policy.",
        tags=['payments'],
    )
    @action(detail=False, methods=['get'], url_path='check-entry')
    def check_entry(self, request):
        """
        GET /api/payments/check-entry/?entry_id=<uuid>
        """
        entry_id = request.query_params.get('entry_id')
        try:
            paid = is_entry_paid(entry_id=entry_id)
        except LunchesServiceError as e:
            return error_response(e)
        return Response(EntryPaidStatusSerializer({
            'entry_id': entry_id,
            'is_paid': paid,
            'policy': get_active_policy().value,
        }).data)

    @extend_schema(
        request=SettleInputSerializer,
        responses={201: PaymentSerializer, **ERROR_RESPONSES},
        description="Record a payment for a member's full computed debt over a range.",
        tags=['payments'],
    )
    @action(detail=False, methods=['post'])
    def settle(self, request):
        """
        POST /api/payments/settle/
        Body: {"member_id": ..., "start_date": ..., "end_date": ..., "payment_end_date": optional}
        """
        try:
            payment = settle_debt(
                member_id=request.data.get('member_id'),
                start_date=request.data.get('start_date'),
                end_date=request.data.get('end_date'),
                payment_end_date=request.data.get('payment_end_date'),
                meal_price=request.data.get('meal_price'),
                note=request.data.get('note'),
            )
        except LunchesServiceError as e:
            return error_response(e)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


@extend_schema(
    parameters=DATE_RANGE_PARAMETERS + [
        OpenApiParameter('meal_price', OpenApiTypes.INT, description='Default unit price in minor units'),
    ],
    responses={200: DebtSummarySerializer, **ERROR_RESPONSES},
    description="Unpaid meals and amounts per member over an inclusive date range.",
    tags=['reconciliation'],
)
@api_view(['GET'])
def weekly_debt(request):
    """Compute who owes what over a date range."""
    try:
        summary = compute_weekly_debt(
            start_date=request.query_params.get('start_date'),
            end_date=request.query_params.get('end_date'),
            meal_price=request.query_params.get('meal_price'),
        )
    except LunchesServiceError as e:
        return error_response(e)
    return Response(DebtSummarySerializer(summary).data)


@extend_schema(
    parameters=[
        OpenApiParameter('member_id', OpenApiTypes.UUID, required=True),
        *DATE_RANGE_PARAMETERS,
        OpenApiParameter('meal_price', OpenApiTypes.INT, description='Default unit price in minor units'),
    ],
    responses={200: MemberReportSerializer, **ERROR_RESPONSES},
    description="Statement of one member's lunches with per-entry paid status.",
    tags=['reconciliation'],
)
@api_view(['GET'])
def member_report(request):
    """Per-member statement over a date range."""
    try:
        report = get_member_report(
            member_id=request.query_params.get('member_id'),
            start_date=request.query_params.get('start_date'),
            end_date=request.query_params.get('end_date'),
            meal_price=request.query_params.get('meal_price'),
        )
    except LunchesServiceError as e:
        return error_response(e)
    return Response(MemberReportSerializer(report).data)
