import logging

from rest_framework import viewsets, status, serializers as drf_serializers
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.services.exceptions import CustomerNotFoundError, NotAuthenticatedError
from apps.catalog.services.exceptions import CourseNotFoundError
from .serializers import (
    TransactionSerializer,
    PurchaseCreateSerializer,
    PurchaseReceiptSerializer,
    ReconciliationSerializer,
    LedgerQuerySerializer,
)
from .services import (
    InsufficientFundsError,
    InvalidPaymentMethodError,
    PurchaseFailedError,
    list_customer_transactions,
    purchase_course,
    reconcile_balance,
)

logger = logging.getLogger(__name__)


# Response serializers for API documentation
class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class InsufficientFundsResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()
    balance = drf_serializers.DecimalField(max_digits=None, decimal_places=2)
    price = drf_serializers.DecimalField(max_digits=None, decimal_places=2)


class TransactionPagination(PageNumberPagination):
    """Custom pagination for the transaction history."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class PurchaseViewSet(viewsets.ViewSet):
    """
    Course purchases and the signed-in customer's ledger.

    create: Buy a course with the account balance
    transactions: Transaction history, newest first
    ledger: Balance reconciled against the transaction history
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        request=PurchaseCreateSerializer,
        responses={
            201: PurchaseReceiptSerializer,
            200: PurchaseReceiptSerializer,
            400: ErrorResponseSerializer,
            402: InsufficientFundsResponseSerializer,
            404: ErrorResponseSerializer,
            503: ErrorResponseSerializer,
        },
        description=(
            "Buy a course. Returns 201 with a new receipt, or 200 with the "
            "original receipt when the course was already bought."
        ),
        tags=['purchases'],
    )
    def create(self, request):
        input_serializer = PurchaseCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        params = input_serializer.validated_data

        try:
            receipt = purchase_course(
                session=request.user,
                course_id=params['course_id'],
                payment_method=params['payment_method'],
            )
        except NotAuthenticatedError as e:
            return Response({'error': str(e)}, status=status.HTTP_401_UNAUTHORIZED)
        except (CourseNotFoundError, CustomerNotFoundError) as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidPaymentMethodError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except InsufficientFundsError as e:
            return Response(
                {'error': str(e), 'balance': e.balance, 'price': e.price},
                status=status.HTTP_402_PAYMENT_REQUIRED,
            )
        except PurchaseFailedError as e:
            return Response({'error': str(e)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(
            PurchaseReceiptSerializer(receipt).data,
            status=status.HTTP_200_OK if receipt.already_owned else status.HTTP_201_CREATED,
        )

    @extend_schema(
        responses={200: TransactionSerializer(many=True)},
        parameters=[
            OpenApiParameter('page', int, description='Page number'),
            OpenApiParameter('page_size', int, description='Results per page'),
        ],
        description="Transaction history of the signed-in customer, newest first.",
        tags=['purchases'],
    )
    @action(detail=False, methods=['get'])
    def transactions(self, request):
        transactions = list_customer_transactions(request.user.customer_id)

        paginator = TransactionPagination()
        page = paginator.paginate_queryset(transactions, request, view=self)
        serializer = TransactionSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @extend_schema(
        parameters=[LedgerQuerySerializer],
        responses={200: ReconciliationSerializer, 404: ErrorResponseSerializer},
        description=(
            "Compare the stored balance with opening balance plus top-ups "
            "minus purchases."
        ),
        tags=['purchases'],
    )
    @action(detail=False, methods=['get'])
    def ledger(self, request):
        query = LedgerQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        try:
            result = reconcile_balance(
                request.user.customer_id,
                opening_balance=query.validated_data['opening_balance'],
            )
        except CustomerNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(ReconciliationSerializer(result).data)
