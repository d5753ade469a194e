import logging

from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema

from apps.purchases.serializers import TransactionSerializer
from .authentication import tokens_for_session
from .serializers import (
    CustomerSerializer,
    CustomerRegistrationSerializer,
    CustomerLoginSerializer,
    ProfileUpdateSerializer,
    TopUpSerializer,
)
from .services import (
    CustomerSession,
    CustomerNotFoundError,
    EmailAlreadyUsedError,
    InvalidAmountError,
    InvalidCredentialsError,
    PasswordChangeError,
    PasswordConfirmationError,
    ProfileValidationError,
    UserRegistrationError,
    authenticate_customer,
    register_customer,
    resolve_customer,
    top_up_balance,
    update_profile,
)

logger = logging.getLogger(__name__)


# Response serializers for API documentation
class TokensResponseSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    customer = CustomerSerializer()
    tokens = TokensResponseSerializer()


class RegisterResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    customer = CustomerSerializer()


class TopUpResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    customer = CustomerSerializer()
    transaction = TransactionSerializer()


class MessageResponseSerializer(serializers.Serializer):
    message = serializers.CharField()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


class RefreshRequestSerializer(serializers.Serializer):
    refresh = serializers.CharField(help_text="Refresh token")


class AccessResponseSerializer(serializers.Serializer):
    access = serializers.CharField()


def _error(message, status_code):
    return Response({'error': str(message)}, status=status_code)


@extend_schema(
    request=CustomerRegistrationSerializer,
    responses={
        201: RegisterResponseSerializer,
        400: ErrorResponseSerializer,
    },
    description="Create a customer account. Registration does not sign the customer in.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Register a new customer account."""
    serializer = CustomerRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        customer = register_customer(**serializer.validated_data)
    except UserRegistrationError as e:
        return _error(e, status.HTTP_400_BAD_REQUEST)

    return Response({
        'message': 'Account created successfully. Please log in.',
        'customer': CustomerSerializer(customer).data,
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    request=CustomerLoginSerializer,
    responses={
        200: AuthResponseSerializer,
        400: ErrorResponseSerializer,
        401: ErrorResponseSerializer,
    },
    description="Authenticate with email and password to receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Login with email and password."""
    serializer = CustomerLoginSerializer(data=request.data)

    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        customer = authenticate_customer(**serializer.validated_data)
    except InvalidCredentialsError as e:
        return _error(e, status.HTTP_401_UNAUTHORIZED)

    session = CustomerSession.from_customer(customer)
    logger.info("Customer %s signed in through the API", customer.id)

    return Response({
        'message': 'Login successful',
        'customer': CustomerSerializer(customer).data,
        'tokens': tokens_for_session(session),
    })


@extend_schema(
    request=RefreshRequestSerializer,
    responses={
        200: MessageResponseSerializer,
        400: ErrorResponseSerializer,
    },
    description="Logout. The client discards its tokens; a refresh token, if sent, is validated.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Logout the current customer."""
    refresh_token = request.data.get('refresh')
    if refresh_token:
        try:
            RefreshToken(refresh_token)
        except TokenError:
            return _error('Invalid token', status.HTTP_400_BAD_REQUEST)

    logger.info("Customer %s signed out through the API", request.user.customer_id)
    return Response({
        'message': 'Logout successful'
    })


@extend_schema(
    request=RefreshRequestSerializer,
    responses={
        200: AccessResponseSerializer,
        401: ErrorResponseSerializer,
    },
    description="Exchange a refresh token for a new access token.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def token_refresh(request):
    """Issue a new access token for a still-existing customer."""
    serializer = RefreshRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        refresh = RefreshToken(serializer.validated_data['refresh'])
        customer_id = int(refresh['customer_id'])
    except (TokenError, KeyError, TypeError, ValueError):
        return _error('Token is invalid or expired', status.HTTP_401_UNAUTHORIZED)

    try:
        resolve_customer(customer_id)
    except CustomerNotFoundError:
        return _error('Customer not found', status.HTTP_401_UNAUTHORIZED)

    return Response({'access': str(refresh.access_token)})


@extend_schema(
    responses={200: CustomerSerializer, 404: ErrorResponseSerializer},
    description="Get the signed-in customer's profile and balance.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_customer(request):
    """Get the signed-in customer, re-read from the store."""
    try:
        customer = resolve_customer(request.user.customer_id)
    except CustomerNotFoundError as e:
        return _error(e, status.HTTP_404_NOT_FOUND)
    return Response(CustomerSerializer(customer).data)


@extend_schema(
    request=ProfileUpdateSerializer,
    responses={
        200: CustomerSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
        409: ErrorResponseSerializer,
    },
    description=(
        "Update name, email, phone number, date of birth or avatar. "
        "Sending any password field requests a password change."
    ),
    tags=['auth'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_customer_profile(request):
    """Update the signed-in customer's profile."""
    customer_id = request.user.customer_id
    try:
        current = resolve_customer(customer_id)
    except CustomerNotFoundError as e:
        return _error(e, status.HTTP_404_NOT_FOUND)

    # Name and email are required by the service; keep the stored ones when omitted
    data = {'name': current.name, 'email': current.email}
    data.update(request.data.items())
    serializer = ProfileUpdateSerializer(data=data)
    serializer.is_valid(raise_exception=True)

    try:
        customer = update_profile(customer_id=customer_id, **serializer.validated_data)
    except (ProfileValidationError, PasswordChangeError, PasswordConfirmationError) as e:
        return _error(e, status.HTTP_400_BAD_REQUEST)
    except EmailAlreadyUsedError as e:
        return _error(e, status.HTTP_409_CONFLICT)
    except CustomerNotFoundError as e:
        return _error(e, status.HTTP_404_NOT_FOUND)

    return Response(CustomerSerializer(customer).data)


@extend_schema(
    request=TopUpSerializer,
    responses={
        200: TopUpResponseSerializer,
        400: ErrorResponseSerializer,
        404: ErrorResponseSerializer,
    },
    description="Add money to the signed-in customer's balance.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def top_up(request):
    """Top up the balance and record a Balance Update transaction."""
    serializer = TopUpSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        customer, transaction = top_up_balance(
            customer_id=request.user.customer_id,
            amount=serializer.validated_data['amount'],
        )
    except InvalidAmountError as e:
        return _error(e, status.HTTP_400_BAD_REQUEST)
    except CustomerNotFoundError as e:
        return _error(e, status.HTTP_404_NOT_FOUND)

    return Response({
        'message': f"Balance updated successfully! Added ${transaction.amount:.2f}",
        'customer': CustomerSerializer(customer).data,
        'transaction': TransactionSerializer(transaction).data,
    })
