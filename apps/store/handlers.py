"""DRF exception handler for store failures that escape a view."""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.store.services import StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)


def store_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, StoreUnavailableError):
        logger.warning("Store unavailable while handling %s", context.get('view'))
        return Response(
            {'error': 'Service temporarily unavailable, please try again'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if isinstance(exc, StoreError):
        logger.warning("Store error while handling %s: %s", context.get('view'), exc)
        return Response({'error': str(exc)}, status=status.HTTP_409_CONFLICT)
    return None
