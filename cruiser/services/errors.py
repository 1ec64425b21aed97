"""Error taxonomy shared by the service layer.

Services raise these; the assignment reconciler and the blueprints turn them
into ``OperationResult`` values and JSON responses.
"""
import logging
from contextlib import contextmanager

from google.api_core.exceptions import GoogleAPICallError

logger = logging.getLogger(__name__)


class CruiserError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(CruiserError):
    status_code = 400

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


class NotFoundError(CruiserError):
    status_code = 404


class GeocodingError(CruiserError):
    status_code = 502

    def __init__(self, message, address):
        super().__init__(message)
        self.address = address


class AddressNotFoundError(GeocodingError):
    status_code = 422

    def __init__(self, address):
        super().__init__(
            f'No coordinates found for address: "{address}". Please try a more specific location.',
            address,
        )


class GeocodingProviderError(GeocodingError):

    def __init__(self, address, reason):
        super().__init__(
            f'Geocoding service failed for address: "{address}". Reason: {reason}',
            address,
        )
        self.reason = reason


class MailNotConfiguredError(CruiserError):
    status_code = 503

    def __init__(self):
        super().__init__('Email service is not configured on the server.')


class StoreError(CruiserError):
    status_code = 503

    def __init__(self, action, reason):
        super().__init__(f'Failed to {action}: {reason}')
        self.action = action
        self.reason = reason


@contextmanager
def store_errors(action):
    """Turn Firestore API failures into ``StoreError`` naming what was attempted."""
    try:
        yield
    except GoogleAPICallError as e:
        logger.error("Firestore call failed while trying to %s: %s", action, e)
        raise StoreError(action, e.message or str(e)) from e
