"""
Domain error taxonomy for the marketplace.

Every error is a DRF ``APIException`` so services can raise them and views
render them without extra plumbing. Extra context (shortfall amounts, current
and expected statuses, correlation ids) travels on the exception and is merged
into the response body by ``marketplace_exception_handler``.
"""
import logging
import uuid

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler


logger = logging.getLogger(__name__)


class MarketplaceError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be processed."
    default_code = 'marketplace_error'

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail=detail, code=code)
        self.extra = extra

    def get_extra(self):
        return {key: str(value) if value is not None else None for key, value in self.extra.items()}


class NotFound(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = 'not_found'


class Forbidden(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action."
    default_code = 'forbidden'


class InvalidState(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This operation is not valid in the current status."
    default_code = 'invalid_state'

    def __init__(self, detail=None, current_status=None, expected_status=None, code=None):
        if isinstance(expected_status, (list, tuple, set)):
            expected_status = ', '.join(sorted(expected_status))
        super().__init__(
            detail=detail,
            code=code,
            current_status=current_status,
            expected_status=expected_status,
        )
        self.current_status = current_status
        self.expected_status = expected_status


class RequestNotOpen(InvalidState):
    default_detail = "Proposals can only be submitted on open requests."
    default_code = 'request_not_open'


class ProposalNotAcceptable(InvalidState):
    default_detail = "Only approved proposals can be accepted."
    default_code = 'proposal_not_acceptable'


class InvalidTransition(InvalidState):
    default_detail = "Invalid status transition."
    default_code = 'invalid_transition'


class DuplicateProposal(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You have already submitted a proposal for this request."
    default_code = 'duplicate_proposal'


class BookingAlreadyExists(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "A booking already exists for this request."
    default_code = 'booking_already_exists'


class InsufficientFunds(MarketplaceError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_code = 'insufficient_funds'

    def __init__(self, required, available):
        self.required = required
        self.available = available
        self.shortfall = required - available
        super().__init__(
            detail=f"Insufficient balance: {required} required, {available} available.",
            required=required,
            available=available,
            shortfall=self.shortfall,
        )


class ValidationError(MarketplaceError):
    default_detail = "Invalid input."
    default_code = 'validation_error'


class EscrowFailure(MarketplaceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "The operation failed. Contact support with the correlation id."
    default_code = 'escrow_failure'

    def __init__(self, correlation_id):
        self.correlation_id = correlation_id
        super().__init__(correlation_id=correlation_id)


def marketplace_exception_handler(exc, context):
    """
    Render domain errors as ``{detail, code, **extra}``.

    Unhandled exceptions become a generic 500 carrying a correlation id that is
    also written to the log, so support can find the traceback.
    """
    response = exception_handler(exc, context)

    if response is None:
        correlation_id = uuid.uuid4().hex
        view = context.get('view')
        logger.exception(
            f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}",
            extra={'correlation_id': correlation_id},
        )
        return Response(
            {
                'detail': "An unexpected error occurred.",
                'code': 'internal_error',
                'correlation_id': correlation_id,
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, MarketplaceError):
        data = {'detail': str(exc.detail), 'code': exc.get_codes()}
        data.update(exc.get_extra())
        response.data = data

    return response
