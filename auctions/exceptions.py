# auctions/exceptions.py
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, PermissionDenied, ValidationError


class AuctionNotFound(NotFound):
    default_detail = 'Auction not found.'


class InvalidState(APIException):
    """Operation is not legal in the auction's current status."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Operation not allowed in the current auction state.'
    default_code = 'invalid_state'


class BidValidationError(ValidationError):
    """
    Malformed or insufficient input. ``minimum`` is set when an amount was
    rejected for being under the next acceptable bid.
    """

    def __init__(self, detail=None, code=None, minimum=None):
        self.minimum = minimum
        if minimum is not None:
            detail = {'error': detail, 'minimum': str(minimum)}
        super().__init__(detail, code)


class Forbidden(PermissionDenied):
    default_detail = 'You are not allowed to perform this action on this auction.'


class Conflict(APIException):
    """Lost the optimistic-concurrency race too many times; re-fetch and retry."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The auction changed while your bid was being placed. Please retry.'
    default_code = 'conflict'
