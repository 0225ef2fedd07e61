from typing import Optional


class GatewayError(Exception):
    """Any failure talking to the campaign backend.

    Carries a human-readable message and, when a response was received,
    the status code reported by the backend.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class EnvelopeError(GatewayError):
    """Response received but its envelope is not the expected success"""
    pass


class CampaignNotFoundError(EnvelopeError):
    """Requested campaign does not exist on the backend"""
    pass


class TransportError(GatewayError):
    """Request never reached the backend or no response came back"""
    pass


class EncodingError(GatewayError):
    """A file could not be read or encoded for upload"""
    pass
