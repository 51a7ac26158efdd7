"""Exceptions raised by the price services."""


class PriceServiceError(Exception):
    """Base class for all price service errors."""


class ConfigurationError(PriceServiceError):
    """Raised when a required setting (the API key) is missing."""


class ClientInputError(PriceServiceError):
    """Raised when a required request parameter is missing."""


class UpstreamError(PriceServiceError):
    """Base class for failures talking to backpack.tf."""


class UpstreamTransportError(UpstreamError):
    """Network failure or timeout calling the upstream API."""


class UpstreamDecodeError(UpstreamError):
    """Upstream body could not be decoded into the expected shape."""


class UpstreamLogicalFailure(UpstreamError):
    """Upstream answered but reported success != 1."""

    def __init__(self, message: str, body: str = ""):
        self.message = message
        self.body = body
        super().__init__(f"Upstream reported failure: {message}")
