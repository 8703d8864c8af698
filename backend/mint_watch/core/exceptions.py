"""
Custom exceptions for ERC-20 Mint Watch
"""


class MintWatchException(Exception):
    """Base exception for all custom exceptions"""

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ConnectionError(MintWatchException):
    """Raised when connection to an API or the chain node fails"""
    pass


class TransportError(ConnectionError):
    """Raised when the subscription socket fails or closes"""
    pass


class APIError(MintWatchException):
    """Raised when API request fails"""
    pass


class RateLimitError(APIError):
    """Raised when rate limit is exceeded"""
    pass


class DataValidationError(MintWatchException):
    """Raised when a response or log record has an unexpected shape"""
    pass


class ContractError(MintWatchException):
    """Raised when smart contract interaction fails"""
    pass


class ConfigurationError(MintWatchException):
    """Raised when required settings are missing"""
    pass


class StartupError(MintWatchException):
    """Raised when the initial subscription cannot be established"""
    pass
