"""
Stackwork errors.
"""

class StackworkError(Exception):
    """Base exception for all Stackwork errors."""
    pass

class TransientIOError(StackworkError):
    """An AWS, DNS or network call failed; the invocation should be retried."""
    pass

class DeliveryError(StackworkError):
    """The completion callback could not be delivered."""
    pass

class InvalidRequestError(StackworkError):
    """An inbound event could not be parsed."""
    pass

class DeploymentError(StackworkError):
    """Errors during deployment."""
    pass

class ConfigurationError(StackworkError):
    """Errors in configuration."""
    pass
