"""Exception types raised across the notifier."""


class NotifierError(Exception):
    """Base class for all notifier errors."""


class ConfigurationError(NotifierError):
    """Required configuration is missing or invalid at startup."""


class ReconciliationAccessError(NotifierError):
    """The log could not be read while replaying its history."""


class TailAccessError(NotifierError):
    """The log became unreadable while following it."""


class DeliveryError(NotifierError):
    """A notification sink failed to deliver a message."""
