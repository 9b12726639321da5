"""Exceptions raised by source control providers."""


class SourceControlError(Exception):
    """A source control operation failed.

    Raised by providers for backend failures and by ``SourceControlBase`` for
    dynamic values that target attributes the provider does not have. Errors
    raised by modification filters are never wrapped in this type; they
    propagate as raised.
    """

    pass
