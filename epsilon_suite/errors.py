"""Exception types raised by epsilon-suite."""

from __future__ import annotations


class EpsilonSuiteError(Exception):
    """Base class for all epsilon-suite failures."""


class SourceUnavailableError(EpsilonSuiteError, OSError):
    """A byte source could not be opened or read."""


class InvalidParameterError(EpsilonSuiteError, ValueError):
    """A test or stream parameter lies outside its documented domain."""


class InsufficientDataError(InvalidParameterError):
    """Fewer bits are available than a test requires."""


class MalformedTemplateError(InvalidParameterError):
    """A template string contains a character that is not a digit."""


class TemplateOverflowError(InvalidParameterError):
    """A template string contains a digit other than 0 or 1."""


class NumericalError(EpsilonSuiteError, ArithmeticError):
    """A special function could not be evaluated to a usable value."""


class InvalidConfigurationError(EpsilonSuiteError):
    """The suite configuration is malformed or inconsistent."""
