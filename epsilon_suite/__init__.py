"""
epsilon-suite: NIST SP 800-22 style randomness testing of bit streams.

Reads bytes from a file or buffer, expands them into bits ("epsilon") and
scores them with the non-overlapping template matching test.
"""

__version__ = "0.1.0"

from epsilon_suite.bitstream import BitStream, BitStreamSource
from epsilon_suite.errors import (
    EpsilonSuiteError,
    InsufficientDataError,
    InvalidParameterError,
    MalformedTemplateError,
    NumericalError,
    SourceUnavailableError,
    TemplateOverflowError,
)
from epsilon_suite.template_matching import NonOverlappingTemplateMatchingTest, TemplateSweepTest
from epsilon_suite.templates import Template
from epsilon_suite.test_suite import StatisticalTest, TestResult, run_battery

__all__ = [
    "BitStream",
    "BitStreamSource",
    "EpsilonSuiteError",
    "InsufficientDataError",
    "InvalidParameterError",
    "MalformedTemplateError",
    "NonOverlappingTemplateMatchingTest",
    "NumericalError",
    "SourceUnavailableError",
    "StatisticalTest",
    "Template",
    "TemplateOverflowError",
    "TemplateSweepTest",
    "TestResult",
    "__version__",
    "run_battery",
]
