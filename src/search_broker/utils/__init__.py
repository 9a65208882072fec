"""Utility modules for logging, AWS client management, and errors."""

from search_broker.utils.aws_client import AWSClientManager
from search_broker.utils.errors import (
    ErrorCategory,
    ErrorSeverity,
    ErrorContext,
    BrokerError,
    ConfigurationError,
    NotFoundError,
    TransientProviderError,
    ProvisionError,
    PartialProvisionError,
    ModifyError,
    DeprovisionError,
    TaggingError,
    UnsupportedProviderError,
    ErrorHandler,
    error_handler
)
from search_broker.utils.logging import get_logger, setup_logging

__all__ = [
    # AWS Client
    'AWSClientManager',

    # Errors
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'BrokerError',
    'ConfigurationError',
    'NotFoundError',
    'TransientProviderError',
    'ProvisionError',
    'PartialProvisionError',
    'ModifyError',
    'DeprovisionError',
    'TaggingError',
    'UnsupportedProviderError',
    'ErrorHandler',
    'error_handler',

    # Logging
    'get_logger',
    'setup_logging',
]
