"""Error taxonomy for provider operations and translation of AWS failures."""

from typing import Optional, Dict, Any, List, Type
from enum import Enum
from dataclasses import dataclass
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, PartialCredentialsError
from search_broker.utils.logging import get_logger

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Categories of errors that can occur during provider operations."""
    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    PROVISIONING = "provisioning"
    MODIFICATION = "modification"
    DEPROVISIONING = "deprovisioning"
    TAGGING = "tagging"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    CRITICAL = "critical"  # Call cannot succeed without operator action
    ERROR = "error"  # Call failed, caller decides what to do
    WARNING = "warning"  # Non-fatal issue


@dataclass
class ErrorContext:
    """Context information for an error."""
    instance_name: Optional[str] = None
    plan_id: Optional[str] = None
    operation: Optional[str] = None
    aws_operation: Optional[str] = None
    request_id: Optional[str] = None
    additional_info: Optional[Dict[str, Any]] = None


class BrokerError(Exception):
    """Base exception for provider errors."""

    category = ErrorCategory.UNKNOWN
    severity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """Initialize broker error.

        Args:
            message: Human-readable error message
            context: Additional context about the error
            cause: Original exception that caused this error
            suggestions: List of suggested fixes
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = suggestions or []

    def to_user_message(self) -> str:
        """Convert error to user-friendly message.

        Returns:
            Formatted error message for display
        """
        lines = [f"{self.severity.value.upper()}: {self.message}"]

        if self.context.instance_name:
            lines.append(f"   Instance: {self.context.instance_name}")
        if self.context.operation:
            lines.append(f"   Operation: {self.context.operation}")
        if self.cause:
            lines.append(f"   Cause: {self.cause}")

        if self.suggestions:
            lines.append("\nSuggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error
        """
        return {
            'type': type(self).__name__,
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': {
                'instance_name': self.context.instance_name,
                'plan_id': self.context.plan_id,
                'operation': self.context.operation,
                'aws_operation': self.context.aws_operation,
                'request_id': self.context.request_id,
                'additional_info': self.context.additional_info
            },
            'cause': str(self.cause) if self.cause else None,
            'suggestions': self.suggestions
        }


class ConfigurationError(BrokerError):
    """Missing or invalid environment settings, or an unparsable plan."""
    category = ErrorCategory.CONFIGURATION
    severity = ErrorSeverity.CRITICAL


class NotFoundError(BrokerError):
    """The control plane has no matching resource."""
    category = ErrorCategory.NOT_FOUND
    severity = ErrorSeverity.WARNING


class TransientProviderError(BrokerError):
    """Network or control-plane failure while reading."""
    category = ErrorCategory.TRANSIENT


class ProvisionError(BrokerError):
    """The control plane rejected a create request."""
    category = ErrorCategory.PROVISIONING


class PartialProvisionError(ProvisionError):
    """The resource was created but a follow-up step failed.

    The created instance is attached so callers can verify it exists
    before retrying; a blind retry creates a second, differently named
    resource.
    """

    def __init__(self, message: str, instance=None, **kwargs):
        super().__init__(message, **kwargs)
        self.instance = instance


class ModifyError(BrokerError):
    """The control plane rejected an update request."""
    category = ErrorCategory.MODIFICATION


class DeprovisionError(BrokerError):
    """The control plane rejected a delete request."""
    category = ErrorCategory.DEPROVISIONING


class TaggingError(BrokerError):
    """Adding or removing a tag failed."""
    category = ErrorCategory.TAGGING


class UnsupportedProviderError(BrokerError):
    """No provider implementation is registered for a plan."""
    category = ErrorCategory.UNSUPPORTED
    severity = ErrorSeverity.CRITICAL


class ErrorHandler:
    """Translates AWS and network failures into the broker error taxonomy."""

    # Mapping of AWS error codes to error classes and suggestions.
    # A mapped class of None keeps the caller's fallback class.
    AWS_ERROR_MAPPING = {
        'ResourceNotFoundException': {
            'error_class': NotFoundError,
            'message': 'Domain not found',
            'suggestions': [
                'Verify the domain exists in the configured region',
                'Check if the domain was deleted outside the broker'
            ]
        },
        'ResourceAlreadyExistsException': {
            'error_class': None,
            'message': 'Domain already exists',
            'suggestions': [
                'Generated names should not collide; check the name prefix',
                'Delete the existing domain if it is no longer needed'
            ]
        },
        'ValidationException': {
            'error_class': None,
            'message': 'Invalid domain configuration',
            'suggestions': [
                'Review the plan configuration against the Elasticsearch Service API',
                'Check instance types, volume sizes and version compatibility'
            ]
        },
        'InvalidTypeException': {
            'error_class': None,
            'message': 'Invalid instance or volume type',
            'suggestions': [
                'Check the instance type is offered in this region',
                'Verify the EBS volume type is supported for the instance type'
            ]
        },
        'LimitExceededException': {
            'error_class': None,
            'message': 'Service limit exceeded',
            'suggestions': [
                'Request a service limit increase through AWS Support',
                'Remove unused domains'
            ]
        },
        'DisabledOperationException': {
            'error_class': None,
            'message': 'Operation disabled for this account',
            'suggestions': [
                'Check the account is enabled for Elasticsearch Service'
            ]
        },
        'AccessDeniedException': {
            'error_class': None,
            'message': 'Access denied - insufficient permissions',
            'suggestions': [
                'Check IAM policies attached to the broker role',
                'Verify es:* permissions are granted for this region'
            ]
        },
        'InternalException': {
            'error_class': None,
            'message': 'Elasticsearch Service internal error',
            'suggestions': [
                'Check the AWS Service Health Dashboard',
                'Verify the domain state before trying again'
            ]
        },
        'BaseException': {
            'error_class': None,
            'message': 'Elasticsearch Service error',
            'suggestions': [
                'Review the error message for details'
            ]
        },
    }

    def __init__(self):
        """Initialize error handler."""
        self.logger = get_logger(__name__)

    def handle_exception(
        self,
        error: Exception,
        context: Optional[ErrorContext] = None,
        fallback: Type[BrokerError] = BrokerError
    ) -> BrokerError:
        """Handle an exception and convert to BrokerError.

        Args:
            error: The exception to handle
            context: Additional context about where the error occurred
            fallback: Error class used when the failure has no specific mapping

        Returns:
            BrokerError with categorization and suggestions
        """
        context = context or ErrorContext()

        if isinstance(error, BrokerError):
            return error

        if isinstance(error, ClientError):
            return self._handle_aws_error(error, context, fallback)

        if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
            return ConfigurationError(
                message=f'AWS credentials unavailable: {error}',
                context=context,
                cause=error,
                suggestions=[
                    'Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables',
                    'Use an IAM role if running on EC2/ECS/Lambda'
                ]
            )

        if isinstance(error, (BotoCoreError, ConnectionError, TimeoutError)):
            return fallback(
                message=f'Network error: {error}',
                context=context,
                cause=error,
                suggestions=[
                    'Check network connectivity to the AWS API endpoints',
                    'Verify the configured region is correct'
                ]
            )

        return fallback(
            message=str(error),
            context=context,
            cause=error,
            suggestions=['Check logs for more details']
        )

    def _handle_aws_error(
        self,
        error: ClientError,
        context: ErrorContext,
        fallback: Type[BrokerError]
    ) -> BrokerError:
        """Handle AWS ClientError.

        Args:
            error: The ClientError
            context: Error context
            fallback: Error class for codes without a specific class

        Returns:
            Categorized BrokerError
        """
        error_code = error.response.get('Error', {}).get('Code', 'Unknown')
        error_message = error.response.get('Error', {}).get('Message', str(error))
        context.request_id = error.response.get('ResponseMetadata', {}).get('RequestId')
        context.aws_operation = context.aws_operation or getattr(error, 'operation_name', None)

        error_info = self.AWS_ERROR_MAPPING.get(error_code)

        if error_info:
            error_class = error_info['error_class'] or fallback
            return error_class(
                message=f"{error_info['message']}: {error_message}",
                context=context,
                cause=error,
                suggestions=list(error_info['suggestions'])
            )

        return fallback(
            message=f"AWS Error ({error_code}): {error_message}",
            context=context,
            cause=error,
            suggestions=[
                'Check AWS documentation for this error code',
                f'AWS Request ID: {context.request_id}'
            ]
        )

    def log_error(self, error: BrokerError):
        """Log an error with appropriate level.

        Args:
            error: The error to log
        """
        log_message = error.to_user_message()

        if error.severity == ErrorSeverity.WARNING:
            self.logger.warning(log_message)
        else:
            self.logger.error(log_message)

        self.logger.debug(f"Error details: {error.to_dict()}")


# Global error handler instance
error_handler = ErrorHandler()
