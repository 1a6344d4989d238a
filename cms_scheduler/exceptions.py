"""
Custom Exception Classes for the Scheduler

This module defines the exceptions raised by the scheduled-transition engine
and the API around it. Each exception carries an HTTP status code and a
machine-readable error code so the global handlers can render a consistent
error envelope.
"""

import enum
from typing import Any

from fastapi import status


class ErrorCode(str, enum.Enum):
    """Machine-readable error codes returned in API error responses."""

    AUTH_FAILED = "AUTH_FAILED"
    AUTH_INVALID_ACCESS_KEY = "AUTH_INVALID_ACCESS_KEY"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_ENTITY_NOT_FOUND = "RESOURCE_ENTITY_NOT_FOUND"
    RESOURCE_ENTITY_TYPE_NOT_FOUND = "RESOURCE_ENTITY_TYPE_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    SCHEDULER_ENTITY_TYPE_NOT_ENABLED = "SCHEDULER_ENTITY_TYPE_NOT_ENABLED"
    SCHEDULER_MISSING_ACTION = "SCHEDULER_MISSING_ACTION"
    SCHEDULER_CRON_BUSY = "SCHEDULER_CRON_BUSY"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class SchedulerException(Exception):
    """Base exception class for all scheduler exceptions"""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Engine Configuration Errors
# ============================================================================


class EntityTypeNotEnabledError(SchedulerException):
    """Raised when a due item belongs to a bundle not enabled for the process.

    This indicates stale data or an extension that added the id incorrectly,
    so the message lists the registered list/list_alter implementations.
    """

    error_code = ErrorCode.SCHEDULER_ENTITY_TYPE_NOT_ENABLED

    def __init__(
        self,
        label: str,
        entity_id: Any,
        entity_type: str,
        type_field_name: str,
        bundle_label: str,
        process: str,
        hooks: list[str],
    ):
        message = (
            f"'{label}' (id {entity_id}) was not {process}ed because {entity_type} {type_field_name} "
            f"'{bundle_label}' is not enabled for scheduled {process}ing. One of the following hook "
            f"functions added the id incorrectly: {', '.join(hooks)}. Processing halted"
        )
        super().__init__(
            message=message,
            details={
                "entity_id": entity_id,
                "entity_type": entity_type,
                "bundle": bundle_label,
                "process": process,
                "hooks": hooks,
            },
        )


class MissingActionError(SchedulerException):
    """Raised when the action configured for a content kind cannot be loaded"""

    error_code = ErrorCode.SCHEDULER_MISSING_ACTION

    def __init__(self, action_id: str, process: str):
        super().__init__(
            message=f"Action '{action_id}' is missing. Scheduled {process} halted.",
            details={"action_id": action_id, "process": process},
        )


class CronBusyError(SchedulerException):
    """Raised when a cron run is requested while another run holds the lock"""

    error_code = ErrorCode.SCHEDULER_CRON_BUSY

    def __init__(self, trigger: str):
        super().__init__(
            message="A scheduler cron run is already in progress",
            status_code=status.HTTP_409_CONFLICT,
            details={"trigger": trigger},
        )


# ============================================================================
# Authentication Errors
# ============================================================================


class InvalidAccessKeyError(SchedulerException):
    """Raised when the lightweight cron URL is called with a wrong key"""

    error_code = ErrorCode.AUTH_INVALID_ACCESS_KEY

    def __init__(self, message: str = "Invalid lightweight cron access key"):
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN)


class AdminAuthError(SchedulerException):
    """Raised when an admin endpoint is called without a valid token"""

    error_code = ErrorCode.AUTH_FAILED

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED)


# ============================================================================
# Resource Not Found Errors
# ============================================================================


class EntityNotFoundError(SchedulerException):
    """Raised when a schedulable item does not exist"""

    error_code = ErrorCode.RESOURCE_ENTITY_NOT_FOUND

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(
            message=f"{entity_type} with id '{entity_id}' not found",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


class UnknownEntityTypeError(SchedulerException):
    """Raised when no scheduler plugin supports the requested entity type"""

    error_code = ErrorCode.RESOURCE_ENTITY_TYPE_NOT_FOUND

    def __init__(self, entity_type: str):
        super().__init__(
            message=f"Entity type '{entity_type}' is not supported by the scheduler",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"entity_type": entity_type},
        )


class BundleNotFoundError(SchedulerException):
    """Raised when a bundle is not defined for an entity type"""

    error_code = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(self, entity_type: str, bundle: str):
        super().__init__(
            message=f"Bundle '{bundle}' not found for entity type '{entity_type}'",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"entity_type": entity_type, "bundle": bundle},
        )


# ============================================================================
# Validation Errors
# ============================================================================


class SchedulingValidationError(SchedulerException):
    """Raised when submitted scheduling dates fail validation"""

    error_code = ErrorCode.VALIDATION_FAILED

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__(
            message="; ".join(errors.values()),
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"errors": errors},
        )
