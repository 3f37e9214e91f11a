"""
Standardized exception hierarchy for ruang-tenang
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class RuangTenangError(Exception):
    """
    Base exception for all ruang-tenang errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise RuangTenangError(
            message="Failed to award EXP",
            user_id=42,
            operation="award_exp",
            context={"activity_type": "forum_comment"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[int] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


def _merge_context(extra: Dict[str, Any], kwargs: Dict[str, Any]) -> Dict[str, Any]:
    context = dict(kwargs.pop("context", None) or {})
    context.update(extra)
    return context


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(RuangTenangError):
    """
    Raised when user input fails validation

    Example:
        raise ValidationError(
            message="min_exp must be non-negative",
            field="min_exp",
            value=-5
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context=_merge_context({"field": field, "value": value}, kwargs),
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(RuangTenangError):
    """
    Base class for database-related errors
    """
    pass


class DatabaseConnectionError(DatabaseError):
    """Database connection failed"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble connecting to the database. Please try again in a moment.",
            **kwargs
        )


class CommitUncertainError(DatabaseError):
    """
    The connection failed while COMMIT was in flight

    The server may or may not have committed, so the work must not be
    replayed blindly.
    """

    def __init__(self, message: str = "Transaction outcome unknown: commit failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We couldn't confirm your change was saved. Please check before retrying.",
            **kwargs
        )


class QueryError(DatabaseError):
    """Database query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context=_merge_context({"query": query}, kwargs),
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """Requested database record does not exist"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[Any] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context=_merge_context({"record_type": record_type, "record_id": record_id}, kwargs),
            **kwargs
        )


# ==========================================
# Gamification Errors
# ==========================================

class GamificationError(RuangTenangError):
    """Base class for EXP and level errors"""
    pass


class AwardFailedError(GamificationError):
    """
    The atomic award unit failed and was rolled back.

    Callers treat this as best-effort: their own action is already committed.
    """

    def __init__(
        self,
        message: str = "EXP award failed",
        activity_type: Optional[str] = None,
        **kwargs
    ):
        self.activity_type = activity_type
        super().__init__(
            message=message,
            user_message="We couldn't update your EXP right now.",
            context=_merge_context({"activity_type": activity_type}, kwargs),
            **kwargs
        )


class UnknownActivityError(GamificationError):
    """Activity type is outside the configured enumeration (deployment bug)"""

    def __init__(self, activity_type: Any, **kwargs):
        self.activity_type = activity_type
        super().__init__(
            message=f"Unknown activity type: {activity_type!r}",
            user_message="The system is not properly configured. Please contact support.",
            context=_merge_context({"activity_type": str(activity_type)}, kwargs),
            **kwargs
        )


class ActivityConfigError(GamificationError):
    """Activity rule table is invalid or disagrees with a caller"""

    def __init__(
        self,
        message: str,
        activity_type: Optional[str] = None,
        **kwargs
    ):
        self.activity_type = activity_type
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context=_merge_context({"activity_type": activity_type}, kwargs),
            **kwargs
        )


class UserNotFoundError(GamificationError):
    """Award target has no users row (authenticated caller, so an inconsistency)"""

    def __init__(self, user_id: int, **kwargs):
        super().__init__(
            message=f"User {user_id} does not exist",
            user_id=user_id,
            user_message="User not found.",
            **kwargs
        )


class LevelConfigError(GamificationError):
    """Level configuration write would break the level table invariants"""

    def __init__(
        self,
        message: str,
        level: Optional[int] = None,
        **kwargs
    ):
        self.level = level
        super().__init__(
            message=message,
            user_message=message,
            context=_merge_context({"level": level}, kwargs),
            **kwargs
        )


class LevelExistsError(LevelConfigError):
    """A level config with this level number already exists"""

    def __init__(self, level: int, **kwargs):
        super().__init__(
            message=f"Level {level} already exists",
            level=level,
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_database_exception(
    error: Exception,
    operation: str,
    user_id: Optional[int] = None,
    context: Optional[Dict[str, Any]] = None
) -> RuangTenangError:
    """
    Wrap psycopg exceptions into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate RuangTenangError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_database_exception(e, operation="get_exp_history", user_id=42)
    """
    import psycopg

    if isinstance(error, psycopg.OperationalError):
        return DatabaseConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    return RuangTenangError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
