# relaychat/core/exceptions.py
import enum
from fastapi import status


class ErrorKind(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    VALIDATION = "validation"
    PERSISTENCE = "persistence"
    DISPATCH = "dispatch"
    RATE_LIMIT = "rate_limit"
    INTERNAL = "internal"


# Единственная таблица соответствия вида ошибки и HTTP статуса
STATUS_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PERSISTENCE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.DISPATCH: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.RATE_LIMIT: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppException(Exception):
    """Базовое исключение для приложения"""
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, detail: str = "Internal server error", status_code: int = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code or STATUS_BY_KIND[self.kind]


class AuthenticationError(AppException):
    """Ошибка аутентификации"""
    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class ValidationError(AppException):
    """Ошибка валидации данных"""
    kind = ErrorKind.VALIDATION

    def __init__(self, detail: str = "Validation error"):
        super().__init__(detail)


class InvalidRecipientError(ValidationError):
    """Некорректный получатель личного сообщения"""
    def __init__(self, detail: str = "Invalid user"):
        super().__init__(detail)


class PersistenceError(AppException):
    """Хранилище отклонило запись"""
    kind = ErrorKind.PERSISTENCE

    def __init__(self, detail: str = "Database error", status_code: int = None):
        super().__init__(detail, status_code)


class DuplicateError(PersistenceError):
    """Нарушение уникальности (username / email)"""
    def __init__(self, detail: str = "Already exists"):
        super().__init__(detail, status.HTTP_400_BAD_REQUEST)


class DispatchFailure(AppException):
    """Ошибка live-доставки. Никогда не отдается клиенту"""
    kind = ErrorKind.DISPATCH

    def __init__(self, detail: str = "Dispatch failed"):
        super().__init__(detail)


class RateLimitError(AppException):
    """Ошибка превышения лимита запросов"""
    kind = ErrorKind.RATE_LIMIT

    def __init__(self, detail: str = "Too many requests"):
        super().__init__(detail)
