from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class PriceNotDefinedError(AppException):
    """No unit price for a (course, grade category) pair."""

    def __init__(self, course: str, grade: str, category: str | None):
        message = f"No unit price defined for course {course} and grade {grade}"
        if category:
            message = f"{message} (category {category})"
        super().__init__(
            message=message,
            status_code=422,
            details={"course": course, "grade": grade, "category": category},
        )


class AllocationMismatchError(AppException):
    """Lecture allocation lessons do not add up to the course's total lessons."""

    def __init__(self, course: str, allocated: int, total_lessons: int):
        message = (
            f"{course}: allocated lessons ({allocated}) do not match total lessons ({total_lessons})"
        )
        super().__init__(
            message=message,
            status_code=422,
            details={"course": course, "allocated": allocated, "total_lessons": total_lessons},
        )


class UnknownBillingSourceError(AppException):
    """Billing source is not a contract, lecture or material sale."""

    def __init__(self, source: Any):
        super().__init__(
            message=f"Unsupported billing source: {type(source).__name__}",
            status_code=400,
        )
