from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CatalogMiss(ServiceError):
    """No fee catalog entry for a (class, course type) pair."""

    def __init__(self, class_id, course_type: str) -> None:
        super().__init__(
            f"No fee catalog entry for class {class_id} with course type {course_type}",
            status.HTTP_404_NOT_FOUND,
        )
        self.class_id = class_id
        self.course_type = course_type


class ScheduleConflict(ServiceError):
    """The (student, month) schedule row is already claimed. Control flow, never surfaced."""

    def __init__(self, student_id, month_year: str) -> None:
        super().__init__(
            f"Month {month_year} already billed for student {student_id}",
            status.HTTP_409_CONFLICT,
        )
        self.student_id = student_id
        self.month_year = month_year


class InvalidPayment(ServiceError):
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> None:
        super().__init__(message, status_code)


class StudentNotFound(ServiceError):
    def __init__(self, student_id) -> None:
        super().__init__(f"Student not found: {student_id}", status.HTTP_404_NOT_FOUND)
        self.student_id = student_id


class TransientStoreError(ServiceError):
    """Connection/transaction failure that is safe to retry."""

    def __init__(self, message: str = "Temporary storage failure, please retry") -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)
