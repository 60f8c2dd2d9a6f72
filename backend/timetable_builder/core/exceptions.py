class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when generation input is malformed (not when something merely fails to fit)."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource": resource_type, "id": resource_id},
        )

class SchedulingConflictError(AppError):
    """Raised at the HTTP boundary when a placement request is rejected."""
    def __init__(self, message: str, code: str):
        super().__init__(message, status_code=409, details={"code": code})
        self.code = code

class WorkloadLimitError(AppError):
    """Raised when reserving hours would push a faculty member past their ceiling."""
    def __init__(self, faculty_id: str, requested: int, current: int, maximum: int):
        super().__init__(
            f"Faculty workload limit exceeded ({current + requested}h > {maximum}h)",
            status_code=409,
            details={"facultyId": faculty_id, "requested": requested, "current": current, "max": maximum},
        )

class AllocationError(AppError):
    """Raised when a teaching allocation does not match its subject or division."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)
