"""
Custom exceptions for the life tracker application.
Provides specific exception types so callers can tell failures apart.
"""


class LifeTrackerException(Exception):
    """Base exception for life tracker application"""
    pass


class NotFoundException(LifeTrackerException):
    """Raised when an entity is missing or not owned by the requesting user"""
    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            super().__init__(f"{entity} not found")
        else:
            super().__init__(f"{entity} with ID {entity_id} not found")


class InvalidStateException(LifeTrackerException):
    """Raised when a transition is not allowed from the entity's current state"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AlreadyCompletedException(InvalidStateException):
    """Raised when completing an entity that is already completed"""
    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} is already completed")


class ValidationException(LifeTrackerException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")


class DatabaseException(LifeTrackerException):
    """Raised when database operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")
