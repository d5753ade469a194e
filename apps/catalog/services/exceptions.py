"""Domain-specific exceptions for catalog services."""


class CatalogServiceError(Exception):
    """Base exception for catalog services."""
    pass


class CourseNotFoundError(CatalogServiceError):
    """Raised when no course document carries the requested id."""
    pass
