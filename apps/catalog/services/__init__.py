"""Services for catalog business logic."""

from .exceptions import CatalogServiceError, CourseNotFoundError
from .pricing import parse_price
from .catalog_reader import (
    CourseView,
    CourseDetail,
    TeacherProfile,
    is_private_class,
    teacher_display_name,
    granted_course_ids,
    list_discover_courses,
    list_my_courses,
    get_course,
    get_course_detail,
    list_teachers,
)

__all__ = [
    # Exceptions
    'CatalogServiceError',
    'CourseNotFoundError',
    # Services
    'parse_price',
    'CourseView',
    'CourseDetail',
    'TeacherProfile',
    'is_private_class',
    'teacher_display_name',
    'granted_course_ids',
    'list_discover_courses',
    'list_my_courses',
    'get_course',
    'get_course_detail',
    'list_teachers',
]
