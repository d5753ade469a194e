"""
Catalog reader service.

Builds the course lists shown to a customer: courses they have not bought
yet ("discover") and courses they own ("mine"), each joined with the
instructor's display name.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from apps.store.records import (
    COURSE_GRANTS,
    COURSES,
    TEACHERS,
    Course,
    CourseGrant,
    Teacher,
)
from apps.store.services import (
    Filter,
    InvalidRecordError,
    StoreError,
    get_collection,
    query_documents,
)
from .exceptions import CourseNotFoundError
from .pricing import parse_price

logger = logging.getLogger(__name__)

PRIVATE_MARKER = 'private'
GRANT_CUSTOMER_FIELDS = ('customerId', 'CustomerId')

DEFAULT_BIO = (
    'Experienced yoga instructor with a passion for helping students '
    'achieve their wellness goals.'
)
DEFAULT_SPECIALTIES = ('Vinyasa', 'Hatha', 'Meditation')
DEFAULT_CERTIFICATIONS = ('RYT-200', 'Yoga Alliance Certified')


@dataclass(frozen=True)
class CourseView:
    """A course as listed to customers."""

    id: int
    title: str
    instructor: str
    duration: str
    level: str
    price: Decimal
    description: str


@dataclass(frozen=True)
class TeacherProfile:
    id: int
    name: str
    experience: str
    date_started_teaching: str
    bio: str
    specialties: list = field(default_factory=list)
    certifications: list = field(default_factory=list)


@dataclass(frozen=True)
class CourseDetail:
    course: CourseView
    teacher: Optional[TeacherProfile]


def is_private_class(course: CourseView) -> bool:
    """Private classes are marked by "private" in the title or instructor name."""
    return (
        PRIVATE_MARKER in course.title.casefold()
        or PRIVATE_MARKER in course.instructor.casefold()
    )


def _split_list(raw: str, default: Iterable[str]) -> list:
    items = [item.strip() for item in raw.split(', ') if item.strip()] if raw else []
    return items or list(default)


def _teacher_profile(teacher: Teacher) -> TeacherProfile:
    return TeacherProfile(
        id=teacher.id,
        name=teacher.name,
        experience=teacher.experience,
        date_started_teaching=teacher.date_started_teaching,
        bio=teacher.bio or DEFAULT_BIO,
        specialties=_split_list(teacher.specialties, DEFAULT_SPECIALTIES),
        certifications=_split_list(teacher.certifications, DEFAULT_CERTIFICATIONS),
    )


def _find_teacher(teacher_id: int) -> Optional[Teacher]:
    matches = query_documents(TEACHERS, [Filter('Id', '==', teacher_id)], limit=1)
    return Teacher.from_document(matches[0]) if matches else None


def teacher_display_name(teacher_id: Optional[int], cache: Optional[dict] = None) -> str:
    """
    Resolve an instructor name, never failing the caller.

    A missing teacher, a missing ``TeacherId`` or a failed lookup all yield
    the placeholder ``"Teacher {id}"``.
    """
    placeholder = f"Teacher {teacher_id}"
    if teacher_id is None:
        return placeholder
    if cache is not None and teacher_id in cache:
        return cache[teacher_id]

    try:
        teacher = _find_teacher(teacher_id)
        name = teacher.name if teacher and teacher.name else placeholder
    except (StoreError, InvalidRecordError) as e:
        logger.warning("Teacher %s lookup failed: %s", teacher_id, e)
        name = placeholder

    if cache is not None:
        cache[teacher_id] = name
    return name


def to_course_view(course: Course, instructor: str) -> CourseView:
    duration = f"{course.duration_minutes} min" if course.duration_minutes is not None else ''
    return CourseView(
        id=course.id,
        title=course.name,
        instructor=instructor,
        duration=duration,
        level=course.category,
        price=parse_price(course.price_text),
        description=course.description,
    )


def _load_courses() -> list:
    courses = []
    for document in get_collection(COURSES):
        try:
            courses.append(Course.from_document(document))
        except InvalidRecordError as e:
            logger.warning("Skipping unreadable course document: %s", e)
    return courses


def granted_course_ids(customer_id: int) -> set:
    """Ids of every course the customer holds a grant for."""
    grants = []
    # Grants were written with both spellings of the customer field
    for field_name in GRANT_CUSTOMER_FIELDS:
        grants.extend(query_documents(COURSE_GRANTS, [Filter(field_name, '==', customer_id)]))

    course_ids = set()
    for document in grants:
        try:
            course_ids.add(CourseGrant.from_document(document).course_id)
        except InvalidRecordError as e:
            logger.warning("Skipping unreadable grant document: %s", e)
    return course_ids


def _matches_search(course: CourseView, search: str) -> bool:
    needle = search.casefold()
    return any(
        needle in value.casefold()
        for value in (course.title, course.instructor, course.level, course.description)
    )


def _list_courses(
    *,
    customer_id: int,
    owned: bool,
    search: Optional[str],
    private: Optional[bool],
) -> list:
    owned_ids = granted_course_ids(customer_id)
    teacher_names = {}

    views = []
    for course in _load_courses():
        if (course.id in owned_ids) != owned:
            continue

        view = to_course_view(course, teacher_display_name(course.teacher_id, teacher_names))

        if search and search.strip() and not _matches_search(view, search.strip()):
            continue
        if private is not None and is_private_class(view) != private:
            continue

        views.append(view)
    return views


def list_discover_courses(
    *,
    customer_id: int,
    search: Optional[str] = None,
    private: Optional[bool] = None,
) -> list:
    """
    Courses the customer has not bought, in store order.

    Args:
        customer_id: Customer's logical id
        search: Case-insensitive text matched against title, instructor,
            level and description
        private: True for private classes only, False for public only,
            None for both

    Returns:
        list[CourseView]
    """
    return _list_courses(customer_id=customer_id, owned=False, search=search, private=private)


def list_my_courses(
    *,
    customer_id: int,
    search: Optional[str] = None,
    private: Optional[bool] = None,
) -> list:
    """Courses the customer owns, in store order. Same filters as discover."""
    return _list_courses(customer_id=customer_id, owned=True, search=search, private=private)


def get_course(course_id: int) -> Course:
    """
    Raises:
        CourseNotFoundError: If no course carries this id
    """
    matches = query_documents(COURSES, [Filter('Id', '==', course_id)], limit=1)
    if not matches:
        raise CourseNotFoundError(f"Course {course_id} not found")
    return Course.from_document(matches[0])


def get_course_detail(course_id: int) -> CourseDetail:
    """
    A course with its instructor's full profile.

    The teacher is None when the course has no ``TeacherId``, the teacher
    document is missing or the teacher lookup fails.

    Raises:
        CourseNotFoundError: If no course carries this id
    """
    course = get_course(course_id)

    teacher = None
    if course.teacher_id is not None:
        try:
            found = _find_teacher(course.teacher_id)
        except (StoreError, InvalidRecordError) as e:
            logger.warning("Teacher %s lookup failed: %s", course.teacher_id, e)
            found = None
        teacher = _teacher_profile(found) if found else None

    instructor = teacher.name if teacher and teacher.name else f"Teacher {course.teacher_id}"
    return CourseDetail(course=to_course_view(course, instructor), teacher=teacher)


def list_teachers() -> list:
    """All teacher profiles in store order."""
    profiles = []
    for document in get_collection(TEACHERS):
        try:
            profiles.append(_teacher_profile(Teacher.from_document(document)))
        except InvalidRecordError as e:
            logger.warning("Skipping unreadable teacher document: %s", e)
    return profiles
