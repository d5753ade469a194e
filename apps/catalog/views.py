from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import (
    CourseViewSerializer,
    CourseDetailSerializer,
    CourseFilterSerializer,
    TeacherProfileSerializer,
)
from .services import (
    CourseNotFoundError,
    get_course_detail,
    list_discover_courses,
    list_my_courses,
    list_teachers,
)


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


def _filters(request):
    filter_serializer = CourseFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)
    params = filter_serializer.validated_data
    return {
        'search': params.get('search') or None,
        'private': params.get('private'),
    }


@extend_schema(
    parameters=[CourseFilterSerializer],
    responses={200: CourseViewSerializer(many=True)},
    description="Courses the signed-in customer has not bought yet.",
    tags=['catalog'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def discover_courses(request):
    """List courses available to buy."""
    courses = list_discover_courses(customer_id=request.user.customer_id, **_filters(request))
    return Response(CourseViewSerializer(courses, many=True).data)


@extend_schema(
    parameters=[CourseFilterSerializer],
    responses={200: CourseViewSerializer(many=True)},
    description="Courses the signed-in customer owns.",
    tags=['catalog'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_courses(request):
    """List purchased courses."""
    courses = list_my_courses(customer_id=request.user.customer_id, **_filters(request))
    return Response(CourseViewSerializer(courses, many=True).data)


@extend_schema(
    responses={200: CourseDetailSerializer, 404: ErrorResponseSerializer},
    description="A course with its instructor's profile.",
    tags=['catalog'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def course_detail(request, course_id):
    """Get one course."""
    try:
        detail = get_course_detail(course_id)
    except CourseNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    return Response(CourseDetailSerializer(detail).data)


@extend_schema(
    responses={200: TeacherProfileSerializer(many=True)},
    description="All instructors.",
    tags=['catalog'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def teachers(request):
    """List instructor profiles."""
    return Response(TeacherProfileSerializer(list_teachers(), many=True).data)
