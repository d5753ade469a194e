from rest_framework import serializers

from .services import is_private_class


class CourseViewSerializer(serializers.Serializer):
    """A course as listed to customers."""

    id = serializers.IntegerField()
    title = serializers.CharField()
    instructor = serializers.CharField()
    duration = serializers.CharField()
    level = serializers.CharField()
    price = serializers.DecimalField(max_digits=None, decimal_places=2)
    description = serializers.CharField()
    is_private = serializers.SerializerMethodField()

    def get_is_private(self, obj) -> bool:
        return is_private_class(obj)


class TeacherProfileSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    experience = serializers.CharField()
    date_started_teaching = serializers.CharField()
    bio = serializers.CharField()
    specialties = serializers.ListField(child=serializers.CharField())
    certifications = serializers.ListField(child=serializers.CharField())


class CourseDetailSerializer(serializers.Serializer):
    course = CourseViewSerializer()
    teacher = TeacherProfileSerializer(allow_null=True)


class CourseFilterSerializer(serializers.Serializer):
    """Query parameters of the course lists."""

    search = serializers.CharField(required=False, allow_blank=True)
    private = serializers.BooleanField(required=False, allow_null=True, default=None)
