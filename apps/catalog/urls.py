from django.urls import path
from . import views

app_name = 'catalog'

urlpatterns = [
    path('courses/discover/', views.discover_courses, name='discover'),
    path('courses/mine/', views.my_courses, name='mine'),
    path('courses/<int:course_id>/', views.course_detail, name='course-detail'),
    path('teachers/', views.teachers, name='teachers'),
]
