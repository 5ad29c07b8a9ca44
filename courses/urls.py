from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import CourseViewSet, EnrolledCourseListView

router = DefaultRouter()
router.register(r'courses', CourseViewSet, basename='courses')

urlpatterns = [
    path('courses/enrolled/', EnrolledCourseListView.as_view(), name='enrolled-courses'),
    path('', include(router.urls)),
]
