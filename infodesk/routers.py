"""
URL mappings for the infodesk API.

Trailing slashes are deliberately omitted to match the front end. The
chat session itself is served over WebSocket (see ``hospital.asgi``).
"""
from django.urls import path, include
from .views import health
from .views.departments import departments, department_detail
from .views.doctors import doctors, doctor_detail


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Departments
    path('api/departments', departments, name='departments'),
    path('api/departments/<int:pk>', department_detail, name='department_detail'),
    # Doctors
    path('api/doctors', doctors, name='doctors'),
    path('api/doctors/<int:pk>', doctor_detail, name='doctor_detail'),
]
