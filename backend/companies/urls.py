from django.urls import path
from .views import (
    signup,
    application_list, application_detail, application_approve, application_reject,
    company_list, company_detail, company_status, company_me,
)

urlpatterns = [
    path('auth/signup/', signup, name='signup'),

    # Application endpoints
    path('applications/', application_list, name='application-list'),
    path('applications/<int:pk>/', application_detail, name='application-detail'),
    path('applications/<int:pk>/approve/', application_approve, name='application-approve'),
    path('applications/<int:pk>/reject/', application_reject, name='application-reject'),

    # Company endpoints
    path('companies/', company_list, name='company-list'),
    path('companies/me/', company_me, name='company-me'),
    path('companies/<int:pk>/', company_detail, name='company-detail'),
    path('companies/<int:pk>/status/', company_status, name='company-status'),
]
