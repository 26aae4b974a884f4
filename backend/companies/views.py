import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db.models import Q
from django.shortcuts import get_object_or_404

from backend.core.permissions import IsPortalAdmin
from backend.core.utils import create_audit_log
from .exceptions import ApplicationWorkflowError, InvalidApplicationTransition
from .models import Company, CompanyApplication
from .serializers import (
    SignupSerializer, CompanyApplicationSerializer, RejectApplicationSerializer,
    CompanySerializer, CustomerCompanySerializer, CompanyStatusSerializer,
)
from .workflow import approve_application, reject_application, set_company_status

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
def signup(request):
    """Company signup: creates a pending account and application"""
    serializer = SignupSerializer(data=request.data)
    if serializer.is_valid():
        application = serializer.save()
        create_audit_log(
            request=request,
            action='signup',
            model_name='CompanyApplication',
            object_id=application.id,
            user=application.user,
            object_name=application.company_name,
            object_reference=application.org_number,
        )
        return Response({
            'message': 'Application submitted. You will be notified once it has been reviewed.',
            'application': CompanyApplicationSerializer(application).data,
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Application views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def application_list(request):
    """List company applications, pending first"""
    queryset = CompanyApplication.objects.select_related('user', 'reviewed_by')

    status_filter = request.query_params.get('status', None)
    if status_filter:
        queryset = queryset.filter(status=status_filter)

    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(company_name__icontains=search) |
            Q(org_number__icontains=search) |
            Q(contact_email__icontains=search)
        )

    serializer = CompanyApplicationSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def application_detail(request, pk):
    """Retrieve a company application"""
    application = get_object_or_404(CompanyApplication.objects.select_related('user', 'reviewed_by'), pk=pk)
    serializer = CompanyApplicationSerializer(application)
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def application_approve(request, pk):
    """Approve an application: creates the company and activates the applicant"""
    application = get_object_or_404(CompanyApplication, pk=pk)
    try:
        company = approve_application(application, request.user)
    except InvalidApplicationTransition as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    create_audit_log(
        request=request,
        action='application_approve',
        model_name='CompanyApplication',
        object_id=application.id,
        object_name=application.company_name,
        object_reference=application.org_number,
        changes={'status': application.status, 'company_id': company.id},
    )
    return Response({
        'application': CompanyApplicationSerializer(application).data,
        'company': CompanySerializer(company).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def application_reject(request, pk):
    """Reject an application; a reason is required"""
    application = get_object_or_404(CompanyApplication, pk=pk)
    serializer = RejectApplicationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        reject_application(application, request.user, serializer.validated_data['reason'])
    except InvalidApplicationTransition as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    except ApplicationWorkflowError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request,
        action='application_reject',
        model_name='CompanyApplication',
        object_id=application.id,
        object_name=application.company_name,
        object_reference=application.org_number,
        changes={'status': application.status, 'rejection_reason': application.rejection_reason},
    )
    return Response(CompanyApplicationSerializer(application).data)


# Company views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def company_list(request):
    """List companies with optional active/search filters"""
    queryset = Company.objects.prefetch_related('users')

    active = request.query_params.get('active', None)
    if active is not None:
        queryset = queryset.filter(active=active.lower() in ('1', 'true', 'yes'))

    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) |
            Q(org_number__icontains=search) |
            Q(contact_email__icontains=search)
        )

    serializer = CompanySerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def company_detail(request, pk):
    """Retrieve or update a company profile"""
    company = get_object_or_404(Company, pk=pk)

    if request.method == 'GET':
        serializer = CompanySerializer(company)
        return Response(serializer.data)

    serializer = CompanySerializer(company, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        create_audit_log(
            request=request,
            action='update',
            model_name='Company',
            object_id=company.id,
            object_name=company.name,
            object_reference=company.org_number,
            changes={key: str(value) for key, value in serializer.validated_data.items()},
        )
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPortalAdmin])
def company_status(request, pk):
    """Activate or deactivate a company"""
    company = get_object_or_404(Company, pk=pk)
    serializer = CompanyStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    active = serializer.validated_data['active']
    set_company_status(company, active, request.user)
    create_audit_log(
        request=request,
        action='company_status',
        model_name='Company',
        object_id=company.id,
        object_name=company.name,
        object_reference=company.org_number,
        changes={'active': active, 'approved': active},
    )
    return Response(CompanySerializer(company).data)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def company_me(request):
    """The signed-in customer's own company"""
    company = request.user.company
    if company is None:
        return Response({'error': 'Your account is not linked to a company.'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(CustomerCompanySerializer(company).data)

    if not company.active:
        return Response({'error': 'Your company account has been deactivated.'}, status=status.HTTP_403_FORBIDDEN)
    serializer = CustomerCompanySerializer(company, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        logger.info(f"Company {company.pk} profile updated by {request.user.username}")
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
