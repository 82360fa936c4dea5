import logging
from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from jewelerp.jobs.workflow import TEAM_QUEUE_STATUS
from .filters import AuditLogFilter
from .models import Setting, AuditLog
from .pagination import paginated_response
from .serializers import UserSerializer, SettingSerializer, AuditLogSerializer
from .utils import create_audit_log

logger = logging.getLogger(__name__)

User = get_user_model()


def user_teams(user):
    """Workflow teams (bag, stone, diamond, manufacturer, qc) the user belongs to via auth groups"""
    names = user.groups.values_list('name', flat=True)
    return sorted({name.lower() for name in names} & set(TEAM_QUEUE_STATUS))


class ERPTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        logger.info(f"User {self.user.username} logged in")
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['teams'] = user_teams(user)
        return token


class ERPTokenObtainPairView(TokenObtainPairView):
    serializer_class = ERPTokenObtainPairSerializer


class ERPTokenRefreshSerializer(TokenRefreshSerializer):
    """Refresh that answers 401 instead of 500 when the token's user was deleted"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except User.DoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class ERPTokenRefreshView(TokenRefreshView):
    serializer_class = ERPTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with the workflow teams whose queues they work"""
    data = UserSerializer(request.user).data
    data['teams'] = user_teams(request.user)
    data['is_admin'] = request.user.is_superuser or request.user.is_staff
    return Response(data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_list_create(request):
    if request.method == 'GET':
        return Response(SettingSerializer(Setting.objects.order_by('key'), many=True).data)

    serializer = SettingSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    setting = serializer.save()
    create_audit_log(
        request=request,
        action='create',
        model_name='Setting',
        object_id=setting.id,
        object_name=setting.key,
        changes={'value': setting.value},
    )
    return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_detail(request, key):
    """Read or change one operator setting, addressed by its key"""
    setting = get_object_or_404(Setting, key=key)

    if request.method == 'GET':
        return Response(SettingSerializer(setting).data)

    if request.method == 'DELETE':
        setting_id = setting.id
        setting.delete()
        create_audit_log(request=request, action='delete', model_name='Setting', object_id=setting_id, object_name=key)
        return Response(status=status.HTTP_204_NO_CONTENT)

    old_value = setting.value
    serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    setting = serializer.save()
    create_audit_log(
        request=request,
        action='update',
        model_name='Setting',
        object_id=setting.id,
        object_name=setting.key,
        changes={'value': {'old': old_value, 'new': setting.value}},
    )
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """Audit trail, filtered by ?action=&model_name=&object_id=&reference=&user="""
    queryset = AuditLogFilter(request.query_params, queryset=AuditLog.objects.select_related('user')).qs
    return paginated_response(request, queryset.order_by('-created_at', '-id'), AuditLogSerializer)
