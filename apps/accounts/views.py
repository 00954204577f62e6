# apps/accounts/views.py
import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView

from core.constants import UserRoles
from core.mixins.clinic_queryset import ClinicQuerySetMixin
from core.permissions import Permissions
from .models import User
from .permissions import UserPermissions
from .serializers import UserSerializer, UserCreateSerializer, CustomTokenObtainPairSerializer, ChangePasswordSerializer

logger = logging.getLogger(__name__)


class UserViewSet(ClinicQuerySetMixin, viewsets.ModelViewSet):
    queryset = User.objects.filter(is_active=True).select_related('clinic')
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated, UserPermissions]
    filterset_fields = ['role', 'clinic']
    http_method_names = ['get', 'post', 'put', 'patch', 'delete']

    def get_serializer_class(self):
        if self.action == 'create':
            return UserCreateSerializer
        return super().get_serializer_class()

    def perform_create(self, serializer):
        data = serializer.validated_data
        if data.get('role') == UserRoles.ADMIN and self.request.user.role != UserRoles.ADMIN:
            raise PermissionDenied("Only administrators can create administrators")
        clinic = data.get('clinic')
        if clinic and not Permissions.can_access_clinic(self.request.user, clinic.id):
            raise PermissionDenied("Cannot create users for another clinic")
        user = serializer.save()
        logger.info(f"User {user.email} created with role {user.role} by {self.request.user.email}")

    def perform_destroy(self, instance):
        # Staff accounts are deactivated, never removed
        instance.is_active = False
        instance.save(update_fields=['is_active'])

    @action(detail=False, methods=['get', 'patch'])
    def me(self, request):
        """Get or update current user profile"""
        if request.method == 'GET':
            return Response(UserSerializer(request.user).data)

        serializer = UserSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        # Role and clinic are assigned by administrators only
        serializer.save(role=request.user.role, clinic=request.user.clinic)
        return Response(serializer.data)

    @action(detail=False, methods=['post'])
    def change_password(self, request):
        """Change password for current user"""
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        if not user.check_password(serializer.validated_data['old_password']):
            return Response(
                {'old_password': ['Wrong password.']},
                status=status.HTTP_400_BAD_REQUEST
            )

        user.set_password(serializer.validated_data['new_password'])
        user.save()
        return Response({'detail': 'Password changed successfully.'})


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer
