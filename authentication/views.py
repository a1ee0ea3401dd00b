import logging
from functools import wraps

from django.contrib.auth import get_user_model
from django.utils.translation import gettext_lazy as _
from django_ratelimit.decorators import ratelimit
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied
from rest_framework.permissions import AllowAny, BasePermission, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken

from .audit import log_action
from .models import Role
from .serializers import (
    LoginSerializer,
    ProfileSerializer,
    RoleAssignmentSerializer,
    RoleSerializer,
    UserRegistrationSerializer,
    UserSerializer,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def role_required(*role_names):
    """
    Decorator to enforce that a request.user owns at least one of the supplied roles.
    Superusers bypass the check automatically.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(request, *args, **kwargs):
            user = request.user
            if not user or not user.is_authenticated:
                raise PermissionDenied(detail=_("Authentication credentials were not provided."))
            if not user.has_role(*role_names):
                raise PermissionDenied(detail=_("You do not have permission to perform this action."))
            return func(request, *args, **kwargs)

        return wrapper

    return decorator


class HasRole(BasePermission):
    """
    DRF permission counterpart of role_required, for viewset actions.

    Subclass and set ``role_names``.
    """

    role_names = ()

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.has_role(*self.role_names))


class IsModerator(HasRole):
    role_names = (Role.ADMIN,)


class IsEditor(HasRole):
    role_names = (Role.ADMIN, Role.EDITOR)


def _issue_tokens_for_user(user: User) -> dict:
    refresh = RefreshToken.for_user(user)
    return {
        "refresh": str(refresh),
        "access": str(refresh.access_token),
    }


@api_view(["POST"])
@permission_classes([AllowAny])
@ratelimit(key="ip", rate="5/m", method="POST")
def register_user(request):
    serializer = UserRegistrationSerializer(data=request.data, context={"request": request})
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    log_action(request, "REGISTER", "USER", user.id, "SUCCESS")
    data = {
        "message": _("Registration successful."),
        "user": UserSerializer(user).data,
        "tokens": _issue_tokens_for_user(user),
    }
    return Response(data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([AllowAny])
@ratelimit(key="ip", rate="10/m", method="POST")
def login_user(request):
    serializer = LoginSerializer(data=request.data, context={"request": request})
    try:
        serializer.is_valid(raise_exception=True)
    except AuthenticationFailed:
        log_action(
            request, "LOGIN", "USER", None, "FAILURE",
            {"email": str(request.data.get("email", "")).lower()},
        )
        raise
    user = serializer.validated_data["user"]
    log_action(request, "LOGIN", "USER", user.id, "SUCCESS")
    data = {
        "message": _("Login successful."),
        "user": UserSerializer(user).data,
        "tokens": _issue_tokens_for_user(user),
    }
    return Response(data, status=status.HTTP_200_OK)


@api_view(["GET", "PATCH"])
@permission_classes([IsAuthenticated])
def me(request):
    if request.method == "GET":
        return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)

    serializer = ProfileSerializer(request.user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
@role_required(Role.ADMIN)
def list_users(request):
    queryset = User.objects.all().order_by("-created_at")
    serializer = UserSerializer(queryset, many=True)
    return Response(serializer.data, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
@role_required(Role.ADMIN)
def assign_roles(request):
    serializer = RoleAssignmentSerializer(data=request.data, context={"request": request})
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    role_names = sorted(role.name for role in serializer.validated_data["role_instances"])
    log_action(request, "ASSIGN_ROLES", "USER", user.id, "SUCCESS", {"roles": role_names})
    logger.info("Roles for %s set to %s by %s", user.email, role_names, request.user.email)
    return Response(
        {
            "message": _("Roles updated successfully."),
            "user": UserSerializer(user).data,
        },
        status=status.HTTP_200_OK,
    )


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
@role_required(Role.ADMIN)
def roles(request):
    if request.method == "GET":
        serializer = RoleSerializer(Role.objects.all(), many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    serializer = RoleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    role = serializer.save()
    return Response(RoleSerializer(role).data, status=status.HTTP_201_CREATED)
