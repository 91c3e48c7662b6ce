import logging

from rest_framework import status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView

from common.pagination import LimitPagePagination
from common.utils import day_end, day_start, every_term_matches, parse_date, parse_db_int
from common.views import NotFoundMessageMixin
from .models import AuthAction, AuthLog
from .serializers import AuthLogSerializer, LogoutSerializer, MyTokenObtainPairSerializer, UserSerializer

log = logging.getLogger(__name__)


class MyTokenObtainPairView(TokenObtainPairView):
    """
    POST /api/auth/login/  {username, password}
    -> {access, refresh, user}; ek `login` AuthLog bhi likha jata hai.
    """
    serializer_class = MyTokenObtainPairSerializer

    def post(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        refresh = RefreshToken(data["refresh"])
        AuthLog.objects.create(
            action=AuthAction.LOGIN,
            user=ser.user,
            username=ser.user.username,
            session_id=str(refresh["jti"]),
        )
        log.info("User %s logged in", ser.user.username)
        return Response(data, status=status.HTTP_200_OK)


class LogoutView(APIView):
    """
    POST /api/auth/logout/  {refresh}
    Login wali entry invalidated=True ho jati hai, aur ek `logout` entry banti hai.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = LogoutSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            refresh = RefreshToken(ser.validated_data["refresh"])
        except TokenError as exc:
            raise ValidationError({"refresh": str(exc)})

        session_id = str(refresh["jti"])
        user = request.user
        AuthLog.objects.filter(
            user=user, session_id=session_id, action=AuthAction.LOGIN
        ).update(invalidated=True)
        AuthLog.objects.create(
            action=AuthAction.LOGOUT,
            user=user,
            username=user.username,
            session_id=session_id,
            invalidated=True,
        )
        log.info("User %s logged out", user.username)
        return Response({"message": "Logged out successfully"}, status=status.HTTP_200_OK)


class CurrentUserView(APIView):
    """GET /api/auth/me/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"success": True, "data": UserSerializer(request.user).data})


class AuthLogViewSet(NotFoundMessageMixin, viewsets.ReadOnlyModelViewSet):
    """
    GET /api/auth/logs/?search=&action=&userId=&startDate=&endDate=&page=&limit=
    GET /api/auth/logs/<id>/
    """
    serializer_class = AuthLogSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LimitPagePagination
    pagination_total_key = "totalLogs"
    not_found_message = "Auth log not found"

    def get_queryset(self):
        qs = AuthLog.objects.all().order_by("-timestamp", "-id")
        params = self.request.query_params

        qs = qs.filter(every_term_matches(["username", "session_id", "action"], params.get("search")))
        if params.get("action"):
            qs = qs.filter(action=params["action"])
        if params.get("userId"):
            user_id = parse_db_int(params["userId"])
            qs = qs.filter(user_id=user_id) if user_id is not None else qs.none()

        start = parse_date(params.get("startDate"))
        end = parse_date(params.get("endDate"))
        if start:
            qs = qs.filter(timestamp__gte=day_start(start))
        if end:
            qs = qs.filter(timestamp__lte=day_end(end))
        return qs
