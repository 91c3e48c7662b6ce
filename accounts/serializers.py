from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import AuthLog

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "email", "first_name", "last_name", "role", "is_staff", "is_superuser"]
        read_only_fields = fields


class MyTokenObtainPairSerializer(TokenObtainPairSerializer):
    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)

        # 🔹 Extra claims inside JWT
        token["username"] = user.username
        token["role"] = user.role
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data["user"] = UserSerializer(self.user).data
        return data


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class AuthLogSerializer(serializers.ModelSerializer):
    userID = serializers.IntegerField(source="user_id", read_only=True)
    sessionID = serializers.CharField(source="session_id", read_only=True)

    class Meta:
        model = AuthLog
        fields = ["id", "action", "userID", "username", "sessionID", "invalidated", "timestamp"]
        read_only_fields = fields
