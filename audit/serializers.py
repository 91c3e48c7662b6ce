from rest_framework import serializers

from .models import AuditAction, AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    event = serializers.SerializerMethodField()
    actor = serializers.SerializerMethodField()

    class Meta:
        model = AuditLog
        fields = ["id", "event", "actor", "source", "description", "timestamp"]

    def get_event(self, obj):
        return {"action": obj.action, "changes": obj.changes}

    def get_actor(self, obj):
        return {
            "userId": obj.actor_user_id,
            "username": obj.actor_username,
            "roles": obj.actor_roles or [],
        }


class AuditEventInput(serializers.Serializer):
    action = serializers.ChoiceField(choices=AuditAction.choices)
    changes = serializers.JSONField(required=False, allow_null=True)


class AuditActorInput(serializers.Serializer):
    userId = serializers.CharField(max_length=64)
    username = serializers.CharField(max_length=150)
    roles = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class AuditLogCreateSerializer(serializers.Serializer):
    """POST /api/audit/logs/ body: {event:{action, changes}, actor:{userId, username, roles}, source, description}"""
    event = AuditEventInput()
    actor = AuditActorInput()
    source = serializers.CharField(max_length=100)
    description = serializers.CharField()

    def create(self, validated_data):
        event = validated_data["event"]
        actor = validated_data["actor"]
        return AuditLog.objects.create(
            action=event["action"],
            changes=event.get("changes"),
            actor_user_id=actor["userId"],
            actor_username=actor["username"],
            actor_roles=actor.get("roles") or [],
            source=validated_data["source"],
            description=validated_data["description"],
        )
