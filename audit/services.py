# audit/services.py
import logging

from .models import AuditAction, AuditLog

log = logging.getLogger(__name__)

SENSITIVE_KEYS = {"password"}


def actor_from_request(request):
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return {"user_id": "anonymous", "username": "anonymous", "roles": []}
    role = getattr(user, "role", None)
    return {
        "user_id": str(user.pk),
        "username": user.get_username(),
        "roles": [role] if role else [],
    }


def _scrub(data):
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if k not in SENSITIVE_KEYS}
    return data


def record(action, changes, request, source, description):
    actor = actor_from_request(request)
    entry = AuditLog.objects.create(
        action=action,
        changes=changes,
        actor_user_id=actor["user_id"],
        actor_username=actor["username"],
        actor_roles=actor["roles"],
        source=source,
        description=description,
    )
    log.debug("audit %s %s by %s", action, source, actor["username"])
    return entry


def log_create(new_data, request, source, description):
    return record(AuditAction.CREATE, _scrub(new_data), request, source, description)


def log_update(before, after, request, source, description):
    return record(
        AuditAction.UPDATE,
        {"before": _scrub(before), "after": _scrub(after)},
        request,
        source,
        description,
    )


def log_delete(deleted_data, request, source, description):
    return record(AuditAction.DELETE, _scrub(deleted_data), request, source, description)
