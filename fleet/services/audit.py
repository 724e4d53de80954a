import logging
from typing import Optional, Any, Dict

from django.contrib.auth import get_user_model

from fleet.models import AuditEvent

User = get_user_model()
logger = logging.getLogger(__name__)


def log_action(*, user: Optional[User], action: str, object_type: Optional[str]=None, object_id=None, detail: Optional[Dict[str, Any]]=None, using: str='default') -> AuditEvent:
    return AuditEvent.objects.using(using).create(
        user=user if getattr(user, 'pk', None) else None,
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or {},
    )
