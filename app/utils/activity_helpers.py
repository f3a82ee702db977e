from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.support.activity_models import UserActivity
from app.constants.activity_templates import ACTIVITY_TEMPLATES
from app.constants.activity_codes import ActivityCode
from app.core.security import SessionUser

SYSTEM_ACTOR = "system"


def render_activity(code: ActivityCode, **context) -> str:
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    try:
        return template.format(**context)
    except KeyError as e:
        raise ValueError(f"Missing activity context key: {e.args[0]} for {code}")


async def emit_activity(
    db: AsyncSession,
    code: ActivityCode,
    *,
    actor: Optional[SessionUser] = None,
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    **context,
) -> None:
    """
    Stage one audit row on ``db``; the caller's commit persists it.

    The actor is either the session user, an explicit ``user_id``/``email``
    pair (webhooks have no session), or the scheduler when neither is given.
    """
    if actor is not None:
        user_id, email = actor.id, actor.email

    if email:
        context.setdefault("actor_email", email)

    db.add(
        UserActivity(
            user_id=user_id,
            username_snapshot=email or SYSTEM_ACTOR,
            message=render_activity(code, **context),
        )
    )
