from gradeflow.model import Actor, Role

from .errors import Forbidden

Staff = (Role.Admin, Role.Teacher)


def ensure_role(actor: Actor, *roles: Role) -> None:
    if actor.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise Forbidden(f"{actor.role.value} {actor.user_id!r} may not do this; requires one of: {allowed}")


def ensure_acting_for(actor: Actor, user_id: str) -> None:
    """Teachers may only act as themselves; admins may act for anyone"""
    if not actor.is_admin and actor.user_id != user_id:
        raise Forbidden(f"{actor.user_id!r} may not act on behalf of {user_id!r}")
