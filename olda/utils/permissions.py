from dataclasses import dataclass
from enum import Enum
from typing import Optional

from olda.utils.enums import UserRole


class Capability(str, Enum):
    PRT_SUBMIT = "prt_submit"
    PRT_ADVANCE = "prt_advance"
    PRT_CLEAR = "prt_clear"
    PRT_DELETE_ANY = "prt_delete_any"
    ORDER_EDIT = "order_edit"


_PRT_RECIPIENT = {
    Capability.PRT_SUBMIT,
    Capability.PRT_ADVANCE,
    Capability.PRT_CLEAR,
    Capability.PRT_DELETE_ANY,
    Capability.ORDER_EDIT,
}

ROLE_CAPABILITIES = {
    UserRole.ADMIN.value: set(Capability),  # полный доступ
    UserRole.PRT_RECIPIENT.value: _PRT_RECIPIENT,
    UserRole.STAFF.value: {Capability.PRT_SUBMIT, Capability.ORDER_EDIT},
}


@dataclass(frozen=True)
class Identity:
    """Кто сейчас работает в дашборде: имя для подписи + роль из сессии."""
    name: str
    role: str = UserRole.STAFF.value


def has_capability(identity: Optional[Identity], capability: Capability) -> bool:
    if identity is None:
        return False
    role = (identity.role or "").strip().lower()
    return capability in ROLE_CAPABILITIES.get(role, set())


def identity_from_session(session) -> Optional[Identity]:
    name = session.get("display_name")
    if not name:
        return None
    return Identity(name=name, role=session.get("role") or UserRole.STAFF.value)
