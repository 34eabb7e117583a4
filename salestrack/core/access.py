# =========================================================
# ACCESS POLICY GATE
#
# ADMIN:
# - Every action on every resource
#
# EMPLOYEE:
# - Sales: read / create / update / delete own rows only
# - Insurance types: read only
# - Objectives & objective history: read own only
# - Reports: own figures only
# - Bonuses: read own only; bonus rules: read only
# - No user management, no commission editing, no objective CRUD
# - No audit log, no system settings
#
# The query-level filter (scope_sales_query) is the binding
# enforcement. Routers call require_access before any write.
# =========================================================

from dataclasses import dataclass
from enum import Enum

from salestrack.core.errors import AccessDenied
from salestrack.models.sales import Sale


ROLE_ADMIN = "admin"
ROLE_EMPLOYEE = "employee"
ROLES = (ROLE_ADMIN, ROLE_EMPLOYEE)


class Action(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Resource(str, Enum):
    SALE = "sale"
    INSURANCE_TYPE = "insurance_type"
    USER = "user"
    OBJECTIVE = "objective"
    OBJECTIVE_HISTORY = "objective_history"
    REPORT = "report"
    BONUS = "bonus"
    BONUS_RULE = "bonus_rule"
    AUDIT_LOG = "audit_log"
    SETTING = "setting"


@dataclass(frozen=True)
class Actor:
    user_id: int
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(user_id=user.id, username=user.username, role=user.role)


# Resources an employee may touch when they own the row
_OWNED_RESOURCES = {
    Resource.SALE: {Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE},
    Resource.OBJECTIVE: {Action.READ},
    Resource.OBJECTIVE_HISTORY: {Action.READ},
    Resource.REPORT: {Action.READ},
    Resource.BONUS: {Action.READ},
}

# Resources an employee may touch regardless of owner
_SHARED_RESOURCES = {
    Resource.INSURANCE_TYPE: {Action.READ},
    Resource.BONUS_RULE: {Action.READ},
}


def can_access(
    actor: Actor | None,
    action: Action,
    resource: Resource,
    resource_owner: str | None = None,
) -> bool:
    if actor is None:
        return False

    if actor.is_admin:
        return True

    if actor.role != ROLE_EMPLOYEE:
        return False

    if action in _SHARED_RESOURCES.get(resource, set()):
        return True

    if action in _OWNED_RESOURCES.get(resource, set()):
        return resource_owner is not None and resource_owner == actor.username

    return False


def require_access(
    actor: Actor | None,
    action: Action,
    resource: Resource,
    resource_owner: str | None = None,
) -> None:
    if not can_access(actor, action, resource, resource_owner):
        raise AccessDenied()


def scope_sales_query(query, actor: Actor):
    """Restrict a Sale query to the rows the actor may read."""
    return scope_owned_query(query, Sale.employee_name, actor)


def scope_owned_query(query, column, actor: Actor):
    """Same restriction for any table keyed by an employee name column."""
    if actor.is_admin:
        return query

    return query.filter(column == actor.username)
