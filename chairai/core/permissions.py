# chairai/core/permissions.py
"""
集中式權限與狀態轉換表。

- can(role, resource, action) -> bool
- require(user, resource, action, error_cls, code, message) -> None
- can_view_project(project, user, accepted_artisan_id) -> bool
- is_valid_transition(current, new) -> bool

角色只有兩種：client (委託人) / artisan (工匠)。
(注意) 請將這裡維持為唯一的權限來源，不要在 Service 中散落角色判斷。
"""
from typing import Dict, FrozenSet, Optional, Tuple, Type

from chairai.core.exceptions import DomainError
from chairai.models.user import User, UserRoleEnum
from chairai.models.project import Project, ProjectStatusEnum

# --- 角色權限矩陣 ---
# 格式: (resource, action): {允許的角色}
RBAC: Dict[Tuple[str, str], FrozenSet[UserRoleEnum]] = {
    ("projects", "create"):         frozenset({UserRoleEnum.client}),
    ("projects", "list"):           frozenset({UserRoleEnum.artisan}),
    ("projects", "list_own"):       frozenset({UserRoleEnum.client}),
    ("projects", "manage"):         frozenset({UserRoleEnum.client}),
    ("proposals", "create"):        frozenset({UserRoleEnum.artisan}),
    ("proposals", "list_own"):      frozenset({UserRoleEnum.artisan}),
    ("artisan_profile", "manage"):  frozenset({UserRoleEnum.artisan}),
    ("generated_images", "view"):   frozenset({UserRoleEnum.client}),
}

# --- 案件狀態轉換表 (只能往前，不能回頭) ---
# open -> in_progress 只能透過 accept_proposal，所以不在此表
PROJECT_STATUS_TRANSITIONS: Dict[ProjectStatusEnum, FrozenSet[ProjectStatusEnum]] = {
    ProjectStatusEnum.open:        frozenset({ProjectStatusEnum.closed}),
    ProjectStatusEnum.in_progress: frozenset({ProjectStatusEnum.completed, ProjectStatusEnum.closed}),
    ProjectStatusEnum.completed:   frozenset({ProjectStatusEnum.closed}),
    ProjectStatusEnum.closed:      frozenset(),
}


def _as_role(role) -> Optional[UserRoleEnum]:
    try:
        return UserRoleEnum(role)
    except ValueError:
        return None


def can(role, resource: str, action: str) -> bool:
    """角色是否可以對 resource 執行 action (未登錄在矩陣中的一律拒絕)"""
    allowed = RBAC.get((resource, action))
    if allowed is None:
        return False
    return _as_role(role) in allowed


def require(
    user: User,
    resource: str,
    action: str,
    error_cls: Type[DomainError] = DomainError,
    code: str = "FORBIDDEN",
    message: str = "Brak uprawnień do wykonania tej operacji",
) -> None:
    """權限不足時拋出指定的業務錯誤 (403)"""
    if not can(user.role, resource, action):
        raise error_cls(message, code, 403)


def is_project_owner(project: Project, user: User) -> bool:
    return project.client_id == user.id


def can_view_project(project: Project, user: User, accepted_artisan_id: Optional[str]) -> bool:
    """
    委託人 (擁有者) 永遠可以查看；
    工匠只能查看 open 的案件，或自己提案已被接受的案件。
    """
    if is_project_owner(project, user):
        return True
    if _as_role(user.role) != UserRoleEnum.artisan:
        return False
    if project.status == ProjectStatusEnum.open:
        return True
    return accepted_artisan_id is not None and accepted_artisan_id == user.id


def is_valid_transition(current, new) -> bool:
    current_status = ProjectStatusEnum(current)
    return ProjectStatusEnum(new) in PROJECT_STATUS_TRANSITIONS[current_status]
