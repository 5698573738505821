"""
Database models
"""
from app.models.department import Department
from app.models.role import Role, Permission, RolePermission, Resource, Action, permission_slug
from app.models.user import User
from app.models.refresh_token import RefreshToken
from app.models.audit_log import AuditLog
from app.models.leave import Leave, LeaveStatus, LeaveType

__all__ = [
    "Department",
    "Role",
    "Permission",
    "RolePermission",
    "Resource",
    "Action",
    "permission_slug",
    "User",
    "RefreshToken",
    "AuditLog",
    "Leave",
    "LeaveStatus",
    "LeaveType",
]
