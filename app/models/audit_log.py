"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from app.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    # Null for anonymous actors (e.g. self-registration); kept when the user is deleted
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String, nullable=False)  # e.g., "CREATE", "UPDATE", "DELETE", "AUTH_LOGIN_SUCCESS"
    entity_type = Column(String, nullable=False)  # e.g., "user", "role", "department", "auth"
    entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    # Set explicitly by the service (SQLite server defaults are unreliable for tz-aware columns)
    created_at = Column(DateTime(timezone=True), nullable=False)
