"""SQLAlchemy model for the role_audit_logs table.

One row per accepted role or block change. Entries are immutable: database
triggers reject UPDATE and DELETE.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, event, text
from sqlalchemy.orm import Mapped, mapped_column

from engagetrack.infrastructure.persistence.database import Base


class RoleAuditLogModel(Base):
    """SQLAlchemy model for the role_audit_logs table.

    Attributes:
        id: Primary key (auto-incrementing, serves as sequence number).
        actor_id: User who performed the change.
        target_user_id: User whose roles or block status changed.
        action: add, remove, change, transfer, block or unblock.
        role: Role involved in the change.
        occurred_at: Timestamp when the change was committed (UTC).
    """

    __tablename__ = "role_audit_logs"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Unique identifier",
    )
    actor_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="ID of user who made the change",
    )
    target_user_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        comment="ID of user whose roles changed",
    )
    action: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="Kind of change",
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Role involved",
    )
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Timestamp when the change occurred (UTC)",
    )

    __table_args__ = (
        Index("ix_role_audit_logs_occurred_at_desc", occurred_at.desc()),
        CheckConstraint(
            "action IN ('add', 'remove', 'change', 'transfer', 'block', 'unblock')",
            name="ck_role_audit_logs_action",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<RoleAuditLog(id={self.id}, action={self.action}, "
            f"target={self.target_user_id}, role={self.role})>"
        )


@event.listens_for(RoleAuditLogModel.__table__, "after_create")
def create_immutability_triggers(target, connection, **kw):
    """Create triggers that reject UPDATE and DELETE on role_audit_logs."""
    if connection.dialect.name != "sqlite":
        return

    connection.execute(
        text(
            """
            CREATE TRIGGER IF NOT EXISTS prevent_role_audit_log_update
            BEFORE UPDATE ON role_audit_logs
            BEGIN
                SELECT RAISE(ABORT, 'Role audit log entries are immutable and cannot be updated');
            END;
            """
        )
    )
    connection.execute(
        text(
            """
            CREATE TRIGGER IF NOT EXISTS prevent_role_audit_log_delete
            BEFORE DELETE ON role_audit_logs
            BEGIN
                SELECT RAISE(ABORT, 'Role audit log entries are immutable and cannot be deleted');
            END;
            """
        )
    )
