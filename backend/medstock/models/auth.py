from __future__ import annotations

from ..extensions import db
from medstock.time_utils import to_utc_z


class Role(db.Model):
    """
    Named role (SUPER_ADMIN, ADMIN, INVENTORY_MANAGER, ...).

    A role owns an ordered set of RolePermission rows; ability_service compiles
    them into the allow-rule set every protected route is checked against.
    """
    __tablename__ = "roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    permissions = db.relationship(
        "RolePermission",
        back_populates="role",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
        }


class RolePermission(db.Model):
    """
    One stored permission row: (subject, action, field_name, can_access).

    Tokens are stored as entered by administrators (e.g. "ITEMS", "READ") and
    mapped onto the closed Subject/Action vocabularies at compile time.
    field_name "" means the row is not field-scoped.

    can_access = False rows are kept for display but never compile to a rule.
    ("ALL", "MANAGE") is the superuser wildcard.
    """
    __tablename__ = "role_permissions"
    __table_args__ = (
        db.UniqueConstraint("role_id", "subject", "action", "field_name", name="uq_role_permissions_row"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    role_id = db.Column(db.Integer, db.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)

    subject = db.Column(db.String(64), nullable=False)
    action = db.Column(db.String(32), nullable=False)
    field_name = db.Column(db.String(64), nullable=False, default="")
    can_access = db.Column(db.Boolean, nullable=False, default=True)

    granted_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    role = db.relationship("Role", back_populates="permissions")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role_id": self.role_id,
            "subject": self.subject,
            "action": self.action,
            "field_name": self.field_name or None,
            "can_access": self.can_access,
        }


class User(db.Model):
    """
    Staff account.

    Every inventory movement is attributed to a user. Items assigned to a
    user leave the warehouse; deleting the user returns them (user_id NULL).
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(100), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(50), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=False, index=True)
    dept_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)
    rank_id = db.Column(db.Integer, db.ForeignKey("ranks.id"), nullable=True)
    floor_id = db.Column(db.Integer, db.ForeignKey("floors.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    role = db.relationship("Role", backref=db.backref("users", lazy=True))
    department = db.relationship("Department", backref=db.backref("users", lazy=True))
    rank = db.relationship("Rank", backref=db.backref("users", lazy=True))
    floor = db.relationship("Floor", backref=db.backref("users", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "is_active": self.is_active,
            "role_id": self.role_id,
            "role_name": self.role.name if self.role else None,
            "dept_id": self.dept_id,
            "dept_name": self.department.name if self.department else None,
            "rank_id": self.rank_id,
            "rank_name": self.rank.name if self.rank else None,
            "floor_id": self.floor_id,
            "floor_name": self.floor.name if self.floor else None,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Bearer session.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256), never in plaintext
    - Absolute timeout plus sliding idle timeout (see Config)
    - Revocable on logout or account deactivation
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    user = db.relationship(
        "User",
        backref=db.backref("session_tokens", lazy=True, cascade="all, delete-orphan"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
