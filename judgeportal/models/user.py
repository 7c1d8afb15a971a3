from sqlalchemy import CheckConstraint
from judgeportal.extensions import db
from judgeportal.helpers.date import utcnow
from judgeportal.models.enums import UserRole, check_in

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)

    # Only set for locally-authenticated accounts
    password_hash = db.Column(db.String(255), nullable=True)

    role = db.Column(db.String(20), nullable=False, default=UserRole.JUDGE.value, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Subject claim from the external identity provider (e.g. "auth0|abc123")
    auth_subject = db.Column(db.String(255), nullable=True, unique=True)

    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    judge_profiles = db.relationship("EventJudge", back_populates="user", passive_deletes=True)

    __table_args__ = (
        CheckConstraint(check_in("role", UserRole), name="ck_users_role"),
    )
