"""
Users Repository - Database access layer for user management.
"""

import logging
from datetime import datetime
from typing import List, Optional, Dict
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash, check_password_hash

from database.models import User, UserRole
from services.exceptions import NotFoundError, DuplicateRecordError

logger = logging.getLogger(__name__)


class UsersRepository:
    """Repository for user database operations."""

    def __init__(self, session: Session):
        self.session = session

    def _get(self, user_id: str) -> User:
        user = self.session.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError('User', user_id)
        return user

    def list_users(self, active_only: bool = False) -> List[Dict]:
        """List all users."""
        query = self.session.query(User)
        if active_only:
            query = query.filter(User.is_active == True)  # noqa: E712
        users = query.order_by(User.email).all()
        return [u.to_dict() for u in users]

    def get_user(self, user_id: str) -> Optional[Dict]:
        """Get a user by ID."""
        user = self.session.query(User).filter(User.id == user_id).first()
        return user.to_dict() if user else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (returns model for auth)."""
        return self.session.query(User).filter(User.email == (email or '').strip().lower()).first()

    def create_user(self, data: Dict) -> Dict:
        """Create a new user. Self-registered users start as solo technicians."""
        email = (data.get('email') or '').strip().lower()
        if self.get_user_by_email(email):
            raise DuplicateRecordError(f"Email already registered: {email}", {'email': email})

        role = data.get('role') or UserRole.SOLO_TECHNICIAN.value
        user = User(
            email=email,
            full_name=data.get('full_name', ''),
            password_hash=generate_password_hash(data['password'], method='pbkdf2:sha256'),
            role=UserRole.parse(role).value,
            is_active=data.get('is_active', True)
        )
        self.session.add(user)
        self.session.flush()
        logger.info(f"Created user: {user.id}")
        return user.to_dict()

    def authenticate(self, email: str, password: str) -> Optional[Dict]:
        """Return the user dict when the credentials match an active user."""
        user = self.get_user_by_email(email)
        if not user or not user.is_active:
            return None
        if not check_password_hash(user.password_hash, password or ''):
            logger.warning(f"Failed login for {email}")
            return None
        user.last_login = datetime.utcnow()
        self.session.flush()
        return user.to_dict()

    def update_role(self, user_id: str, role: str) -> Dict:
        """Change a user's role."""
        user = self._get(user_id)
        user.role = UserRole.parse(role).value
        self.session.flush()
        logger.info(f"Changed role of {user_id} to {user.role}")
        return user.to_dict()

    def set_active(self, user_id: str, is_active: bool) -> Dict:
        """Activate or deactivate a user."""
        user = self._get(user_id)
        user.is_active = bool(is_active)
        self.session.flush()
        logger.info(f"User {user_id} active={user.is_active}")
        return user.to_dict()
