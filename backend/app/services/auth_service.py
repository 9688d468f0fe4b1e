"""
Authentication Service.
"""

from typing import Optional
from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session
from fastapi import HTTPException

from app.config import settings
from app.core import security
from app.models.user import User


class AuthService:
    def authenticate_user(
        self, db: Session, email: str, password: str
    ) -> Optional[User]:
        """Authenticate a user by email and password."""
        user = self.get_user_by_email(db, email)
        if not user:
            return None
        if not security.verify_password(password, user.hashed_password):
            return None
        return user

    def get_user_by_email(self, db: Session, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive)."""
        return db.query(User).filter(func.lower(User.email) == email.lower()).first()

    def get_user_by_id(self, db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    def create_user(self, db: Session, email: str, password: str) -> User:
        """Create a new user."""
        existing_user = self.get_user_by_email(db, email)
        if existing_user:
            raise HTTPException(
                status_code=400, detail="User with this email already exists"
            )

        hashed_password = security.get_password_hash(password)
        db_user = User(email=email.lower(), hashed_password=hashed_password)
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        return db_user

    def create_user_token(self, user: User) -> dict:
        """Create access token for user."""
        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = security.create_access_token(
            data={"sub": str(user.id)}, expires_delta=access_token_expires
        )
        return {"access_token": access_token, "token_type": "bearer"}


auth_service = AuthService()
