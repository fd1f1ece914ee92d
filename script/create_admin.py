# create_admin.py
"""Seed an administrator account.

Usage:
    python script/create_admin.py admin@example.com 'Str0ng!Pass' [First] [Last]
"""
import sys

from quizora.constants import ADMIN
from quizora.database.db import get_ctx_db
from quizora.log import get_logger
from quizora.model.users import User
from quizora.router.auth_util import get_password_hash, generate_unique_user_id, is_strong_password

logger = get_logger("create_admin")


def create_admin(email: str, password: str, first_name: str = "System", last_name: str = "Admin") -> None:
    if not is_strong_password(password):
        raise SystemExit("Password does not meet the strength policy")

    with get_ctx_db() as db:
        email = email.strip().lower()
        if db.query(User).filter(User.email == email).first():
            logger.info(f"User {email} already exists, nothing to do")
            return
        admin = User(
            user_id=generate_unique_user_id(db),
            email=email,
            hashed_password=get_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            role=ADMIN,
            is_active=True,
        )
        db.add(admin)
        db.commit()
        logger.info(f"Admin {email} created with id {admin.user_id}")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        raise SystemExit(__doc__)
    create_admin(*sys.argv[1:5])
