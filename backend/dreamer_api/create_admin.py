"""Create or promote an administrator account.

Usage:
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD='Str0ng!Pass' dreamer-create-admin
    dreamer-create-admin --email admin@example.com --super-admin
"""
import argparse
import getpass
import logging
import os
import sys

from sqlalchemy.orm import Session

from dreamer_api.models.user import UserRole, UserStatus
from dreamer_api.schemas.auth import validate_password_strength
from dreamer_api.services.credentials import CredentialStore
from dreamer_api.services.passwords import PasswordHasher

logger = logging.getLogger(__name__)


def create_admin(
    db: Session,
    password_hasher: PasswordHasher,
    email: str,
    password: str,
    first_name: str = "Admin",
    last_name: str = "User",
    role: str = UserRole.ADMIN,
) -> tuple[str, str]:
    """Create an active, verified staff user, or promote an existing one.

    Returns (user_id, "created" | "updated").
    """
    if role not in UserRole.STAFF:
        raise ValueError(f"Role must be one of: {', '.join(UserRole.STAFF)}")
    validate_password_strength(password)

    store = CredentialStore(db)
    user = store.find_user_by_email(email)
    if user is not None:
        user.role = role
        user.status = UserStatus.ACTIVE
        user.password_hash = password_hasher.hash(password)
        db.flush()
        logger.info(f"Promoted existing user {user.id} to {role}")
        return user.id, "updated"

    user = store.create_user(
        email=email,
        password_hash=password_hasher.hash(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        status=UserStatus.ACTIVE,
    )
    logger.info(f"Created {role} user {user.id}")
    return user.id, "created"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote a Dreamer AI admin user")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    parser.add_argument("--super-admin", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    if not args.email:
        parser.error("--email or ADMIN_EMAIL is required")
    password = args.password or getpass.getpass("Password: ")

    # Imported late so --help works without a configured environment
    from dreamer_api import models  # noqa: F401
    from dreamer_api.config import get_settings
    from dreamer_api.database import Base, build_engine, build_session_factory, get_db_context

    settings = get_settings()
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    role = UserRole.SUPER_ADMIN if args.super_admin else UserRole.ADMIN
    try:
        with get_db_context(build_session_factory(engine)) as db:
            user_id, outcome = create_admin(
                db,
                PasswordHasher(settings.bcrypt_rounds),
                args.email,
                password,
                first_name=args.first_name,
                last_name=args.last_name,
                role=role,
            )
    except ValueError as e:
        logger.error(str(e))
        return 1
    finally:
        engine.dispose()

    print(f"{outcome}: {args.email} ({role}) id={user_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
