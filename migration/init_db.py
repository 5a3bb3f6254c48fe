"""
Schema bootstrap
- Creates users, stores and ratings tables (with FKs and the one-rating-per-user-per-store constraint)
- Seeds a default system administrator when no account with that email exists

Usage:
  python -m migration.init_db --database-url sqlite:///./store_ratings.db
  ADMIN_PASSWORD='S3cret!pass' python -m migration.init_db --database-url postgresql://...
"""
import argparse
import logging
import os
from typing import Optional

from store_ratings import crud, models  # noqa: F401  models registers tables on Base.metadata
from store_ratings.auth import AuthService
from store_ratings.config import Settings
from store_ratings.db import Base, create_db_engine, make_session_factory

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "Default Admin User Account"
DEFAULT_ADMIN_EMAIL = "admin@example.com"
DEFAULT_ADMIN_PASSWORD = "AdminPassword1!"
DEFAULT_ADMIN_ADDRESS = "123 Admin Street"


def init_db(
    database_url: str,
    admin_name: str = DEFAULT_ADMIN_NAME,
    admin_email: str = DEFAULT_ADMIN_EMAIL,
    admin_password: Optional[str] = None,
    admin_address: str = DEFAULT_ADMIN_ADDRESS,
) -> bool:
    """Create the schema and seed the administrator. Returns True if the admin was created."""
    if admin_password is None:
        admin_password = os.environ.get("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)

    engine = create_db_engine(database_url)
    try:
        Base.metadata.create_all(bind=engine)
        auth = AuthService(Settings(_env_file=None, database_url=database_url))
        with make_session_factory(engine)() as db:
            if crud.get_user_by_email(db, admin_email) is not None:
                logger.info("Administrator %s already present", admin_email)
                return False
            admin = auth.create_account(
                db,
                admin_name,
                admin_email,
                admin_password,
                admin_address,
                role=models.Role.SYSTEM_ADMINISTRATOR,
            )
            logger.info("Seeded administrator %s (id=%s)", admin.email, admin.id)
            return True
    finally:
        engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Create tables and seed the default administrator")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL; defaults to DATABASE_URL / settings")
    parser.add_argument("--admin-name", default=DEFAULT_ADMIN_NAME)
    parser.add_argument("--admin-email", default=DEFAULT_ADMIN_EMAIL)
    parser.add_argument("--admin-password", default=None, help="Falls back to ADMIN_PASSWORD")
    parser.add_argument("--admin-address", default=DEFAULT_ADMIN_ADDRESS)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    database_url = args.database_url or Settings().database_url
    created = init_db(database_url, args.admin_name, args.admin_email, args.admin_password, args.admin_address)
    print("Administrator created" if created else "Administrator already exists")


if __name__ == "__main__":
    main()
