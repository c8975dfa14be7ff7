"""Initialize the database with a default category, a like reaction and an admin user."""

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from authentication.auth import get_password_hash
from models.config import settings
from repositories.database import Base, SessionLocal, engine
from repositories.db_models import Category, Reaction, Role, User

DEFAULT_CATEGORIES = [
    {
        "name": "General",
        "slug": "general",
        "description": "Anything that does not fit elsewhere",
        "sort_order": 0,
    },
    {
        "name": "Announcements",
        "slug": "announcements",
        "description": "News from the team",
        "sort_order": 1,
    },
]

DEFAULT_REACTIONS = [{"name": "like", "emoji": "\U0001f44d"}]


def seed_defaults(db: Session) -> None:
    """Create default categories, reactions and the admin account if missing."""
    if db.query(Category).first() is None:
        db.add_all(Category(**category) for category in DEFAULT_CATEGORIES)
        logger.info("Default categories created")

    if db.query(Reaction).first() is None:
        db.add_all(Reaction(**reaction) for reaction in DEFAULT_REACTIONS)
        logger.info("Default reactions created")

    admin_email = settings.ADMIN_EMAIL.strip().lower()
    existing_admin = db.query(User).filter(User.email == admin_email).first()
    if existing_admin is None:
        db.add(
            User(
                email=admin_email,
                username=settings.ADMIN_USERNAME,
                hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
                role=Role.ADMIN,
            )
        )
        logger.info(f"Admin user created ({admin_email}); change its password in production")
    elif existing_admin.role != Role.ADMIN:
        existing_admin.role = Role.ADMIN
        logger.info(f"User {existing_admin.id} promoted to admin")

    db.commit()


def init_db() -> None:
    """Create tables and seed default data."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_defaults(db)
        logger.info("Database initialization complete")
    except SQLAlchemyError as e:
        logger.error(f"Error initializing database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    init_db()
