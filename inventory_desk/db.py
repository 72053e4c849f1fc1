import logging

from fastapi import HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from inventory_desk.config import Settings, get_settings
from inventory_desk.errors import InternalError
from inventory_desk.models import Role, User
from inventory_desk.security import hash_password

logger = logging.getLogger(__name__)


def make_engine(database_url: str):
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    # one shared connection, otherwise each session sees an empty in-memory db
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def create_db_and_tables(engine) -> None:
    SQLModel.metadata.create_all(engine)


def seed_admin(session: Session, settings: Settings) -> User | None:
    """Create the bootstrap admin account if it does not exist yet."""
    existing = session.exec(select(User).where(User.staff_id == settings.admin_staff_id)).first()
    if existing:
        return None

    admin = User(
        staff_id=settings.admin_staff_id,
        password_hash=hash_password(settings.admin_password),
        name="Administrator",
        email="admin@example.com",
        role=Role.admin,
    )
    session.add(admin)
    session.commit()
    session.refresh(admin)
    logger.info("Seeded admin account %r", admin.staff_id)
    return admin


def init_db(engine, settings: Settings | None = None) -> None:
    cfg = settings or get_settings()
    create_db_and_tables(engine)
    if cfg.seed_admin:
        with Session(engine) as session:
            seed_admin(session, cfg)


def get_session(request: Request):
    session = Session(request.app.state.engine)
    try:
        yield session
    except HTTPException:
        # business/auth errors already carry their response
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Database error, rolled back")
        raise InternalError("Data store unavailable") from e
    except Exception:
        session.rollback()
        logger.exception("Unexpected error, rolled back")
        raise
    finally:
        session.close()
