import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .db import SessionLocal, session_scope
from .models import UserORM
from .metrics import db_queries_total
from ..domain.entities import DEFAULT_ROLE, Role, User
from ..domain.errors import DuplicateKeyError, StorageFailure
from ..application.use_cases.register_user import IUserRepository

logger = structlog.get_logger()

# Коды нарушения уникальности у драйверов
PG_UNIQUE_VIOLATION = "23505"
SQLITE_UNIQUE_ERRORS = {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}


def to_domain(u: UserORM) -> User:
    return User(id=u.id, username=u.username, password=u.password, role=Role(u.role))


def is_unique_violation(e: IntegrityError) -> bool:
    orig = e.orig
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode is not None:
        return pgcode == PG_UNIQUE_VIOLATION
    errorname = getattr(orig, "sqlite_errorname", None)
    if errorname is not None:
        return errorname in SQLITE_UNIQUE_ERRORS
    # драйвер без кода ошибки: остается только текст
    return "unique" in str(orig).lower()


class UserRepository(IUserRepository):
    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def get_by_username(self, username: str) -> User | None:
        return self._fetch_one(select(UserORM).where(UserORM.username == username))

    def get_by_id(self, user_id: int) -> User | None:
        return self._fetch_one(select(UserORM).where(UserORM.id == user_id))

    def create(self, username: str, password: str, role: Role = DEFAULT_ROLE) -> User:
        db_queries_total.inc()
        try:
            with session_scope(self.session_factory) as db:
                row = UserORM(username=username, password=password, role=role.value)
                db.add(row)
                # id выдается на flush; после commit запись уже не перечитываем
                db.flush()
                user = to_domain(row)
                db.commit()
                return user
        except IntegrityError as e:
            if is_unique_violation(e):
                raise DuplicateKeyError(username) from e
            logger.error("storage_failure", operation="create", error=str(e))
            raise StorageFailure("Could not store user") from e
        except SQLAlchemyError as e:
            logger.error("storage_failure", operation="create", error=str(e))
            raise StorageFailure("Could not store user") from e

    def _fetch_one(self, stmt) -> User | None:
        db_queries_total.inc()
        try:
            with session_scope(self.session_factory) as db:
                row = db.execute(stmt).scalar_one_or_none()
                return to_domain(row) if row else None
        except SQLAlchemyError as e:
            logger.error("storage_failure", operation="read", error=str(e))
            raise StorageFailure("Could not read users") from e
