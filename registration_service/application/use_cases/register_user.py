import structlog

from ...domain.entities import DEFAULT_ROLE, Role, User
from ...domain.errors import DuplicateKeyError, UsernameAlreadyExists, ValidationFailure

logger = structlog.get_logger()


class IUserRepository:
    def get_by_username(self, username: str) -> User | None: ...
    def get_by_id(self, user_id: int) -> User | None: ...
    def create(self, username: str, password: str, role: Role = DEFAULT_ROLE) -> User: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...


class RegisterUser:
    """Регистрирует пользователя и сохраняет его в хранилище.

    username уникален: занятое имя отсекается предварительной проверкой, а
    ошибка дубликата ключа из хранилища (параллельная регистрация успела
    первой) сообщается так же. Роль всегда ``DEFAULT_ROLE``.
    """

    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher | None = None):
        self.repo = repo
        self.hasher = hasher

    def execute(self, username: str, password: str, requested_role: str | None = None) -> User:
        if not username:
            raise ValidationFailure("username")
        if not password:
            raise ValidationFailure("password")

        if self.repo.get_by_username(username) is not None:
            logger.info("registration_rejected", username=username, reason="username_taken")
            raise UsernameAlreadyExists(username)

        if requested_role is not None and requested_role != DEFAULT_ROLE.value:
            logger.info("requested_role_ignored", username=username, requested_role=requested_role)

        secret = self.hasher.hash(password) if self.hasher else password
        try:
            user = self.repo.create(username, secret, DEFAULT_ROLE)
        except DuplicateKeyError as e:
            logger.info("registration_rejected", username=username, reason="duplicate_key")
            raise UsernameAlreadyExists(username) from e

        logger.info("user_registered", user_id=user.id, username=user.username)
        return user
