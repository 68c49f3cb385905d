from passlib.context import CryptContext


class PasswordHasher:
    """Хеширует пароль перед записью в хранилище.

    Схема берется из настроек (PASSWORD_SCHEME); сам сценарий регистрации
    о ней ничего не знает и получает хешер извне.
    """

    def __init__(self, scheme: str = "bcrypt_sha256"):
        options = {"bcrypt_sha256__truncate_error": False} if scheme == "bcrypt_sha256" else {}
        self.context = CryptContext(schemes=[scheme], deprecated="auto", **options)

    def hash(self, plain: str) -> str:
        return self.context.hash(plain)
