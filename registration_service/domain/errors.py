class RegistrationError(Exception):
    """Базовый класс исходов регистрации, которые видит вызывающий код"""


class ValidationFailure(RegistrationError):
    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"{field} must not be empty")


class UsernameAlreadyExists(RegistrationError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username '{username}' is already taken")


class StorageFailure(RegistrationError):
    """Хранилище недоступно или отклонило запись"""


class DuplicateKeyError(StorageFailure):
    """Хранилище отклонило запись из-за уникальности username"""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Duplicate key for username '{username}'")
