from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"


# Роль любого самостоятельно зарегистрированного пользователя, что бы ни пришло в запросе
DEFAULT_ROLE = Role.EMPLOYEE


@dataclass(frozen=True)
class User:
    id: int | None
    username: str
    password: str
    role: Role = DEFAULT_ROLE
