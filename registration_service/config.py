from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./registration.db"
    LOG_LEVEL: str = "INFO"
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    HASH_PASSWORDS: bool = True
    PASSWORD_SCHEME: str = "bcrypt_sha256"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
