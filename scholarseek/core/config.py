from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str

    # If DEV and you hit SSL cert issues on a managed Postgres, set DB_SSL_VERIFY=false in .env
    DB_SSL_VERIFY: bool = True

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None
    ADMIN_NAME: str | None = "ScholarSeek Admin"
    ENV: str = "dev"  # "dev" or "prod"

    # --- EMAIL SETTINGS ---
    # Defaults only; rows in system_settings override these at request time
    EMAIL_ENABLED: bool = False
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 2525  # Default to Mailtrap port
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_TIMEOUT_SECONDS: float = 10.0
    EMAILS_FROM_EMAIL: str = "scholarseek@biliran.edu.ph"
    EMAILS_FROM_NAME: str = "ScholarSeek System"
    SITE_URL: str = "http://localhost:5173"

    # --- DOCUMENT STORAGE ---
    UPLOAD_DIR: str = "uploads/applications"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5MB Cap

    # --- REVIEW WORKFLOW ---
    REVIEW_WRITE_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
