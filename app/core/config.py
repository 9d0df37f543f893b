from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "NSBS Certification Engine"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 2  # 2 days

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database Configuration
    DATABASE_HOST: Optional[str] = None
    DATABASE_PORT: str = "5432"
    DATABASE_USER: Optional[str] = None
    DATABASE_PASSWORD: Optional[str] = None
    DATABASE_NAME: Optional[str] = None

    DATABASE_URL: str = ""
    TEST_DATABASE_URL: Optional[str] = None

    def __init__(self, **data):
        super().__init__(**data)
        if not self.DATABASE_URL:
            if self.DATABASE_HOST:
                self.DATABASE_URL = (
                    f'postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}'
                    f'@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}'
                )
            else:
                self.DATABASE_URL = "sqlite:///./certification.db"

    # Cache
    CACHE_ENABLED: bool = True
    CACHE_TTL: int = 300
    QUESTION_BANK_CACHE_TTL: int = 900
    REDIS_URL: Optional[str] = None
    CACHE_KEY_PREFIX: str = "nsbs:"

    # Exam rules
    EXAM_DEFAULT_MAX_ATTEMPTS: int = 2
    EXAM_DEFAULT_PASSING_SCORE: int = 80
    EXAM_DEFAULT_TIME_LIMIT_MINUTES: int = 90
    EXAM_SUBMISSION_GRACE_SECONDS: int = 30
    EXAM_BLOCK_RETAKE_AFTER_PASS: bool = False
    EXPIRY_SWEEP_INTERVAL_MINUTES: int = 5

    # Certificates
    CERTIFICATE_NUMBER_PREFIX: str = "NSBS"
    CERTIFICATE_VERIFICATION_BASE_URL: str = "http://localhost:3000/verify"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Email
    SENDGRID_API_KEY: Optional[str] = None
    EMAILS_FROM_EMAIL: str = "admin@nsbs-certified.com"
    EMAILS_FROM_NAME: str = "The National Society of Business Sciences"

    class Config:
        env_file = ".env"

settings = Settings()
