from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv(override=True)

class Settings(BaseSettings):
    PROJECT_NAME: str = "SIWE Auth"
    # Application settings
    PORT: int = 5000
    HOST: str = "127.0.0.1"
    VERSION: str = "1.0.0"
    DOC_PASSWORD: str | None = None
    FRONTEND_URL: str = "http://localhost:5173"

    # SSL settings
    SSL_KEY: str | None = None
    SSL_CERT: str | None = None

    # SQLAlchemy database URL
    DATABASE_URL: str = "sqlite:///./siwe_auth.db"

    # Login configuration
    ENCODE_KEY: str | None = None
    ENCODE_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 7 * 24 * 3600 # 7 days
    NONCE_LENGTH: int = 16
    NONCE_EXPIRY_SECONDS: int | None = None # disabled, nonces live until consumed
    SIWE_DOMAIN: str | None = None # expected message domain, unchecked when empty

    # Debug settings
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

# Instantiate the settings
settings = Settings()
