import os
from pathlib import Path

from dotenv import load_dotenv

from .utils import parse_bool
from .enums import Env

load_dotenv()

ENV = Env(os.getenv("ENV", "prod").lower())
DEBUG = parse_bool("DEBUG")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
INSTANCE_DIR = os.path.abspath("instance")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_ISSUER = os.getenv("JWT_ISSUER", "cellar")
JWT_LIFETIME_DAYS = int(os.getenv("JWT_LIFETIME_DAYS", "7"))

if not JWT_SECRET_KEY:
    raise ValueError("JWT_SECRET_KEY must be provided in .env")

PASSWORD_SALT_ROUNDS = int(os.getenv("PASSWORD_SALT_ROUNDS", "6"))

DATABASE_URL = os.getenv("DATABASE_URL")

POSTGRESQL_CONFIGURATION = {
    "drivername": "postgresql+asyncpg",
    "host": os.getenv("POSTGRESQL_HOST"),
    "port": int(os.getenv("POSTGRESQL_PORT", "5432")),
    "username": os.getenv("POSTGRESQL_USERNAME"),
    "password": os.getenv("POSTGRESQL_PASSWORD"),
    "database": os.getenv("POSTGRESQL_DATABASE")
}

DATABASE_ECHO = parse_bool("DATABASE_ECHO")
DATABASE_POOL_SIZE = int(os.getenv("DATABASE_POOL_SIZE", "5"))

ADMIN_NAME = os.getenv("ADMIN_NAME", "Administrator")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@cellar.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
