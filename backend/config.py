# backend/config.py
import os
from dotenv import load_dotenv

# Load .env from the same folder as config.py
load_dotenv(os.path.join(os.path.dirname(__file__), ".env"))


def database_uri():
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    user = os.getenv("DB_USER")
    password = os.getenv("DB_PASSWORD")
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "3306")
    name = os.getenv("DB_NAME")

    if not all([user, password, host, port, name]):
        return None

    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{name}"


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "fallback_key")

    SQLALCHEMY_DATABASE_URI = database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Content providers
    TMDB_API_KEY = os.getenv("TMDB_API_KEY")
    TMDB_LANGUAGE = os.getenv("TMDB_LANGUAGE", "pt-BR")
    GOOGLE_BOOKS_API_KEY = os.getenv("GOOGLE_BOOKS_API_KEY")
    PROVIDER_TIMEOUT = int(os.getenv("PROVIDER_TIMEOUT", "10"))
