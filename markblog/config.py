import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")

    # Posts live in a SQLite file under DATA_DIR unless DATABASE_URL overrides it
    DATA_DIR = os.getenv("DATA_DIR", "data")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    HOST = os.getenv("HOST", "127.0.0.1")
    PORT = int(os.getenv("PORT", "3000"))

    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1 MB

    MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
