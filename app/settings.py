import os

DEFAULT_SITE_URL = "https://campingthailand.com"


def get_database_url():
    return os.getenv("DATABASE_URL", "sqlite:///./campsite.db")


def get_site_url():
    return os.getenv("SITE_URL", DEFAULT_SITE_URL).rstrip("/")


def get_api_base_url():
    return os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")


def get_frontend_url():
    return os.getenv("FRONTEND_URL", get_site_url()).rstrip("/")


def get_analytics_endpoint():
    return os.getenv("ANALYTICS_ENDPOINT") or None


def get_app_env():
    return os.getenv("APP_ENV", "production")


def is_development():
    return get_app_env() == "development"


def get_upload_dir():
    return os.getenv("UPLOAD_DIR", os.path.join(os.path.dirname(__file__), "uploads"))


def get_media_base_url():
    return os.getenv("MEDIA_BASE_URL", "/media").rstrip("/")


def get_mail_settings():
    return {
        "url": os.getenv("MAIL_API_URL") or None,
        "api_key": os.getenv("MAIL_API_KEY"),
        "sender": os.getenv("MAIL_FROM", "Camping Thailand <noreply@campingthailand.com>"),
    }


def get_cors_origins():
    origins = os.getenv("CORS_ORIGINS", "*")
    return [o.strip() for o in origins.split(",") if o.strip()]
