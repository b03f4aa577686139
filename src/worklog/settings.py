import os
from pathlib import Path

from django.contrib.messages import constants as messages
from django.utils.crypto import get_random_string

DEBUG = os.environ.get("WORKLOG_DEBUG", "1") == "1"

## DIRECTORY SETTINGS
BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.environ.get("WORKLOG_DATA_DIR", BASE_DIR / "data"))
LOG_DIR = DATA_DIR / "logs"
STATIC_ROOT = BASE_DIR / "static.dist"

for directory in (DATA_DIR, LOG_DIR):
    directory.mkdir(parents=True, exist_ok=True)

## APP SETTINGS
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "worklog.core",
]

## URL SETTINGS
SITE_URL = os.environ.get("WORKLOG_SITE_URL", "http://localhost:8000")
ALLOWED_HOSTS = ["*"]
ROOT_URLCONF = "worklog.urls"
STATIC_URL = "/static/"

## SECURITY SETTINGS
SECURE_BROWSER_XSS_FILTER = True
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "strict-origin-when-cross-origin"

CSRF_COOKIE_NAME = "worklog_csrftoken"
CSRF_TRUSTED_ORIGINS = [SITE_URL]
CSRF_COOKIE_SECURE = False if DEBUG else True
CSRF_COOKIE_HTTPONLY = False

SESSION_COOKIE_NAME = "worklog_session"

SECRET_FILE = DATA_DIR / ".secret"
if SECRET_FILE.exists():
    SECRET_KEY = SECRET_FILE.read_text()
else:
    chars = "abcdefghijklmnopqrstuvwxyz0123456789!@#$%^&*(-_=+)"
    SECRET_KEY = get_random_string(50, chars)
    with SECRET_FILE.open(mode="w") as f:
        SECRET_FILE.chmod(0o600)
        f.write(SECRET_KEY)

## DATABASE SETTINGS
DATABASES = {
    "default": {
        "ENGINE": os.environ.get("WORKLOG_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("WORKLOG_DB_NAME", DATA_DIR / "db.sqlite3"),
        "USER": os.environ.get("WORKLOG_DB_USER", ""),
        "PASSWORD": os.environ.get("WORKLOG_DB_PASSWORD", ""),
        "HOST": os.environ.get("WORKLOG_DB_HOST", ""),
        "PORT": os.environ.get("WORKLOG_DB_PORT", ""),
    }
}
if DATABASES["default"]["ENGINE"] == "django.db.backends.sqlite3":
    DATABASES["default"]["OPTIONS"] = {
        "init_command": "PRAGMA synchronous=3; PRAGMA cache_size=2000;",
        "transaction_mode": "IMMEDIATE",
    }
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

## CACHE SETTINGS
CACHES = {"default": {"BACKEND": "django.core.cache.backends.dummy.DummyCache"}}
SESSION_ENGINE = "django.contrib.sessions.backends.db"
MESSAGE_STORAGE = "django.contrib.messages.storage.session.SessionStorage"
MESSAGE_TAGS = {
    messages.INFO: "info",
    messages.ERROR: "danger",
    messages.WARNING: "warning",
    messages.SUCCESS: "success",
}

## I18N SETTINGS
USE_I18N = True
USE_TZ = True
TIME_ZONE = os.environ.get("WORKLOG_TIME_ZONE", "UTC")
LANGUAGE_COOKIE_NAME = "worklog_language"

## MIDDLEWARE SETTINGS
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

## TEMPLATE AND STATICFILES SETTINGS
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [DATA_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.contrib.auth.context_processors.auth",
                "django.template.context_processors.request",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

## LOGGING SETTINGS
LOG_LEVEL = os.environ.get("WORKLOG_LOG_LEVEL", "INFO").upper()
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / "worklog.log",
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "formatter": "default",
        },
    },
    "loggers": {
        "worklog": {
            "handlers": ["console", "file"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "django": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    },
}

## BOARD SETTINGS
WORKLOG_PRIVATE_PREFIXES = [
    prefix.strip()
    for prefix in os.environ.get("WORKLOG_PRIVATE_PREFIXES", "SCD-").split(",")
    if prefix.strip()
]
WORKLOG_CLIENT_TIMEOUT = float(os.environ.get("WORKLOG_CLIENT_TIMEOUT", "10"))
