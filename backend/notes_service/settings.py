import os
from pathlib import Path

import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "your-secret-key")

DEBUG = os.environ.get("DJANGO_DEBUG", "False") == "True"

# Get ALLOWED_HOSTS from environment variable
allowed_hosts_env = os.environ.get("ALLOWED_HOSTS", "")
env_hosts = (
    [host.strip() for host in allowed_hosts_env.split(",")] if allowed_hosts_env else []
)

# Combine with default hosts
ALLOWED_HOSTS = ["localhost", "127.0.0.1", "localhost:8000", "127.0.0.1:8000"]
ALLOWED_HOSTS.extend([host for host in env_hosts if host and host not in ALLOWED_HOSTS])

# Qdrant Configuration
QDRANT_HOST = os.getenv("QDRANT_HOST", "localhost")
QDRANT_PORT = int(os.getenv("QDRANT_PORT", "6333"))
QDRANT_API_KEY = os.getenv("QDRANT_API_KEY", None)  # Optional
QDRANT_COLLECTION_NAME = os.getenv("QDRANT_COLLECTION_NAME", "notes_embeddings")
EMBEDDING_DIM = int(os.getenv("EMBEDDING_DIM", "768"))

STATIC_URL = "/static/"
STATIC_ROOT = os.path.join(BASE_DIR, "staticfiles")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "corsheaders",
    "notes",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "notes.security.SecurityHeadersMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "notes_service.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "notes_service.wsgi.application"

DATABASES = {
    "default": dj_database_url.config(
        default=os.environ.get("DATABASE_URL", "sqlite:///db.sqlite3")
    )
}

# REST Framework configuration
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    # No authentication: single-user service behind the browser extension
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "UNAUTHENTICATED_USER": None,
}

CORS_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]

# Browser extension content scripts post from arbitrary origins
CORS_ALLOWED_ORIGIN_REGEXES = [
    r"^chrome-extension://.*$",
    r"^moz-extension://.*$",
]

CORS_ALLOW_CREDENTIALS = True

LANGUAGE_CODE = "en-us"

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "notes": {
            "handlers": ["console"],
            "level": os.getenv("NOTES_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}

# Embeddings Configuration
EMBEDDINGS_ENDPOINT_URL = os.getenv("EMBEDDINGS_ENDPOINT_URL", "http://localhost:11434")
EMBEDDINGS_MODEL = os.getenv("EMBEDDINGS_MODEL", "nomic-embed-text")
EMBEDDINGS_PROVIDER = os.getenv("EMBEDDINGS_PROVIDER", "ollama")  # ollama, openai, openai_compatible, gemini
EMBEDDINGS_API_KEY = os.getenv("EMBEDDINGS_API_KEY", None)
EMBEDDINGS_TIMEOUT = int(os.getenv("EMBEDDINGS_TIMEOUT", "30"))

# Generation Configuration (empty values fall back to the embeddings config)
GENERATION_ENDPOINT_URL = os.getenv("GENERATION_ENDPOINT_URL", "")
GENERATION_MODEL = os.getenv("GENERATION_MODEL", "")
GENERATION_PROVIDER = os.getenv("GENERATION_PROVIDER", "")
GENERATION_API_KEY = os.getenv("GENERATION_API_KEY", None)
GENERATION_TIMEOUT = int(os.getenv("GENERATION_TIMEOUT", "60"))
GENERATION_TEMPERATURE = float(os.getenv("GENERATION_TEMPERATURE", "0.3"))
GENERATION_MAX_TOKENS = int(os.getenv("GENERATION_MAX_TOKENS", "1000"))

# Ingestion and retrieval tuning
NOTES_CHUNK_SIZE = int(os.getenv("NOTES_CHUNK_SIZE", "1000"))  # words per chunk
NOTES_MAX_WORDS = int(os.getenv("NOTES_MAX_WORDS", "10000"))  # words embedded per note
NOTES_MIN_RELEVANCE_SCORE = float(os.getenv("NOTES_MIN_RELEVANCE_SCORE", "0.3"))
NOTES_QA_RELEVANCE_SCORE = float(os.getenv("NOTES_QA_RELEVANCE_SCORE", "0.4"))
NOTES_QA_TOP_K = int(os.getenv("NOTES_QA_TOP_K", "5"))
EMBEDDING_CACHE_SIZE = int(os.getenv("EMBEDDING_CACHE_SIZE", "1000"))

# Background embedding workers
NOTES_WORKER_COUNT = int(os.getenv("NOTES_WORKER_COUNT", "3"))
NOTES_QUEUE_SIZE = int(os.getenv("NOTES_QUEUE_SIZE", "100"))
NOTES_WORKERS_AUTOSTART = os.getenv("NOTES_WORKERS_AUTOSTART", "True") == "True"

# Security headers
SECURE_BROWSER_XSS_FILTER = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'
