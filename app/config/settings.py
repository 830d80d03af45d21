from pathlib import Path
from decouple import config as env

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Core settings
SECRET_KEY = env("DJANGO_SECRET", default="insecure-development-secret")
DEBUG = env("DEBUG", default=False, cast=bool)
ALLOWED_HOSTS = env("ALLOWED_HOSTS", default="localhost 127.0.0.1 testserver").split(" ")

# Application definition
INSTALLED_APPS = [
    "django.contrib.auth",  # Required by DRF
    "django.contrib.contenttypes",  # Required by DRF
    "corsheaders",
    "rest_framework",
]

# Django REST Framework settings
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],  # Callers pass the platform bearer token through
    'DEFAULT_PERMISSION_CLASSES': [],
    'UNAUTHENTICATED_USER': None,
    'UNAUTHENTICATED_TOKEN': None,
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
}

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

# Sessions live in Redis, Django itself needs no database
DATABASES = {}

# Redis configuration
REDIS_URL = env("REDIS_URL", default="redis://redis-state:6379/0")

# Cache configuration using Redis - shared with redemption session storage
if env("CACHE_BACKEND", default="redis") == "locmem":
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "redemption",
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_URL,
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
                "SOCKET_CONNECT_TIMEOUT": 5,  # seconds
                "SOCKET_TIMEOUT": 5,  # seconds
                "RETRY_ON_TIMEOUT": True,
                "MAX_CONNECTIONS": 10,
                "HEALTH_CHECK_INTERVAL": 30,  # seconds
                "CONNECTION_POOL_CLASS": "redis.ConnectionPool",
                "REDIS_CLIENT_KWARGS": {
                    "decode_responses": True
                }
            },
            "KEY_PREFIX": "dashcard",
            "TIMEOUT": None,  # Session keys carry their own TTL
        }
    }

# Security settings
CORS_ALLOWED_ORIGINS = [
    origin for origin in env("CORS_ALLOWED_ORIGINS", default="").split(" ") if origin
]
CORS_ALLOW_HEADERS = ["authorization", "content-type"]
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
USE_X_FORWARDED_HOST = True
USE_X_FORWARDED_PORT = True

# Logging configuration
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "[%(asctime)s] %(levelname)s [%(name)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        # Redemption engine and platform client
        "core": {
            "handlers": ["console"],
            "level": env("APP_LOG_LEVEL", default="DEBUG"),
            "propagate": False,
        },
        # HTTP endpoints
        "api": {
            "handlers": ["console"],
            "level": env("APP_LOG_LEVEL", default="DEBUG"),
            "propagate": False,
        },
        # Django framework logging
        "django": {
            "handlers": ["console"],
            "level": env("DJANGO_LOG_LEVEL", default="WARNING"),
            "propagate": False,
        },
        # Third party libraries
        "urllib3": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}

# Time zone
TIME_ZONE = "Africa/Accra"
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
