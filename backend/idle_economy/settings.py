from pathlib import Path
from decimal import Decimal
import os
BASE_DIR = Path(__file__).resolve().parent.parent
from dotenv import load_dotenv
load_dotenv()
SECRET_KEY = os.getenv("SECRET_KEY", "django-insecure-idle-economy-dev-key")

DEBUG = os.getenv("DEBUG", "False").lower() == "true"

ALLOWED_HOSTS = [h for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]


# Application definition

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'corsheaders',
    'ledger',
    'accrual',
    'mines',
    'pool',
    'settlement',
]


MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'idle_economy.urls'

WSGI_APPLICATION = 'idle_economy.wsgi.application'
ASGI_APPLICATION = 'idle_economy.asgi.application'

# Redis (pool sweep lock)
REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")
POOL_SWEEP_LOCK_TTL = int(os.getenv("POOL_SWEEP_LOCK_TTL", "300"))  # seconds

# IMMEDIATE makes every atomic block take the write lock up front, so
# select_for_update-style read-modify-write stays serialized on SQLite.
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv("DATABASE_PATH", BASE_DIR / 'db.sqlite3'),
        'OPTIONS': {
            'transaction_mode': 'IMMEDIATE',
            'timeout': 20,
        },
        # file-backed so threaded tests get real per-connection locking
        'TEST': {
            'NAME': os.getenv("TEST_DATABASE_PATH", BASE_DIR / 'test_db.sqlite3'),
        },
    }
}


CORS_ALLOWED_ORIGINS = [
    o for o in os.getenv(
        "CORS_ALLOWED_ORIGINS",
        "https://rupdud143.github.io,http://localhost:3000,http://127.0.0.1:3000",
    ).split(",") if o
]
CORS_ALLOW_METHODS = ["GET", "POST", "OPTIONS"]

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'UNAUTHENTICATED_USER': None,
    'EXCEPTION_HANDLER': 'ledger.exceptions.ledger_exception_handler',
}


# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
}


# Accrual
BASE_ACCRUAL_RATE = int(os.getenv("BASE_ACCRUAL_RATE", "1"))
UPGRADE_BASE_COST = int(os.getenv("UPGRADE_BASE_COST", "100"))
UPGRADE_RATE_STEP = int(os.getenv("UPGRADE_RATE_STEP", "1"))
ASSET_RATE_BONUS = int(os.getenv("ASSET_RATE_BONUS", "1"))

ASSET_PROVIDER_ENDPOINTS = [
    e for e in os.getenv(
        "ASSET_PROVIDER_ENDPOINTS",
        "https://aa.dapplica.io/atomicassets/v1/assets,"
        "https://atomic.wax.eosrio.io/atomicassets/v1/assets,"
        "https://wax-aa.eu.eosamsterdam.net/atomicassets/v1/assets",
    ).split(",") if e
]
ASSET_COLLECTION = os.getenv("ASSET_COLLECTION", "brostreasure")
ASSET_SCHEMA = os.getenv("ASSET_SCHEMA", "materials")
ASSET_PROVIDER_TIMEOUT = int(os.getenv("ASSET_PROVIDER_TIMEOUT", "10"))

# Mines
MINES_BOARD_SIZE = int(os.getenv("MINES_BOARD_SIZE", "25"))  # 5x5 grid
MINES_MAX_BOARD_SIZE = int(os.getenv("MINES_MAX_BOARD_SIZE", "100"))
MINES_HOUSE_EDGE = Decimal(os.getenv("MINES_HOUSE_EDGE", "0.035"))
MINES_MIN_MULTIPLIER = Decimal(os.getenv("MINES_MIN_MULTIPLIER", "1.01"))
MINES_MAX_MULTIPLIER = Decimal(os.getenv("MINES_MAX_MULTIPLIER", "1000000"))

# Daily pool
POOL_DAILY_REWARD = int(os.getenv("POOL_DAILY_REWARD", "1000"))

# Settlement (external signer)
SETTLEMENT_BASE_URL = os.getenv("SETTLEMENT_BASE_URL", "http://127.0.0.1:8081")
SETTLEMENT_API_KEY = os.getenv("SETTLEMENT_API_KEY")
SETTLEMENT_ACCOUNT = os.getenv("SETTLEMENT_ACCOUNT")
SETTLEMENT_TOKEN_CONTRACT = os.getenv("SETTLEMENT_TOKEN_CONTRACT", "rupdud143143")
SETTLEMENT_TOKEN_SYMBOL = os.getenv("SETTLEMENT_TOKEN_SYMBOL", "KAHEL")
SETTLEMENT_TOKEN_PRECISION = int(os.getenv("SETTLEMENT_TOKEN_PRECISION", "2"))
SETTLEMENT_MEMO = os.getenv("SETTLEMENT_MEMO", "KAHEL faucet reward")
SETTLEMENT_CONNECT_TIMEOUT = int(os.getenv("SETTLEMENT_CONNECT_TIMEOUT", "10"))
SETTLEMENT_READ_TIMEOUT = int(os.getenv("SETTLEMENT_READ_TIMEOUT", "60"))
SETTLEMENT_MIN_AMOUNT = int(os.getenv("SETTLEMENT_MIN_AMOUNT", "1"))
SETTLEMENT_MAX_PER_REQUEST = int(os.getenv("MAX_REDEEM_PER_REQUEST", "200"))
SETTLEMENT_DAILY_LIMIT = int(os.getenv("DAILY_LIMIT_PER_ACCOUNT", "1000"))

# Operator endpoints (X-Operator-Token header); unset disables them
OPERATOR_API_TOKEN = os.getenv("OPERATOR_API_TOKEN", "")


# Internationalization

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = False

USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
