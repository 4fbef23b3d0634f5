import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./harbor_auth.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")

    # local | dev | staging | prod (staging and prod verify tokens strictly)
    ENVIRONMENT = data.get("ENVIRONMENT", "local")

    # Session-bound access tokens issued by this service
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_ISSUER = data.get("JWT_ISSUER", "harbor-auth")
    JWT_AUDIENCE = data.get("JWT_AUDIENCE", "harbor-api")
    ACCESS_TOKEN_TTL_MINUTES = data.get("ACCESS_TOKEN_TTL_MINUTES", 15)

    # Identity provider
    IDP_ISSUER = data.get("IDP_ISSUER", "http://localhost:4566/local_staff_pool")
    IDP_CLIENT_ID = data.get("IDP_CLIENT_ID", "local_staff_client")
    IDP_JWKS_URL = data.get("IDP_JWKS_URL", "")
    IDP_LOCAL_SECRET = data.get("IDP_LOCAL_SECRET", "local-idp-secret-change-me")
    LOCAL_USERS = data.get("LOCAL_USERS", [])
    JWKS_CACHE_TTL_SECONDS = data.get("JWKS_CACHE_TTL_SECONDS", 3600)

    # Timeouts for external calls
    HTTP_TIMEOUT_SECONDS = float(data.get("HTTP_TIMEOUT_SECONDS", 5))
    STORE_TIMEOUT_SECONDS = float(data.get("STORE_TIMEOUT_SECONDS", 5))
    # Upper bound on one request's use case, including store and provider calls
    OPERATION_TIMEOUT_SECONDS = float(data.get("OPERATION_TIMEOUT_SECONDS", 10))

    # Login attempts
    LOCKOUT_THRESHOLD = data.get("LOCKOUT_THRESHOLD", 5)
    LOCKOUT_WINDOW_MINUTES = data.get("LOCKOUT_WINDOW_MINUTES", 15)
    ORIGIN_RATE_LIMIT_THRESHOLD = data.get("ORIGIN_RATE_LIMIT_THRESHOLD", 20)
    ORIGIN_RATE_LIMIT_WINDOW_MINUTES = data.get("ORIGIN_RATE_LIMIT_WINDOW_MINUTES", 15)
    LOGIN_ATTEMPT_RETENTION_HOURS = data.get("LOGIN_ATTEMPT_RETENTION_HOURS", 24)
    LOGIN_SUCCESS_RESETS_LOCKOUT = bool(data.get("LOGIN_SUCCESS_RESETS_LOCKOUT", True))

    # Sessions
    SESSION_LIMIT_STRATEGY = data.get("SESSION_LIMIT_STRATEGY", "evict_oldest")
    CUSTOMER_MAX_SESSIONS = data.get("CUSTOMER_MAX_SESSIONS", 5)
    STAFF_MAX_SESSIONS = data.get("STAFF_MAX_SESSIONS", 2)
    CUSTOMER_SESSION_TTL_HOURS = data.get("CUSTOMER_SESSION_TTL_HOURS", 24)
    STAFF_SESSION_TTL_HOURS = data.get("STAFF_SESSION_TTL_HOURS", 8)
    MAX_REFRESH_COUNT = data.get("MAX_REFRESH_COUNT", 50)
    REQUIRE_DEVICE_CONSISTENCY = bool(data.get("REQUIRE_DEVICE_CONSISTENCY", True))

    # Step-up verification
    MFA_REQUIRED_ROLES = data.get("MFA_REQUIRED_ROLES", ["manager", "admin", "super_admin"])
    MFA_VALIDITY_MINUTES = data.get("MFA_VALIDITY_MINUTES", 60)

    # Audit risk scoring (UTC hours)
    OFF_HOURS_START = data.get("OFF_HOURS_START", 22)
    OFF_HOURS_END = data.get("OFF_HOURS_END", 6)
