import os

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# JWT Config
SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-change")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "7"))
AUTH_COOKIE_NAME = "adminToken"

# Bootstrap admin account, created on first start when no admin exists
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

ALLOWED_ORIGINS = [
    origin
    for origin in [
        "http://localhost:5173",
        "https://rahhalah.vercel.app",
        "https://shop-rahhalah.vercel.app",
        os.getenv("FRONTEND_URL"),
    ]
    if origin
]

# "strict" rejects status changes outside pending -> confirmed -> shipped -> delivered
# (plus cancellation); "permissive" lets admins write any status.
ORDER_STATUS_POLICY = os.getenv("ORDER_STATUS_POLICY", "strict").lower()
STRICT_STATUS_TRANSITIONS = ORDER_STATUS_POLICY != "permissive"

CURRENCY = os.getenv("CURRENCY", "EGP")

PORT = int(os.getenv("PORT", 8000))
