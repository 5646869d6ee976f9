import os
import sys

from dotenv import load_dotenv

from enums.currency import Currency
from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=test before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    _runtime_env_str = os.environ.get("RUNTIME_ENVIRONMENT", RuntimeEnvironment.DEV.value)
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(_runtime_env_str)
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

# Web server
WEBAPP_HOST = os.environ.get("WEBAPP_HOST", "0.0.0.0")
WEBAPP_PORT = int(os.environ.get("WEBAPP_PORT")) if os.environ.get("WEBAPP_PORT") else 8000
SITE_URL = os.environ.get("SITE_URL", "").rstrip("/")  # Public storefront origin, used for payment callback URLs
CORS_ALLOWED_ORIGINS = os.environ.get("CORS_ALLOWED_ORIGINS", "").split(",") if os.environ.get("CORS_ALLOWED_ORIGINS") else []

# Database
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/shop.db")

# Store
STORE_NAME = os.environ.get("STORE_NAME", "The Real Gem Shop")
STORE_OWNER_EMAIL = os.environ.get("STORE_OWNER_EMAIL")
FROM_EMAIL = os.environ.get("FROM_EMAIL")
PACKAGE_CATEGORY_NAME = os.environ.get("PACKAGE_CATEGORY_NAME", "package")

# Parse CURRENCY with error handling
try:
    CURRENCY = Currency(os.environ.get("CURRENCY", Currency.GHS.value))
except ValueError as e:
    valid_currencies = [c.value for c in Currency]
    print(f"\n ERROR: Invalid CURRENCY configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_currencies)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('CURRENCY', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: CURRENCY={valid_currencies[0]}\n", file=sys.stderr)
    sys.exit(1)

# Parse MAX_CART_LINE_QUANTITY with error handling
try:
    MAX_CART_LINE_QUANTITY = int(os.environ.get("MAX_CART_LINE_QUANTITY", "99"))
    if MAX_CART_LINE_QUANTITY <= 0:
        raise ValueError(f"MAX_CART_LINE_QUANTITY must be positive (got: {MAX_CART_LINE_QUANTITY})")
except ValueError as e:
    print(f"\n ERROR: Invalid MAX_CART_LINE_QUANTITY configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected: Positive integer (e.g., 99)", file=sys.stderr)
    print(f"Current value: {os.environ.get('MAX_CART_LINE_QUANTITY', '(not set)')}\n", file=sys.stderr)
    sys.exit(1)

# Payment provider (Paystack)
PAYSTACK_SECRET_KEY = os.environ.get("PAYSTACK_SECRET_KEY")  # Also the HMAC key for webhook signatures
PAYSTACK_BASE_URL = os.environ.get("PAYSTACK_BASE_URL", "https://api.paystack.co").rstrip("/")
PAYSTACK_TIMEOUT_SECONDS = float(os.environ.get("PAYSTACK_TIMEOUT_SECONDS", "10"))
PAYMENT_PROVIDER = "paystack"

# Email provider (Resend)
RESEND_API_KEY = os.environ.get("RESEND_API_KEY")
RESEND_API_URL = os.environ.get("RESEND_API_URL", "https://api.resend.com/emails")
EMAIL_TIMEOUT_SECONDS = float(os.environ.get("EMAIL_TIMEOUT_SECONDS", "5"))

# Session tokens
SESSION_SECRET = os.environ.get("SESSION_SECRET", "")
SESSION_MAX_AGE_SECONDS = int(os.environ.get("SESSION_MAX_AGE_SECONDS", str(60 * 60 * 24 * 7)))  # Default: 7 days

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs

# Log Retention: Environment-specific defaults
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))

# HTTP security headers (see middleware/security_headers.py)
SECURITY_HEADERS_ENABLED = os.environ.get("SECURITY_HEADERS_ENABLED", "true") == "true"
HSTS_ENABLED = os.environ.get("HSTS_ENABLED", "false") == "true"
