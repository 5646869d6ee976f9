"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys
from typing import Optional

from enums.runtime_environment import RuntimeEnvironment


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_session_secret(secret: Optional[str]) -> None:
    """
    Validate the secret used to sign session tokens.

    Raises:
        ConfigValidationError: If secret is missing or too weak
    """
    if not secret:
        raise ConfigValidationError(
            "SESSION_SECRET is required for signing session tokens!\n"
            "Generate a secure secret with: openssl rand -hex 32\n"
            "Add to .env: SESSION_SECRET=<your-generated-secret>"
        )

    if len(secret) < 32:
        raise ConfigValidationError(
            f"SESSION_SECRET must be at least 32 characters long (currently: {len(secret)})\n"
            "Generate a secure secret with: openssl rand -hex 32"
        )


def validate_payment_secret(payment_secret: Optional[str]) -> None:
    """
    Validate payment provider secret key.

    The same key authenticates API calls and signs webhook deliveries.

    Raises:
        ConfigValidationError: If secret is missing or empty
    """
    if not payment_secret or len(payment_secret.strip()) == 0:
        raise ConfigValidationError(
            "PAYSTACK_SECRET_KEY is required and must not be empty!\n"
            "This secret is used to verify payment webhook signatures.\n"
            "Get your secret key from your payment provider dashboard.\n"
            "Add to .env: PAYSTACK_SECRET_KEY=<your-secret-key>"
        )


def validate_required_config(value: Optional[str], name: str, example: str = "") -> None:
    """
    Validate that a required config value is set.

    Args:
        value: The config value to check
        name: Name of the config variable
        example: Optional example value to show in error message

    Raises:
        ConfigValidationError: If value is missing
    """
    if not value:
        error_msg = f"{name} is required but not set!"
        if example:
            error_msg += f"\nAdd to .env: {name}={example}"
        raise ConfigValidationError(error_msg)


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration at startup.

    Args:
        config_module: The config module to validate

    Raises:
        ConfigValidationError: If any validation fails
    """
    validate_session_secret(getattr(config_module, 'SESSION_SECRET', None))
    validate_payment_secret(getattr(config_module, 'PAYSTACK_SECRET_KEY', None))

    # Mail settings are only enforced outside of development
    if getattr(config_module, 'RUNTIME_ENVIRONMENT', None) == RuntimeEnvironment.PROD:
        validate_required_config(getattr(config_module, 'RESEND_API_KEY', None), 'RESEND_API_KEY', 're_...')
        validate_required_config(getattr(config_module, 'FROM_EMAIL', None), 'FROM_EMAIL', 'orders@example.com')
        validate_required_config(getattr(config_module, 'STORE_OWNER_EMAIL', None), 'STORE_OWNER_EMAIL',
                                 'owner@example.com')
        validate_required_config(getattr(config_module, 'SITE_URL', None), 'SITE_URL', 'https://shop.example.com')


def validate_or_exit(config_module) -> None:
    """
    Validate configuration and exit with error code 1 if validation fails.

    This is the main entry point for startup validation.

    Args:
        config_module: The config module to validate
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Configuration Validation Failed\n", file=sys.stderr)
        print(str(e), file=sys.stderr)
        print("\nShop startup aborted. Please fix configuration and try again.\n", file=sys.stderr)
        sys.exit(1)
