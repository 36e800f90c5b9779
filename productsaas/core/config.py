from decouple import config, Csv

class Settings:
    # Database Configuration
    DATABASE_URL: str = config("DATABASE_URL", default="sqlite:///./productsaas.db")

    # Security Configuration
    SECRET_KEY: str = config("SECRET_KEY", default="your-secret-key-here-change-in-production")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = config("ACCESS_TOKEN_EXPIRE_MINUTES", default=30, cast=int)
    SESSION_LIFETIME_HOURS: int = config("SESSION_LIFETIME_HOURS", default=24, cast=int)
    PASSWORD_RESET_EXPIRE_MINUTES: int = config("PASSWORD_RESET_EXPIRE_MINUTES", default=60, cast=int)
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = config("EMAIL_VERIFICATION_EXPIRE_HOURS", default=48, cast=int)
    BCRYPT_ROUNDS: int = config("BCRYPT_ROUNDS", default=12, cast=int)

    # PayPal Configuration
    PAYPAL_CHECKOUT_URL: str = config("PAYPAL_CHECKOUT_URL", default="https://www.paypal.com/cgi-bin/webscr")
    PAYPAL_VERIFY_URL: str = config("PAYPAL_VERIFY_URL", default="https://ipnpb.paypal.com/cgi-bin/webscr")
    PAYPAL_VERIFY_IPN: bool = config("PAYPAL_VERIFY_IPN", default=True, cast=bool)
    PAYPAL_TIMEOUT_SECONDS: float = config("PAYPAL_TIMEOUT_SECONDS", default=10.0, cast=float)

    # Checkout Configuration
    # "apply" counts a coupon use when the buyer applies it, "payment" when PayPal confirms the order
    COUPON_REDEEM_ON: str = config("COUPON_REDEEM_ON", default="apply")
    COUPON_REDEMPTION_EXPIRE_MINUTES: int = config("COUPON_REDEMPTION_EXPIRE_MINUTES", default=60, cast=int)
    DEFAULT_CURRENCY: str = config("DEFAULT_CURRENCY", default="USD")

    # URL Configuration
    FRONTEND_BASE_URL: str = config("FRONTEND_BASE_URL", default="http://localhost:5173")
    BACKEND_BASE_URL: str = config("BACKEND_BASE_URL", default="http://localhost:8000")
    CORS_ORIGINS: list = config(
        "CORS_ORIGINS",
        default="http://localhost:5173,http://localhost:3000",
        cast=Csv()
    )

    # Environment
    ENVIRONMENT: str = config("ENVIRONMENT", default="development")
    DEBUG: bool = config("DEBUG", default=True, cast=bool)

    # Logging
    LOG_LEVEL: str = config("LOG_LEVEL", default="INFO")

settings = Settings()
