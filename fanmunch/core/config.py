# file: fanmunch/core/config.py
import os
import logging
from typing import Optional

from pydantic import BaseModel

logger = logging.getLogger("core.config")

# ==============================
# Payment providers
# ==============================
AIRWALLEX_MODES = {"demo", "production", "mock"}
AIRWALLEX_PROD_URL = "https://api.airwallex.com/api/v1"
AIRWALLEX_DEMO_URL = "https://api-demo.airwallex.com/api/v1"

# ==============================
# Currency
# ==============================
EXCHANGE_RATE_API = "https://api.exchangerate-api.com/v4/latest/USD"


class Settings(BaseModel):
    """
    Process-wide configuration, read from the environment once at startup
    and handed to every client that needs it.
    """

    port: int = 5001
    log_level: str = "INFO"
    use_cloud_logging: bool = False
    api_base: Optional[str] = None

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_publishable_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_vendor_account_id: Optional[str] = None

    # Airwallex
    airwallex_env: str = "demo"
    airwallex_client_id: Optional[str] = None
    airwallex_api_key: Optional[str] = None
    airwallex_client_id_demo: Optional[str] = None
    airwallex_api_key_demo: Optional[str] = None
    airwallex_base_url: Optional[str] = None

    # Firebase
    google_application_credentials: Optional[str] = None
    firebase_service_account: Optional[str] = None
    firebase_project_id: Optional[str] = None
    firebase_client_email: Optional[str] = None
    firebase_private_key: Optional[str] = None

    currency_api_url: str = EXCHANGE_RATE_API

    @property
    def stripe_mode(self) -> str:
        key = self.stripe_secret_key or ""
        return "live" if key.startswith("sk_live") else "test"


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """Build Settings from environment variables."""
    mode = os.getenv("AIRWALLEX_ENV", "demo").strip().lower()
    if mode not in AIRWALLEX_MODES:
        logger.warning("Unknown AIRWALLEX_ENV=%s, falling back to demo", mode)
        mode = "demo"

    private_key = os.getenv("FIREBASE_PRIVATE_KEY")
    if private_key and "\\n" in private_key:
        private_key = private_key.replace("\\n", "\n")

    settings = Settings(
        port=int(os.getenv("PORT", "5001")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        use_cloud_logging=_flag("USE_CLOUD_LOGGING"),
        api_base=os.getenv("REACT_APP_API_BASE"),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY") or os.getenv("REACT_APP_STRIPE_SECRET_KEY"),
        stripe_publishable_key=os.getenv("STRIPE_PUBLISHABLE_KEY"),
        stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
        stripe_vendor_account_id=os.getenv("STRIPE_VENDOR_ACCOUNT_ID"),
        airwallex_env=mode,
        airwallex_client_id=os.getenv("AIRWALLEX_CLIENT_ID"),
        airwallex_api_key=os.getenv("AIRWALLEX_API_KEY"),
        airwallex_client_id_demo=os.getenv("AIRWALLEX_CLIENT_ID_DEMO"),
        airwallex_api_key_demo=os.getenv("AIRWALLEX_API_KEY_DEMO"),
        airwallex_base_url=os.getenv("AIRWALLEX_BASE_URL"),
        google_application_credentials=os.getenv("GOOGLE_APPLICATION_CREDENTIALS"),
        firebase_service_account=os.getenv("FIREBASE_SERVICE_ACCOUNT"),
        firebase_project_id=(
            os.getenv("FIREBASE_PROJECT_ID")
            or os.getenv("GCLOUD_PROJECT")
            or os.getenv("GCP_PROJECT")
        ),
        firebase_client_email=os.getenv("FIREBASE_CLIENT_EMAIL"),
        firebase_private_key=private_key,
        currency_api_url=os.getenv("CURRENCY_API_URL", EXCHANGE_RATE_API),
    )

    # Never log secrets, only which ones are present
    logger.debug(
        "Settings loaded: airwallex_env=%s stripe_key=%s webhook_secret=%s firebase_sa=%s",
        settings.airwallex_env,
        bool(settings.stripe_secret_key),
        bool(settings.stripe_webhook_secret),
        bool(settings.firebase_service_account),
    )
    return settings
