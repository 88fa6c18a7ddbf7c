from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_RATE_MODES = {"reciprocal", "independent"}
ALLOWED_MISSING_TOTALS_POLICIES = {"raise", "empty"}


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., DEBUG, DATA_DIR,
    DISPLAY_CURRENCY, DISPLAY_TO_SETTLEMENT_RATE, RATE_MODE).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Gateway Currency Reconciler"
    debug: bool = True
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "app.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Currency pair
    display_currency: str = "XCD"
    settlement_currency: str = "USD"
    currency_symbol: str = "$"

    # Fixed rates. 'reciprocal' derives settlement->display as 1 / display_to_settlement_rate;
    # 'independent' uses both constants as given.
    display_to_settlement_rate: float = 0.369787
    settlement_to_display_rate: float = 2.70426
    rate_mode: str = "reciprocal"

    # Checkout hand-off
    checkout_context_ttl_seconds: int = 1800
    missing_totals_policy: str = "raise"

    # Analytics summary table owned by the storefront
    analytics_table: str = "order_stats"

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        # Ensure persistence directory exists
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.display_currency = self.display_currency.upper()
        self.settlement_currency = self.settlement_currency.upper()
        if self.display_currency == self.settlement_currency:
            raise ValueError("display and settlement currencies must differ")
        if self.rate_mode not in ALLOWED_RATE_MODES:
            raise ValueError(
                f"Unsupported rate_mode '{self.rate_mode}'. Allowed: {ALLOWED_RATE_MODES}"
            )
        if self.display_to_settlement_rate <= 0 or self.settlement_to_display_rate <= 0:
            raise ValueError("conversion rates must be positive")
        if self.missing_totals_policy not in ALLOWED_MISSING_TOTALS_POLICIES:
            raise ValueError(
                f"Unsupported missing_totals_policy '{self.missing_totals_policy}'. "
                f"Allowed: {ALLOWED_MISSING_TOTALS_POLICIES}"
            )
        if self.checkout_context_ttl_seconds <= 0:
            raise ValueError("checkout_context_ttl_seconds must be positive")
        # Table name is interpolated into SQL
        if not self.analytics_table.isidentifier():
            raise ValueError(f"Invalid analytics_table '{self.analytics_table}'")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
