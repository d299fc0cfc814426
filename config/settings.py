"""
Buyer Lens Data - Configuration

Loads settings from environment variables with sensible defaults.
"""

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Input / output files
    COUNTY_SALES_FILE: Path = Field(
        default=PROJECT_ROOT / "public_sales_proxy_all_prices_last12mo.csv"
    )
    REALTOR_EXPORT_DIR: Path = Field(default=PROJECT_ROOT / "realtor_exports")
    ENRICHED_OUTPUT_FILE: Path = Field(
        default=PROJECT_ROOT / "public_sales_proxy_mls_enriched_last12mo.csv"
    )
    REPORT_FILE: Path = Field(default=PROJECT_ROOT / "data_refresh_report.json")

    @property
    def project_root(self) -> Path:
        """Return project root directory."""
        return PROJECT_ROOT

    # Application
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    LOG_DIR: Path = Field(default=PROJECT_ROOT / "logs")
    LOG_TO_FILE: bool = Field(default=True)

    # Closed-sale matching window
    MAX_DATE_LAG_DAYS: int = Field(default=45)
    PRICE_TOLERANCE_ABS: int = Field(default=5000)
    PRICE_TOLERANCE_PCT: float = Field(default=0.005)

    # Listing-stub fallback window
    STUB_MAX_LAG_DAYS: int = Field(default=120)
    STUB_MAX_PRICE_DIFF_RATIO: float = Field(default=0.5)

    # Hot market classification
    ULTRA_HOT_MAX_DAYS: int = Field(default=5)
    HOT_MARKET_MAX_DAYS: int = Field(default=10)

    # Validation: matched rows below this address score raise a warning
    ADDRESS_SCORE_WARN_THRESHOLD: float = Field(default=60.0)

    # Brokerage export file stem -> region label
    REGION_LABELS: dict[str, str] = Field(
        default={
            "Central_South Seattle": "Central / South Seattle",
            "NE Seattle": "NE Seattle",
            "NW Seattle": "NW Seattle",
            "QA_Magnolia": "Queen Anne / Magnolia",
        }
    )


settings = Settings()
