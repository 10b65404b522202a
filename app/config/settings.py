"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (for Dramatiq and cycle locks)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0
    use_redis_locks: bool = Field(
        default=True,
        description=(
            "Guard scheduler cycles with Redis locks; in-process locks are "
            "only allowed in the test environment"
        ),
    )

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/goldgrowth.log"
    health_check_port: int = Field(
        default=8080, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Trading
    supported_instruments: str = "XAUUSD,XAGUSD,BTCUSD,ETHUSD"  # Comma-separated list
    min_trade_amount: Decimal = Field(
        default=Decimal("10"), gt=0,
        description="Minimum notional for a new position"
    )
    max_trade_amount: Decimal = Field(
        default=Decimal("100000"), gt=0,
        description="Maximum notional for a new position"
    )
    default_leverage: int = Field(default=100, ge=1)
    max_leverage: int = Field(default=500, ge=1)
    price_half_spread: Decimal = Field(
        default=Decimal("0.5"), ge=0,
        description="Half of the bid/ask spread applied by the simulated feed"
    )
    price_volatility: Decimal = Field(
        default=Decimal("0.001"), ge=0, le=1,
        description="Random walk step as a fraction of the base price"
    )

    # Funding
    min_deposit: Decimal = Field(default=Decimal("10"), gt=0)
    max_deposit: Decimal = Field(default=Decimal("100000"), gt=0)
    min_withdrawal: Decimal = Field(default=Decimal("5"), gt=0)
    withdrawal_fee_percent: Decimal = Field(
        default=Decimal("2.5"), ge=0, le=100,
        description="Withdrawal fee percentage recorded on the ledger entry"
    )

    # Scheduler cadence
    reprice_interval_seconds: int = Field(default=30, ge=1)
    daily_interest_cron: str = "0 0 * * *"
    maturation_cron: str = "0 * * * *"
    disbursement_cron: str = "0 * * * *"
    monthly_bonus_cron: str = "0 1 1 * *"
    commission_batch_size: int = Field(default=100, ge=1)
    cycle_lock_timeout_seconds: int = Field(default=300, ge=1)

    # Referral links
    referral_base_url: str = "https://mmsgold.com"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_trade_limits(self) -> 'Settings':
        """Validate trade and funding corridors."""
        if self.min_trade_amount > self.max_trade_amount:
            raise ValueError(
                'MIN_TRADE_AMOUNT must not exceed MAX_TRADE_AMOUNT'
            )
        if self.min_deposit > self.max_deposit:
            raise ValueError('MIN_DEPOSIT must not exceed MAX_DEPOSIT')
        if self.default_leverage > self.max_leverage:
            raise ValueError('DEFAULT_LEVERAGE must not exceed MAX_LEVERAGE')
        return self

    @model_validator(mode='after')
    def validate_cycle_locks(self) -> 'Settings':
        """Require Redis cycle locks outside the test environment."""
        if self.environment != 'test' and not self.use_redis_locks:
            raise ValueError(
                'USE_REDIS_LOCKS=false is only allowed with ENVIRONMENT=test. '
                'Worker processes need Redis locks to keep cycles from '
                'overlapping.'
            )
        return self

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )
            if self.database_url.startswith('sqlite'):
                logger.warning(
                    'DATABASE_URL points to SQLite in production. '
                    'Row locks are not enforced; use PostgreSQL.'
                )
        return self

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')
        ):
            raise ValueError(
                'DATABASE_URL must start with postgresql://, '
                'postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        if v.startswith('postgresql://'):
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    def get_supported_instruments(self) -> list[str]:
        """Parse supported instruments from comma-separated string."""
        if not self.supported_instruments:
            return []

        result = []
        for symbol in self.supported_instruments.split(","):
            symbol_stripped = symbol.strip().upper()
            if not symbol_stripped:
                continue
            result.append(symbol_stripped)
        return result


# Global settings instance
settings = Settings()
