"""
Application Configuration

All tunable thresholds for signal extraction, persona rules and the debt
simulator live here as named settings. Values can be overridden with
FINSIGHT_* environment variables or a local .env file.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """FinSight settings."""

    model_config = SettingsConfigDict(
        env_prefix="FINSIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Infrastructure
    database_url: str = "sqlite:///finsight.db"
    log_level: str = "INFO"
    service_name: str = "finsight"

    # Windows
    default_window_days: int = 90
    trend_window_days: int = 180
    default_timeline_months: int = 12

    # Credit
    high_utilization_percent: float = 50.0
    low_card_utilization_percent: float = 30.0
    interest_pattern: str = "interest"
    minimum_payment_tolerance_ratio: float = 0.05
    minimum_payment_tolerance_floor: float = 1.0

    # Income
    pay_cycles_days: List[int] = [7, 14, 15, 30]
    pay_cycle_tolerance_days: float = 5.0
    pay_gap_variability_days: float = 10.0
    low_buffer_months: float = 2.0

    # Subscriptions
    subscription_share_percent: float = 10.0
    subscription_count: int = 5
    comparable_amount_ratio: float = 0.10

    # Savings builder
    savings_growth_percent_monthly: float = 2.0
    savings_inflow_monthly: float = 200.0

    # Lifestyle creep
    high_income_monthly: float = 8000.0
    low_savings_rate_percent: float = 10.0
    elevated_discretionary_percent: float = 30.0
    discretionary_trend_threshold: float = 0.10

    # Confidence weights for high utilization
    criterion_weight: float = 0.25
    overdue_boost: float = 0.15

    # Spending analysis
    analysis_months: int = 6
    top_merchants_count: int = 10
    unusual_spending_sigma: float = 2.0
    unusual_spending_limit: int = 10

    # Debt simulator
    max_simulation_months: int = 600
    cash_flow_safety_ratio: float = 0.80


settings = Settings()
