"""
Configuration management for FunnelHub
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "FunnelHub Campaign Dashboard"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Database (tenant configuration + synced ad insights)
    database_url: str = "sqlite:///./funnelhub.db"

    # CRM pipeline aggregation endpoint
    crm_api_base_url: str = "https://aiatende.dev.br/kommo/api/kommo-leads/aggregated-utm"
    crm_request_timeout_seconds: float = 30.0
    crm_retry_max_attempts: int = 3
    crm_retry_base_delay: float = 1.0  # doubles per attempt: 1s, 2s, ...
    crm_retry_max_delay: float = 30.0
    crm_unknown_sentinel: str = "unknown"  # untracked traffic, excluded at every level
    crm_default_group_name: str = "(no group)"
    crm_default_ad_name: str = "(unnamed ad)"

    # Stage labels shown when a source has no configured journey map
    default_labels_crm: List[str] = ["Created", "Qualified", "Sale"]
    default_labels_meta: List[str] = ["Impressions", "Clicks", "Leads", "Reach", "Results"]
    default_labels_google: List[str] = ["Impressions", "Clicks", "Conversions", "Cost", "Conv. Value"]

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
