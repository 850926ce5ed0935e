"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class MakerCheckerConfig(BaseSettings):
    """Maker-checker BFF configuration"""
    
    # Upstream platform configuration
    platform_base_url: str = "https://demo.fineract.dev/fineract-provider/api"
    platform_username: str = "mifos"
    platform_password: str = "password"
    platform_timeout: float = 30.0
    default_tenant: str = "default"
    
    # Inbound tenant headers, checked in order
    tenant_headers: List[str] = ["x-tenant-id", "fineract-platform-tenantid"]
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    api_workers: int = 1
    
    # Security configuration
    auth_enabled: bool = False
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    actor_header: str = "x-username"  # Used when auth is disabled
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    class Config:
        env_prefix = "MAKER_CHECKER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = MakerCheckerConfig()


def get_config() -> MakerCheckerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> MakerCheckerConfig:
    """Reload configuration from environment"""
    global config
    config = MakerCheckerConfig()
    return config
