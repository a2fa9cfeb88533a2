"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "procurement_dev"
    workflows_collection: str = "approval_workflows"
    requisitions_collection: str = "requisitions"

    # Auth (bearer JWT issued by the main back office)
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    # Pipe separated: role names contain commas
    workflow_admin_roles: str = (
        "admin|Executive (CEO, CFO, etc.)|Management|Enterprise(CEO, CFO, etc.)|"
        "HR Manager|Finance Analyst|Accountant"
    )

    # Workflow engine
    active_requisition_statuses: str = "pending,in-review,in-approval"
    statistics_window_days: int = 30
    default_page_size: int = 20

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # CORS - set to "*" to allow all origins
    cors_origins: str = "*"

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def workflow_admin_roles_list(self) -> List[str]:
        """Roles allowed to manage approval workflows"""
        return [role.strip() for role in self.workflow_admin_roles.split("|") if role.strip()]

    @property
    def active_requisition_statuses_list(self) -> List[str]:
        """Requisition statuses that count as in-flight for a workflow"""
        return [s.strip() for s in self.active_requisition_statuses.split(",") if s.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
