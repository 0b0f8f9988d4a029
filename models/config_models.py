"""Configuration models for validation using Pydantic."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class CredentialsConfig(BaseModel):
    """API credentials loaded from environment variables."""
    
    # Supabase key/value store (required)
    supabase_url: str = Field(..., min_length=1, description="Supabase project URL")
    supabase_key: str = Field(..., min_length=1, description="Supabase API key")
    database_url: Optional[str] = Field(None, description="PostgreSQL database URL (optional, for schema setup)")
    
    # GitHub App (multi-tenant installation resolution)
    github_app_id: Optional[str] = Field(None, description="GitHub App ID")
    github_private_key: Optional[str] = Field(None, description="GitHub App private key (PEM)")
    github_installation_id: Optional[str] = Field(None, description="Legacy single-tenant installation ID")
    github_app_slug: Optional[str] = Field(None, description="GitHub App slug, used in install links")
    
    # GitHub OAuth login + session signing
    github_client_id: Optional[str] = Field(None, description="GitHub OAuth client ID")
    github_client_secret: Optional[str] = Field(None, description="GitHub OAuth client secret")
    jwt_secret: Optional[str] = Field(None, description="Secret used to sign session tokens")
    app_url: str = Field(default="http://localhost:5173", description="Public URL of the dashboard")
    
    # Legacy role configuration, migrated into storage on first use
    allowed_users: Optional[str] = Field(None, description="Comma-separated allow-list (legacy)")
    user_roles: Optional[str] = Field(None, description="Comma-separated user:role pairs (legacy)")
    
    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: str) -> str:
        """Validate Supabase URL format."""
        if not v or v == "https://your-project.supabase.co":
            raise ValueError("Supabase URL must be set in .env file")
        if not v.startswith("https://"):
            raise ValueError("Supabase URL must start with https://")
        return v
    
    @field_validator("supabase_key")
    @classmethod
    def validate_supabase_key(cls, v: str) -> str:
        """Validate Supabase key is set."""
        if not v or v == "your_supabase_anon_key_here":
            raise ValueError("Supabase key must be set in .env file")
        return v
    
    @field_validator("github_private_key")
    @classmethod
    def normalize_private_key(cls, v: Optional[str]) -> Optional[str]:
        """Turn escaped newlines (as stored in most hosting dashboards) into real ones."""
        if not v:
            return None
        return v.replace("\\n", "\n")
    
    @property
    def has_github_app(self) -> bool:
        return bool(self.github_app_id and self.github_private_key)


class Config(BaseModel):
    """Application configuration."""
    
    credentials: CredentialsConfig
    log_level: str = Field(default="INFO", description="Logging level")
    installation_cache_ttl: int = Field(default=300, gt=0, description="Installation ID cache TTL in seconds")
    
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper
