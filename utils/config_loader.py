"""Configuration loader that reads from .env and validates with Pydantic."""

import os
import sys
from pathlib import Path
from dotenv import load_dotenv
from pydantic import ValidationError

from models.config_models import Config, CredentialsConfig


def load_config() -> Config:
    """
    Load and validate configuration from environment variables.
    
    Reads from .env file in the project root and validates all required
    credentials and settings using Pydantic models.
    
    Returns:
        Config: Validated configuration object
        
    Raises:
        SystemExit: If configuration is invalid or missing required fields
    """
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)
    
    try:
        config = Config(
            credentials=CredentialsConfig(
                supabase_url=os.getenv("SUPABASE_URL", ""),
                supabase_key=os.getenv("SUPABASE_KEY", ""),
                database_url=os.getenv("DATABASE_URL"),
                github_app_id=os.getenv("GITHUB_APP_ID"),
                github_private_key=os.getenv("GITHUB_PRIVATE_KEY"),
                github_installation_id=os.getenv("GITHUB_INSTALLATION_ID"),
                github_app_slug=os.getenv("GITHUB_APP_SLUG"),
                github_client_id=os.getenv("GITHUB_CLIENT_ID"),
                github_client_secret=os.getenv("GITHUB_CLIENT_SECRET"),
                jwt_secret=os.getenv("JWT_SECRET"),
                app_url=os.getenv("APP_URL", "http://localhost:5173"),
                allowed_users=os.getenv("ALLOWED_USERS"),
                user_roles=os.getenv("USER_ROLES"),
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            installation_cache_ttl=os.getenv("INSTALLATION_CACHE_TTL", "300"),
        )
        
        return config
        
    except ValidationError as e:
        print("❌ Configuration validation failed:", file=sys.stderr)
        print("\nPlease check your .env file. Missing or invalid fields:", file=sys.stderr)
        
        for error in e.errors():
            field_path = " → ".join(str(x) for x in error["loc"])
            message = error["msg"]
            print(f"  • {field_path}: {message}", file=sys.stderr)
        
        print("\nHint: Copy .env.example to .env and fill in your credentials.", file=sys.stderr)
        sys.exit(1)
