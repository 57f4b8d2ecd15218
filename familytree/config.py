"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database path settings."""
    
    model_config = SettingsConfigDict(env_prefix="FAMILY_")
    
    db_path: str = "data/family_tree.db"


class TreeSettings(BaseSettings):
    """Tree building and placeholder settings."""
    
    model_config = SettingsConfigDict(env_prefix="TREE_")
    
    add_placeholders: bool = True
    father_label: str = "Father"
    mother_label: str = "Mother"


class LoggingSettings(BaseSettings):
    """Structured logging settings."""
    
    model_config = SettingsConfigDict(env_prefix="LOG_")
    
    level: str = "INFO"
    json_output: bool = False


class Settings(BaseSettings):
    """Main application settings."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    
    database: DatabaseSettings = DatabaseSettings()
    tree: TreeSettings = TreeSettings()
    logging: LoggingSettings = LoggingSettings()


settings = Settings()
