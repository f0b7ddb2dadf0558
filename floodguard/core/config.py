"""
Application configuration management using Pydantic Settings.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = Field(default="FloodGuard", alias="APP_NAME")
    debug: bool = Field(default=False, alias="DEBUG")
    version: str = Field(default="1.0.0", alias="VERSION")

    # API
    api_prefix: str = Field(default="/api/v1", alias="API_PREFIX")
    # WARNING: CORS_ORIGINS set to "*" is for development only.
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Database
    database_url: str = Field(
        default="sqlite:///./floodguard.db", alias="DATABASE_URL"
    )
    database_pool_size: int = Field(default=10, alias="DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(default=20, alias="DATABASE_MAX_OVERFLOW")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="console", alias="LOG_FORMAT")
    sqlalchemy_log_level: str = Field(default="WARNING", alias="SQLALCHEMY_LOG_LEVEL")

    # Celery / scheduling
    celery_broker_url: str = Field(
        default="redis://localhost:6379/0", alias="CELERY_BROKER_URL"
    )
    celery_result_backend: str = Field(
        default="redis://localhost:6379/0", alias="CELERY_RESULT_BACKEND"
    )
    cycle_interval_seconds: float = Field(default=600.0, alias="CYCLE_INTERVAL_SECONDS")

    # Monitored location (Lagos, Nigeria)
    location_lat: float = Field(default=6.45, alias="LOCATION_LAT")
    location_lng: float = Field(default=3.39, alias="LOCATION_LNG")

    # Data providers
    owm_key: Optional[str] = Field(default=None, alias="OWM_KEY")
    owm_base_url: str = Field(
        default="https://api.openweathermap.org/data/2.5", alias="OWM_BASE_URL"
    )
    usgs_base_url: str = Field(
        default="https://waterservices.usgs.gov/nwis", alias="USGS_BASE_URL"
    )
    usgs_site: str = Field(default="01646500", alias="USGS_SITE")
    soilgrids_base_url: str = Field(
        default="https://rest.isric.org/soilgrids/v2.0", alias="SOILGRIDS_BASE_URL"
    )
    rainfall_timeout: float = Field(default=10.0, alias="RAINFALL_TIMEOUT")
    water_level_timeout: float = Field(default=8.0, alias="WATER_LEVEL_TIMEOUT")
    soil_moisture_timeout: float = Field(default=10.0, alias="SOIL_MOISTURE_TIMEOUT")

    # Predictive model
    model_dir: str = Field(default="./ai-model", alias="MODEL_DIR")

    # Broadcast channel
    mqtt_broker_host: str = Field(default="localhost", alias="MQTT_BROKER_HOST")
    mqtt_broker_port: int = Field(default=1883, alias="MQTT_BROKER_PORT")
    mqtt_username: Optional[str] = Field(default=None, alias="MQTT_USERNAME")
    mqtt_password: Optional[str] = Field(default=None, alias="MQTT_PASSWORD")
    mqtt_topic_prefix: str = Field(default="floodguard", alias="MQTT_TOPIC_PREFIX")

    # Push notifications
    firebase_config_base64: Optional[str] = Field(
        default=None, alias="FIREBASE_CONFIG_BASE64"
    )
    firebase_config: Optional[str] = Field(default=None, alias="FIREBASE_CONFIG")
    firebase_credentials_file: str = Field(
        default="firebase-service-account.json", alias="FIREBASE_CREDENTIALS_FILE"
    )
    alert_topic: str = Field(default="flood_alerts", alias="ALERT_TOPIC")

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "protected_namespaces": ("settings_",),
    }

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert CORS origins string to list."""
        if self.cors_origins == "*":
            return ["*"]
        if self.cors_origins.strip().startswith("["):
            import json

            try:
                return json.loads(self.cors_origins)
            except json.JSONDecodeError:
                # Fallback to comma split if json parse fails
                pass
        return [origin.strip() for origin in self.cors_origins.split(",")]


# Global settings instance
settings = Settings()
