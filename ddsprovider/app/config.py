import os


class Config:
    """Base configuration class with common settings."""

    # Alibaba Cloud credentials
    ALICLOUD_ACCESS_KEY = os.getenv("ALICLOUD_ACCESS_KEY", "")
    ALICLOUD_SECRET_KEY = os.getenv("ALICLOUD_SECRET_KEY", "")
    ALICLOUD_SECURITY_TOKEN = os.getenv("ALICLOUD_SECURITY_TOKEN", "")
    ALICLOUD_REGION = os.getenv("ALICLOUD_REGION", "cn-hangzhou")

    # Status polling
    POLL_INTERVAL = float(os.getenv("POLL_INTERVAL", "60"))
    NOT_FOUND_CHECKS = int(os.getenv("NOT_FOUND_CHECKS", "20"))

    # Delete retries while the instance is busy
    DELETE_RETRY_TIMEOUT = float(os.getenv("DELETE_RETRY_TIMEOUT", "3000"))
    DELETE_RETRY_INTERVAL = float(os.getenv("DELETE_RETRY_INTERVAL", "5"))

    # Logging settings
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @classmethod
    def provisioner_settings(cls):
        """Keyword arguments for ProvisionerConfig."""
        credentials = {
            "access_key": cls.ALICLOUD_ACCESS_KEY,
            "secret_key": cls.ALICLOUD_SECRET_KEY,
        }
        if cls.ALICLOUD_SECURITY_TOKEN:
            credentials["security_token"] = cls.ALICLOUD_SECURITY_TOKEN

        return {
            "provider_type": "alicloud",
            "credentials": credentials,
            "region": cls.ALICLOUD_REGION,
            "poll_interval": cls.POLL_INTERVAL,
            "delete_retry_timeout": cls.DELETE_RETRY_TIMEOUT,
            "delete_retry_interval": cls.DELETE_RETRY_INTERVAL,
            "not_found_checks": cls.NOT_FOUND_CHECKS,
        }


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DEBUG = True

    # Never talk to the real API from tests
    ALICLOUD_ACCESS_KEY = "test-access-key"
    ALICLOUD_SECRET_KEY = "test-secret-key"
    ALICLOUD_SECURITY_TOKEN = ""
    ALICLOUD_REGION = "cn-hangzhou"

    POLL_INTERVAL = 0
    DELETE_RETRY_TIMEOUT = 5
    DELETE_RETRY_INTERVAL = 0


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    TESTING = False

    # Credentials must be set via env; validated in the factory
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")


# Configuration dictionary for easy selection
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(config_name=None):
    """Get configuration class based on environment.

    Args:
        config_name: Configuration name ('development', 'testing', 'production').
                    If None, uses PROVIDER_ENV environment variable or defaults to 'development'.

    Returns:
        Configuration class.
    """
    if config_name is None:
        config_name = os.getenv("PROVIDER_ENV", "development")

    config_class = config.get(config_name, DevelopmentConfig)
    return config_class
