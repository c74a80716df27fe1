from .settings import Config, DevelopmentConfig, ProductionConfig, TestingConfig, get_config

__all__ = ["Config", "DevelopmentConfig", "ProductionConfig", "TestingConfig", "get_config"]
