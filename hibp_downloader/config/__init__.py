"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import DownloadPlan, DownloaderConfig, RetryConfig

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DownloadPlan",
    "DownloaderConfig",
    "RetryConfig",
]
