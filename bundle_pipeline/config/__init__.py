from bundle_pipeline.config.settings import PipelineConfig, UnknownConfirmationPolicy
from bundle_pipeline.config.constants import BASE_CURRENCIES, BaseCurrency, Platform

__all__ = [
    "PipelineConfig",
    "UnknownConfirmationPolicy",
    "BASE_CURRENCIES",
    "BaseCurrency",
    "Platform",
]
