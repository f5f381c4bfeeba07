from bundle_pipeline.shared.infrastructure.preparer_client import PreparerClient
from bundle_pipeline.shared.infrastructure.rate_limiter import RateLimiter
from bundle_pipeline.shared.infrastructure.relay_client import BundleRelayClient

__all__ = [
    "BundleRelayClient",
    "PreparerClient",
    "RateLimiter",
]
