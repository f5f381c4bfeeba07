"""
Bundle Pipeline
===============
Transaction-bundle orchestration and signing for Solana operations.

Fetches partially built transactions from a preparer, completes signing
with locally held keys, splits them into relay-sized bundles, submits with
bounded retry, and walks multi-stage deployments to completion.

Usage:
    from bundle_pipeline import BundlePipeline, PipelineConfig

    pipeline = BundlePipeline(PipelineConfig.from_env())
    result = await pipeline.execute_distribute(sender, recipients)
"""

from bundle_pipeline.config.settings import PipelineConfig
from bundle_pipeline.operations.facade import BundlePipeline

__version__ = "0.1.0"

__all__ = [
    "BundlePipeline",
    "PipelineConfig",
    "__version__",
]
