from bundle_pipeline.operations.facade import BundlePipeline
from bundle_pipeline.operations.models import CreateConfig, FundedWallet, TokenMetadata, Wallet
from bundle_pipeline.operations.validation import (
    ValidationResult,
    validate_consolidation_inputs,
    validate_create_inputs,
    validate_distribution_inputs,
    validate_mixing_inputs,
    validate_single_mixing_inputs,
)

__all__ = [
    "BundlePipeline",
    "CreateConfig",
    "FundedWallet",
    "TokenMetadata",
    "ValidationResult",
    "Wallet",
    "validate_consolidation_inputs",
    "validate_create_inputs",
    "validate_distribution_inputs",
    "validate_mixing_inputs",
    "validate_single_mixing_inputs",
]
