from bundle_pipeline.shared.schemas.preparer import (
    PreparedPlan,
    PreparedStage,
    PreparerResponse,
    parse_preparer_response,
)

__all__ = [
    "PreparedPlan",
    "PreparedStage",
    "PreparerResponse",
    "parse_preparer_response",
]
