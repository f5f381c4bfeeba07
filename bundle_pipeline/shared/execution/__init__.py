from bundle_pipeline.shared.execution.execution_result import (
    BundleResult,
    BundleStatusReport,
    ConfirmationOutcome,
    CreateResult,
    Err,
    ErrorKind,
    Ok,
    OperationResult,
    PlanMode,
    PlanResult,
    Result,
    StageResult,
    SubmitReceipt,
    failed_operation,
    failed_plan,
)

__all__ = [
    "BundleResult",
    "BundleStatusReport",
    "ConfirmationOutcome",
    "CreateResult",
    "Err",
    "ErrorKind",
    "Ok",
    "OperationResult",
    "PlanMode",
    "PlanResult",
    "Result",
    "StageResult",
    "SubmitReceipt",
    "failed_operation",
    "failed_plan",
]
