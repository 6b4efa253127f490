from .refund import (
    DROP_THRESHOLD,
    REFUND_DISTRIBUTION,
    ParticipantInput,
    Problem,
    RefundCalculation,
    RefundResult,
    calculate_refund,
    get_rank_label,
)
from .dates import DEFAULT_TIMEZONE, is_within_submission_time, reference_day_start
from .season import season_status_key, season_status_label
from .repository import (
    ParticipantRecord,
    ProblemRecord,
    SeasonRecord,
    SeasonRepository,
    build_refund_inputs,
    participant_identifier,
)
from .report import (
    MyRefund,
    RankSummary,
    RefundSummary,
    build_rank_summaries,
    build_submission_grid,
    lookup_my_refund,
    summarize_refund,
)
from .auth import AdminEmailPolicy, AuthorizationPolicy, Viewer
from .config import StudySettings
from .validation import InputSanitizer, ValidatedSubmission
from .submission import SubmissionOutcome, ValidationError, evaluate_submission
from .service import (
    MyRefundReport,
    NotAuthenticated,
    NotAuthorized,
    RefundService,
    RefundServiceError,
    SeasonNotFound,
    SeasonRefundReport,
)

__all__ = [
    "DROP_THRESHOLD",
    "REFUND_DISTRIBUTION",
    "ParticipantInput",
    "Problem",
    "RefundCalculation",
    "RefundResult",
    "calculate_refund",
    "get_rank_label",
    "DEFAULT_TIMEZONE",
    "is_within_submission_time",
    "reference_day_start",
    "season_status_key",
    "season_status_label",
    "ParticipantRecord",
    "ProblemRecord",
    "SeasonRecord",
    "SeasonRepository",
    "build_refund_inputs",
    "participant_identifier",
    "MyRefund",
    "RankSummary",
    "RefundSummary",
    "build_rank_summaries",
    "build_submission_grid",
    "lookup_my_refund",
    "summarize_refund",
    "AdminEmailPolicy",
    "AuthorizationPolicy",
    "Viewer",
    "StudySettings",
    "InputSanitizer",
    "ValidatedSubmission",
    "SubmissionOutcome",
    "ValidationError",
    "evaluate_submission",
    "MyRefundReport",
    "NotAuthenticated",
    "NotAuthorized",
    "RefundService",
    "RefundServiceError",
    "SeasonNotFound",
    "SeasonRefundReport",
]
