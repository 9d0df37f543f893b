from enum import Enum


class RoleEnum(str, Enum):
    CANDIDATE = "candidate"
    ADMIN = "admin"
    SUPPORT = "support"

class QuestionTypeEnum(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"

class ExamAttemptStatusEnum(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    EXPIRED = "expired"

TERMINAL_ATTEMPT_STATUSES = (ExamAttemptStatusEnum.SUBMITTED, ExamAttemptStatusEnum.EXPIRED)

class AnswerKindEnum(str, Enum):
    OPTION = "option"
    BOOLEAN = "boolean"

class PurchaseStatusEnum(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"

class VerificationStatusEnum(str, Enum):
    VALID = "valid"
    REVOKED = "revoked"
    NOT_FOUND = "not_found"

class AdminActionTypeEnum(str, Enum):
    CERTIFICATE_REVOKE = "certificate_revoke"

class NotificationEventEnum(str, Enum):
    EXAM_PASSED = "exam_passed"
    EXAM_FAILED = "exam_failed"
    CERTIFICATE_ISSUED = "certificate_issued"

# True/false questions are two-option multiple choice in this order.
TRUE_FALSE_OPTIONS = ["True", "False"]
