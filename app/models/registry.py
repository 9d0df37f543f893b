# Importing every model registers it on Base.metadata before mappers configure.
from app.models.user import User  # noqa: F401
from app.models.course import Course  # noqa: F401
from app.models.purchase import Purchase  # noqa: F401
from app.models.exam import Exam  # noqa: F401
from app.models.question import Question  # noqa: F401
from app.models.exam_attempt import ExamAttempt  # noqa: F401
from app.models.user_answer import UserAnswer  # noqa: F401
from app.models.certificate import Certificate  # noqa: F401
from app.models.certificate_verification import CertificateVerification  # noqa: F401
from app.models.admin_action import AdminAction  # noqa: F401
from app.models.notification import Notification  # noqa: F401
