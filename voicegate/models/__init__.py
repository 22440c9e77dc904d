from voicegate.models.assessment_record import AssessmentRecord
from voicegate.models.authorization_code import AuthorizationCode
from voicegate.models.provider_config import ProviderConfig
from voicegate.models.user_quota import UserQuota

__all__ = ["AssessmentRecord", "AuthorizationCode", "ProviderConfig", "UserQuota"]
