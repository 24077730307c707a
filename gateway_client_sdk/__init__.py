from .clients import AccountClient, AdminClient, AuthClient, FeaturesClient, RecoveryClient, SignupClient
from .config import ClientConfig, ConfigError
from .credential_store import CredentialStore
from .exceptions import (
    ApiError,
    AuthError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    ServerError,
    TransportError,
    ValidationError,
)
from .http_client import HttpClient
from .models import (
    AuthCheckResponse,
    FeaturesResponse,
    LivenessResponse,
    LogoutResponse,
    OkResponse,
    ProfileResponse,
    SignupResponse,
    TotpSetupResponse,
)

__all__ = [
    "AccountClient",
    "AdminClient",
    "ApiError",
    "AuthClient",
    "AuthCheckResponse",
    "AuthError",
    "ClientConfig",
    "ConfigError",
    "CredentialStore",
    "FeaturesClient",
    "FeaturesResponse",
    "HttpClient",
    "LivenessResponse",
    "LogoutResponse",
    "NotFoundError",
    "OkResponse",
    "PermissionDeniedError",
    "ProfileResponse",
    "RateLimitError",
    "RecoveryClient",
    "ServerError",
    "SignupClient",
    "SignupResponse",
    "TotpSetupResponse",
    "TransportError",
    "ValidationError",
]
