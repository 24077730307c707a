from .account import AccountClient
from .admin import AdminClient
from .auth import AuthClient
from .features import FeaturesClient
from .recovery import RecoveryClient
from .signup import SignupClient

__all__ = [
    "AccountClient",
    "AdminClient",
    "AuthClient",
    "FeaturesClient",
    "RecoveryClient",
    "SignupClient",
]
