from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel

from harbor_auth.libs.result import Result


class IdentityTokens(BaseModel):
    """Tokens returned by the identity provider after authentication"""

    id_token: str
    access_token: Optional[str] = None


class IIdentityProvider(ABC):
    """
    Identity provider boundary - credentials, MFA secrets and token signing
    are owned by the provider; this service only consumes what it issues.
    """

    @abstractmethod
    async def authenticate(self, email: str, password: str) -> Result[IdentityTokens]:
        """Verify credentials; err INVALID_CREDENTIALS on mismatch"""
        pass

    @abstractmethod
    async def verify_mfa(self, subject_id: str, code: str) -> Result[bool]:
        """Verify a second-factor code; ok(False) when the code is wrong"""
        pass
