from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union


class KeyProviderError(Exception):
    """Verification keys could not be obtained from their source"""


class ISigningKeyProvider(ABC):
    """Resolves the verification key for a token header"""

    @abstractmethod
    async def get_key(self, header: Dict[str, Any]) -> Optional[Union[str, Dict[str, Any]]]:
        """Return the key for header["kid"]/header["alg"], or None if unknown"""
        pass


def select_jwk(jwks: Dict[str, Any], kid: Optional[str]) -> Optional[Dict[str, Any]]:
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    return None


class StaticKeyProvider(ISigningKeyProvider):
    """
    Key provider over a key known at construction time.

    Accepts a shared secret, a single JWK, or a JWK set (selected by kid).
    """

    def __init__(self, key: Union[str, Dict[str, Any]]):
        self.key = key

    async def get_key(self, header: Dict[str, Any]) -> Optional[Union[str, Dict[str, Any]]]:
        if isinstance(self.key, dict) and "keys" in self.key:
            return select_jwk(self.key, header.get("kid"))
        if isinstance(self.key, dict) and self.key.get("kid") not in (None, header.get("kid")):
            return None
        return self.key
