"""
API credential capability.

The orchestrator only ever sees the CredentialProvider protocol: "is a key
configured?" and "ask the user to pick one". The default provider reads the
key from the environment and lets the front-end install one at runtime.
"""

import logging
import os
from typing import Optional, Protocol, runtime_checkable

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_KEYS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


@runtime_checkable
class CredentialProvider(Protocol):
    def has_credential(self) -> bool: ...

    async def request_credential(self) -> None: ...

    def get_api_key(self) -> Optional[str]: ...


def _usable(key: Optional[str]) -> bool:
    return bool(key and key.strip())


class EnvCredentialProvider:
    """
    Key from GEMINI_API_KEY (or GOOGLE_API_KEY / API_KEY), overridable at runtime.

    `request_credential()` cannot open a dialog from the server side, so it
    re-reads `.env` and raises the `requested` flag; the front-end sees the
    flag in the studio state and prompts the user, who then POSTs a key.
    """

    def __init__(self, api_key: Optional[str] = None, dotenv_path: Optional[str] = None):
        self._override = api_key
        self._dotenv_path = dotenv_path
        self.requested = False

    def get_api_key(self) -> Optional[str]:
        if _usable(self._override):
            return self._override.strip()
        for name in ENV_KEYS:
            value = os.environ.get(name)
            if _usable(value):
                return value.strip()
        return None

    def has_credential(self) -> bool:
        return self.get_api_key() is not None

    async def request_credential(self) -> None:
        load_dotenv(self._dotenv_path, override=True)
        self.requested = True
        logger.warning(
            f"API key selection requested (configured after .env reload: {self.has_credential()})"
        )

    def set_api_key(self, api_key: str) -> None:
        if not _usable(api_key):
            raise ValueError("API key must not be empty")
        self._override = api_key.strip()
        self.requested = False
        logger.info("API key updated from the front-end")
