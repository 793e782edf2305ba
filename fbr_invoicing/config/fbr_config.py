from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from fbr_invoicing.config.settings import Settings


@dataclass(frozen=True)
class FbrConfig:
    """
    Explicit connection settings for the FBR client.

    Built once at process start (``FbrConfig.from_settings(settings)``) and
    passed into ``FbrClient``. Tenants with their own credentials get a copy
    through ``with_overrides`` instead of mutating the shared instance.
    """
    base_url: str = ""
    token: str = ""
    connect_timeout: float = 10.0
    read_timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "FbrConfig":
        return cls(
            base_url=(settings.FBR_BASE_URL or "").strip(),
            token=(settings.FBR_SANDBOX_TOKEN or "").strip(),
            connect_timeout=settings.FBR_CONNECT_TIMEOUT,
            read_timeout=settings.FBR_READ_TIMEOUT,
        )

    def with_overrides(self, token: Optional[str] = None, base_url: Optional[str] = None) -> "FbrConfig":
        return replace(
            self,
            token=token or self.token,
            base_url=base_url or self.base_url,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.token)
