import os

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from pinvault.sync.pinata import DEFAULT_API_URL, DEFAULT_GATEWAY_URL
from pinvault.utils.dataModels import DEFAULT_M_COST_KiB, DEFAULT_PARALLELISM, DEFAULT_T_COST, KdfParams


@dataclass(frozen=True)
class Settings:
    home: Path
    kdf: KdfParams
    pinata_jwt: Optional[str] = None
    pinata_api_key: Optional[str] = None
    pinata_secret_key: Optional[str] = None
    pinata_api_url: str = DEFAULT_API_URL
    pinata_gateway_url: str = DEFAULT_GATEWAY_URL
    http_timeout: float = 60
    log_level: str = "INFO"
    secret: Optional[str] = None

    @property
    def remote_configured(self) -> bool:
        return bool(self.pinata_jwt or (self.pinata_api_key and self.pinata_secret_key))


def load_settings(env_file: str | os.PathLike | None = None) -> Settings:
    load_dotenv(env_file or find_dotenv(usecwd=True))
    return Settings(
        home=Path(os.getenv("PINVAULT_HOME", "~/.pinvault")).expanduser(),
        kdf=KdfParams(
            t_cost=int(os.getenv("PINVAULT_KDF_T", DEFAULT_T_COST)),
            m_cost_kib=int(os.getenv("PINVAULT_KDF_M", DEFAULT_M_COST_KiB)),
            parallelism=int(os.getenv("PINVAULT_KDF_P", DEFAULT_PARALLELISM)),
        ),
        pinata_jwt=os.getenv("PINATA_JWT") or None,
        pinata_api_key=os.getenv("PINATA_API_KEY") or None,
        pinata_secret_key=os.getenv("PINATA_SECRET_KEY") or None,
        pinata_api_url=os.getenv("PINATA_API_URL", DEFAULT_API_URL),
        pinata_gateway_url=os.getenv("PINATA_GATEWAY_URL", DEFAULT_GATEWAY_URL),
        http_timeout=float(os.getenv("PINVAULT_HTTP_TIMEOUT", 60)),
        log_level=os.getenv("PINVAULT_LOG_LEVEL", "INFO").upper(),
        secret=os.getenv("PINVAULT_KEY") or None,
    )
