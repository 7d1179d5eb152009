"""HTTP session setup for the metadata service.

Corporate SSL inspection proxies (e.g. Netskope) re-sign traffic with their
own CA, and OpenSSL 3.x rejects some of those certificates unless the
verification flags are relaxed. Sessions created here load the configured or
detected CA bundle and retry transport failures via urllib3.
"""

import logging
import os
import ssl
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from urllib3.util.ssl_ import create_urllib3_context

from .config import Settings

logger = logging.getLogger(__name__)

# Known corporate SSL inspection cert bundle locations
CORPORATE_CERT_PATHS = [
    "/Library/Application Support/Netskope/STAgent/data/netskope-cert-bundle.pem",  # Netskope macOS
    "/etc/netskope/cert-bundle.pem",  # Netskope Linux
]

RETRY_STATUS_CODES = (502, 503, 504)


def get_corporate_cert_path() -> Optional[str]:
    """Find a corporate SSL certificate bundle if one is installed."""
    for path in CORPORATE_CERT_PATHS:
        if os.path.exists(path):
            return path
    return None


class MetadataServiceAdapter(HTTPAdapter):
    """HTTP adapter with retries and an optional custom CA bundle."""

    def __init__(self, cert_path: Optional[str] = None, retries: int = 0, **kwargs):
        self.cert_path = cert_path
        retry = Retry(
            total=retries,
            backoff_factor=0.5,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=frozenset(["GET"]),
            raise_on_status=False,
        )
        super().__init__(max_retries=retry, **kwargs)

    def init_poolmanager(self, *args, **kwargs):
        """Initialize pool manager, loading the CA bundle when configured."""
        if self.cert_path and os.path.exists(self.cert_path):
            ctx = create_urllib3_context()
            ctx.load_default_certs()
            ctx.load_verify_locations(self.cert_path)
            # Relax strict key usage validation (OpenSSL 3.x)
            ctx.verify_flags = ssl.VERIFY_DEFAULT
            kwargs['ssl_context'] = ctx
            logger.debug(f"Loaded CA bundle from {self.cert_path}")
        return super().init_poolmanager(*args, **kwargs)


def create_session(settings: Optional[Settings] = None) -> requests.Session:
    """Create a requests session for the metadata service."""
    settings = settings or Settings()
    session = requests.Session()
    session.headers.update({
        "Accept": "application/json",
        "User-Agent": settings.user_agent,
    })

    cert_path = settings.ca_bundle or get_corporate_cert_path()
    if cert_path:
        logger.info(f"Using CA bundle {cert_path}")

    adapter = MetadataServiceAdapter(cert_path=cert_path, retries=settings.retries)
    session.mount('https://', adapter)
    session.mount('http://', adapter)
    return session
