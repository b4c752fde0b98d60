# accrual/assets.py
import logging

import requests
from django.conf import settings

from ledger.errors import LedgerError

logger = logging.getLogger(__name__)


class AssetProviderUnavailable(LedgerError):
    code = "asset_provider_unavailable"
    status_code = 502
    default_message = "All asset provider mirrors failed"


class AssetProvider:
    """
    Read-only lookup of the items a holder owns in the configured collection.
    Mirrors are tried in order until one returns a JSON payload with ``data``.
    """

    def __init__(self, endpoints=None, session=None):
        self.endpoints = list(endpoints or settings.ASSET_PROVIDER_ENDPOINTS)
        self.collection = settings.ASSET_COLLECTION
        self.schema = settings.ASSET_SCHEMA
        self.timeout = settings.ASSET_PROVIDER_TIMEOUT
        self.session = session or requests.Session()

    def _headers(self):
        return {
            "Accept": "application/json",
            "User-Agent": "idle-economy/1.0",
        }

    def fetch_assets(self, owner: str, limit: int = 100):
        params = {
            "owner": owner,
            "collection_name": self.collection,
            "schema_name": self.schema,
            "limit": limit,
        }

        for base in self.endpoints:
            try:
                res = self.session.get(base, params=params, headers=self._headers(), timeout=self.timeout)
            except requests.exceptions.RequestException as e:
                logger.warning(f"Asset mirror {base} failed: {e}")
                continue

            try:
                payload = res.json()
            except ValueError:
                logger.warning(f"Non-JSON from asset mirror {base}: {res.text[:120]}")
                continue

            if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
                logger.warning(f"Invalid payload from asset mirror {base}")
                continue

            return payload["data"]

        raise AssetProviderUnavailable()

    def count_owned(self, owner: str) -> int:
        return len(self.fetch_assets(owner))
