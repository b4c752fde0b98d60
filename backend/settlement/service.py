# settlement/service.py
import logging
from dataclasses import dataclass
from decimal import Decimal

import requests
from django.conf import settings
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ledger.errors import SettlementFailed, SettlementUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    transaction_id: str
    raw: dict


class SettlementService:
    """
    Client for the external signer that broadcasts token transfers.

    Contract: a returned transaction id means the transfer happened exactly
    once; any exception means it did not happen.
    """

    def __init__(self, base_url=None, api_key=None, session=None):
        self.base_url = (base_url or settings.SETTLEMENT_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.SETTLEMENT_API_KEY
        self.source_account = settings.SETTLEMENT_ACCOUNT
        self.contract = settings.SETTLEMENT_TOKEN_CONTRACT
        self.symbol = settings.SETTLEMENT_TOKEN_SYMBOL
        self.precision = settings.SETTLEMENT_TOKEN_PRECISION
        self.timeout = (settings.SETTLEMENT_CONNECT_TIMEOUT, settings.SETTLEMENT_READ_TIMEOUT)
        self.session = session or self._create_session()

    def _create_session(self):
        session = requests.Session()

        # transfers are not idempotent upstream: only reads may be retried
        retry_strategy = Retry(
            total=2,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET"],
            backoff_factor=1,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _headers(self):
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def format_quantity(self, amount: int) -> str:
        quantum = Decimal(1).scaleb(-self.precision)
        return f"{Decimal(amount).quantize(quantum)} {self.symbol}"

    def transfer(self, destination: str, amount: int, memo: str) -> TransferResult:
        payload = {
            "contract": self.contract,
            "from": self.source_account,
            "to": destination,
            "quantity": self.format_quantity(amount),
            "memo": memo,
        }

        logger.info(f"Requesting transfer of {payload['quantity']} to {destination}")

        try:
            res = self.session.post(
                f"{self.base_url}/transfer",
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Settlement timeout for {destination}: {e}")
            raise SettlementUnavailable("Settlement service timed out")
        except requests.exceptions.RequestException as e:
            logger.error(f"Settlement connection error for {destination}: {e}")
            raise SettlementUnavailable("Unable to reach settlement service")

        try:
            data = res.json()
        except ValueError:
            logger.error(f"Non-JSON settlement response ({res.status_code}): {res.text[:200]}")
            raise SettlementFailed("Invalid response from settlement service")

        if not isinstance(data, dict):
            raise SettlementFailed("Invalid response from settlement service")

        if not 200 <= res.status_code < 300:
            message = data.get("error") or data.get("message") or f"status {res.status_code}"
            logger.error(f"Settlement rejected for {destination}: {message}")
            raise SettlementFailed(f"Settlement rejected: {message}")

        transaction_id = data.get("transaction_id") or (data.get("processed") or {}).get("id")
        if not transaction_id:
            logger.error(f"Settlement response without transaction id: {data}")
            raise SettlementFailed("Settlement returned no transaction id")

        return TransferResult(transaction_id=transaction_id, raw=data)
