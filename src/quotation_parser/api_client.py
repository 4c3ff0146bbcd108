#!/usr/bin/env python3
"""
Client for the quotation backend REST API.

Covers the endpoints the quotation workflow talks to: chat completion
(/query), quotation history (/quotation-history/) and the processing
status of uploaded files (/files/{id}/processing-status).
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from .config import Settings
from .exceptions import APIError
from .models import ProcessingOutcome, QuotationRecord

logger = logging.getLogger(__name__)

FINAL_STATUSES = {
    'completed': ProcessingOutcome.COMPLETED,
    'failed': ProcessingOutcome.FAILED,
    'skipped': ProcessingOutcome.SKIPPED,
}

_QUOTA_MARKERS = ('quota', '429', 'rate_limit', 'rate limit')


def is_quota_error(message: Optional[str]) -> bool:
    """Upstream AI/OCR quota errors are skippable, not hard failures."""
    if not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in _QUOTA_MARKERS)


class QuotationAPIClient:
    """Thin wrapper around a requests session for the quotation backend."""

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})
        if token:
            self.session.headers.update({'Authorization': f'Bearer {token}'})

    @classmethod
    def from_settings(cls, settings: Settings) -> "QuotationAPIClient":
        return cls(settings.api_base_url, token=settings.api_token, timeout=settings.api_timeout)

    def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"❌ {method} {endpoint} failed: {e}")
            raise APIError(f"Request to {endpoint} failed: {e}") from e

        if not response.ok:
            detail = self._error_detail(response)
            logger.error(f"❌ {method} {endpoint} returned {response.status_code}: {detail}")
            raise APIError(detail, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON from {endpoint}", status_code=response.status_code) from e

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(data, dict):
            return str(data.get('detail') or data.get('error') or data)
        return str(data)

    # Chat completion

    def query(self, query: str, messages: Optional[List[Dict[str, str]]] = None,
              customer_name: Optional[str] = None,
              customer_location: Optional[str] = None) -> str:
        """
        Ask the assistant for a quotation.

        Returns:
            The raw response text (dual-marker markdown when the backend
            produced both documents)
        """
        payload: Dict[str, Any] = {'query': query, 'messages': messages or []}
        if customer_name:
            payload['customer_name'] = customer_name
        if customer_location:
            payload['customer_location'] = customer_location

        data = self._request('POST', '/query', json=payload)
        if not isinstance(data, dict) or 'response' not in data:
            raise APIError("Response from /query has no 'response' field")
        return data['response'] or ''

    # Quotation history

    def list_history(self) -> List[QuotationRecord]:
        data = self._request('GET', '/quotation-history/') or []
        return [QuotationRecord.from_dict(item) for item in data]

    def get_history(self, record_id: int) -> QuotationRecord:
        return QuotationRecord.from_dict(self._request('GET', f'/quotation-history/{record_id}'))

    def save_history(self, record: QuotationRecord) -> QuotationRecord:
        data = self._request('POST', '/quotation-history/', json=record.to_payload())
        return QuotationRecord.from_dict(data) if isinstance(data, dict) else record

    def delete_history(self, record_id: int) -> None:
        self._request('DELETE', f'/quotation-history/{record_id}')

    # File processing

    def get_processing_status(self, file_id: int) -> Dict[str, Any]:
        return self._request('GET', f'/files/{file_id}/processing-status') or {}

    def wait_for_processing(self, file_id: int, timeout: float = 90.0, interval: float = 2.0,
                            sleep: Callable[[float], None] = time.sleep,
                            clock: Callable[[], float] = time.monotonic) -> ProcessingOutcome:
        """
        Poll the processing status at a fixed interval until it is final.

        Returns:
            COMPLETED, FAILED or SKIPPED as reported by the server, or
            TIMED_OUT once ``timeout`` seconds have passed
        """
        start = clock()
        status = 'pending'

        while clock() - start < timeout:
            data = self.get_processing_status(file_id)
            status = data.get('processing_status', status)

            if status in FINAL_STATUSES:
                outcome = FINAL_STATUSES[status]
                if outcome is ProcessingOutcome.FAILED:
                    error = data.get('processing_error') or ''
                    if is_quota_error(error):
                        logger.warning(f"File {file_id} failed on upstream quota: {error}")
                    else:
                        logger.error(f"File {file_id} processing failed: {error}")
                return outcome

            logger.debug(f"File {file_id} status: {status}")
            sleep(interval)

        logger.warning(f"Processing of file {file_id} timed out after {timeout}s; last status: {status}")
        return ProcessingOutcome.TIMED_OUT
