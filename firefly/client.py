"""
Firefly III REST client.
Reads the category catalog and writes category assignments back to transactions.
"""
from typing import Any, Dict, List, Optional

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import Settings, get_settings
from core.exceptions import ConfigurationError, LedgerError
from core.logger import setup_logger

logger = setup_logger(__name__)

TRANSIENT_ERRORS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


class FireflyClient:
    """Client for the Firefly III API."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        settings = settings or get_settings()
        if not settings.firefly_url or not settings.firefly_personal_token:
            raise ConfigurationError(
                "FIREFLY_URL and FIREFLY_PERSONAL_TOKEN must be set",
                details={"required_keys": ["FIREFLY_URL", "FIREFLY_PERSONAL_TOKEN"]}
            )

        self.base_url = settings.firefly_url
        self.tag = settings.firefly_tag
        self.timeout = settings.firefly_timeout

        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {settings.firefly_personal_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

        logger.info(f"Initialized Firefly client for {self.base_url}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True
    )
    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        return self.session.request(method, url, timeout=self.timeout, **kwargs)

    def _request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """Make an API request, translating failures into LedgerError."""
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"API Request: {method} {url}")

        try:
            response = self._send(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout for {url}: {e}")
            raise LedgerError(f"Request to Firefly timed out: {e}", details={"url": url})
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error for {url}: {e}")
            raise LedgerError(f"Failed to connect to Firefly at {self.base_url}: {e}", details={"url": url})

        if not response.ok:
            try:
                message = response.json().get("message") or response.reason
            except (ValueError, AttributeError):
                message = response.reason
            logger.error(f"Firefly API error {response.status_code}: {message}")
            raise LedgerError(
                f"Firefly API error {response.status_code}: {message}",
                details={"url": url, "response_text": response.text},
                status_code=response.status_code
            )

        return response

    def get_categories(self) -> Dict[str, str]:
        """
        Fetch the category catalog.

        Returns:
            Mapping of category name to category id
        """
        categories: Dict[str, str] = {}
        page = 1

        while True:
            response = self._request("GET", "/api/v1/categories", params={"page": page})
            try:
                body = response.json()
            except ValueError as e:
                raise LedgerError(f"Firefly returned invalid JSON: {e}")

            for item in body.get("data", []):
                name = item.get("attributes", {}).get("name")
                if name:
                    categories[name] = str(item.get("id"))

            total_pages = body.get("meta", {}).get("pagination", {}).get("total_pages", 1)
            if page >= total_pages:
                break
            page += 1

        logger.debug(f"Fetched {len(categories)} categories from Firefly")
        return categories

    def assign_category(
        self,
        transaction_id: str,
        transactions: List[Dict[str, Any]],
        category_id: str
    ) -> None:
        """
        Set the category on every split of a transaction and tag it.

        Args:
            transaction_id: Firefly transaction group id
            transactions: Splits as delivered by the webhook
            category_id: Category to assign
        """
        body = {
            "apply_rules": True,
            "fire_webhooks": True,
            "transactions": [self._split_update(split, category_id) for split in transactions],
        }

        self._request("PUT", f"/api/v1/transactions/{transaction_id}", json=body)
        logger.info(f"Assigned category {category_id} to Firefly transaction {transaction_id}")

    def _split_update(self, split: Dict[str, Any], category_id: str) -> Dict[str, Any]:
        tags = list(split.get("tags") or [])
        if self.tag and self.tag not in tags:
            tags.append(self.tag)
        return {
            "transaction_journal_id": split.get("transaction_journal_id"),
            "category_id": category_id,
            "tags": tags,
        }
