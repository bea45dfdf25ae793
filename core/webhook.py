"""
Webhook payload validation.
Checks a ledger change notification and extracts what a job needs.
"""
from typing import Any, Dict

from core.exceptions import ValidationError
from core.normalize import normalize_description
from core.schema import TransactionRequest

EXPECTED_TRIGGER = "UPDATE_TRANSACTION"
EXPECTED_RESPONSE = "TRANSACTIONS"
SUPPORTED_TYPES = ("withdrawal", "deposit")


def validate_webhook(payload: Any) -> TransactionRequest:
    """
    Validate a webhook payload, failing on the first violated rule.

    Args:
        payload: Decoded JSON body of the webhook request

    Returns:
        TransactionRequest with a normalized description

    Raises:
        ValidationError: If the payload is malformed or the transaction is not eligible
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object", rule="body")

    if payload.get("trigger") != EXPECTED_TRIGGER:
        raise ValidationError(
            f"trigger is not {EXPECTED_TRIGGER}. Request will not be processed",
            rule="trigger",
            details={"trigger": payload.get("trigger")}
        )

    if payload.get("response") != EXPECTED_RESPONSE:
        raise ValidationError(
            f"response is not {EXPECTED_RESPONSE}. Request will not be processed",
            rule="response",
            details={"response": payload.get("response")}
        )

    content = payload.get("content")
    if not isinstance(content, dict):
        content = {}

    transactions = content.get("transactions")
    if not isinstance(transactions, list) or not transactions:
        raise ValidationError(
            "No transactions are available in content.transactions",
            rule="transactions"
        )

    if not content.get("id"):
        raise ValidationError("Missing content.id", rule="content_id")

    first: Dict[str, Any] = transactions[0] if isinstance(transactions[0], dict) else {}

    if first.get("type") not in SUPPORTED_TYPES:
        raise ValidationError(
            "content.transactions[0].type must be 'withdrawal' or 'deposit'. Transaction will be ignored.",
            rule="type",
            details={"type": first.get("type")}
        )

    if first.get("category_id") is not None:
        raise ValidationError(
            "content.transactions[0].category_id is already set. Transaction will be ignored.",
            rule="category_id",
            details={"category_id": first.get("category_id")}
        )

    if not first.get("description"):
        raise ValidationError("Missing content.transactions[0].description", rule="description")

    if not first.get("destination_name"):
        raise ValidationError("Missing content.transactions[0].destination_name", rule="destination_name")

    return TransactionRequest(
        destination_name=str(first["destination_name"]),
        description=normalize_description(str(first["description"])),
        transaction_id=str(content["id"]),
        transactions=transactions,
    )
