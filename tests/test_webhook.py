"""
Tests for webhook validation.
"""
import pytest

from core.exceptions import ValidationError
from core.webhook import validate_webhook


def test_valid_payload_is_extracted(webhook_payload):
    request = validate_webhook(webhook_payload())

    assert request.destination_name == "Coffee Shop"
    assert request.description == "COFFEE SHOP"
    assert request.transaction_id == "42"
    assert request.transactions[0]["transaction_journal_id"] == 101
    assert request.to_job_data() == {
        "destinationName": "Coffee Shop",
        "description": "COFFEE SHOP",
        "transactionId": "42",
        "transactions": request.transactions,
    }


def test_deposit_is_accepted(webhook_payload):
    assert validate_webhook(webhook_payload(type="deposit")).destination_name == "Coffee Shop"


@pytest.mark.parametrize(
    "overrides, rule",
    [
        ({"trigger": "OTHER"}, "trigger"),
        ({"response": "ACCOUNTS"}, "response"),
        ({"type": "transfer"}, "type"),
        ({"category_id": 7}, "category_id"),
        ({"description": ""}, "description"),
        ({"destination_name": None}, "destination_name"),
    ],
)
def test_rule_violations(webhook_payload, overrides, rule):
    with pytest.raises(ValidationError) as exc_info:
        validate_webhook(webhook_payload(**overrides))
    assert exc_info.value.rule == rule


def test_first_violation_wins(webhook_payload):
    payload = webhook_payload(trigger="OTHER", response="OTHER", type="transfer")
    with pytest.raises(ValidationError) as exc_info:
        validate_webhook(payload)
    assert exc_info.value.rule == "trigger"
    assert "UPDATE_TRANSACTION" in exc_info.value.message


def test_empty_transaction_list(webhook_payload):
    payload = webhook_payload()
    payload["content"]["transactions"] = []
    with pytest.raises(ValidationError) as exc_info:
        validate_webhook(payload)
    assert exc_info.value.rule == "transactions"


def test_missing_content(webhook_payload):
    payload = webhook_payload()
    del payload["content"]
    with pytest.raises(ValidationError) as exc_info:
        validate_webhook(payload)
    assert exc_info.value.rule == "transactions"


def test_missing_content_id(webhook_payload):
    payload = webhook_payload(transaction_id=None)
    with pytest.raises(ValidationError) as exc_info:
        validate_webhook(payload)
    assert exc_info.value.rule == "content_id"


def test_non_object_body():
    with pytest.raises(ValidationError) as exc_info:
        validate_webhook(["not", "a", "dict"])
    assert exc_info.value.rule == "body"


def test_description_may_normalize_to_empty(webhook_payload):
    request = validate_webhook(webhook_payload(description="PAGAMENTO POS CRV*"))
    assert request.description == ""
