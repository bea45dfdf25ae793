"""
Shared fixtures: settings, webhook payloads and in-process collaborators.
"""
import time
from datetime import datetime, timedelta, timezone

import pytest

from core.config import Settings, reset_settings
from core.schema import ClassificationResult
from llm.prompts import build_prompt


class FakeLedger:
    """Stands in for Firefly: a fixed catalog and a record of assignments."""

    def __init__(self, categories=None):
        self.categories = categories if categories is not None else {
            "Food & Drink": "1",
            "Groceries": "2",
            "Transport": "3",
        }
        self.assigned = []
        self.catalog_error = None
        self.assign_error = None

    def get_categories(self):
        if self.catalog_error:
            raise self.catalog_error
        return dict(self.categories)

    def assign_category(self, transaction_id, transactions, category_id):
        if self.assign_error:
            raise self.assign_error
        self.assigned.append((transaction_id, transactions, category_id))


class FakeClassifier:
    """Returns a preset answer; the answer counts only if it is in the catalog."""

    def __init__(self, answer="Food & Drink"):
        self.answer = answer
        self.error = None
        self.delay = 0.0
        self.calls = []

    def classify(self, categories, destination_name, description):
        self.calls.append((list(categories), destination_name, description))
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        prompt = build_prompt(categories, destination_name, description)
        response = self.answer or ""
        category = response if response in categories else None
        return ClassificationResult(category=category, prompt=prompt, response=response)


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    return Settings(
        FIREFLY_URL="http://firefly.test/",
        FIREFLY_PERSONAL_TOKEN="firefly-token",
        OPENAI_API_KEY="test-key",
        OPENAI_BASE_URL="http://openai.test/v1",
        JOB_TIMEOUT_SECONDS=5,
    )


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def webhook_payload():
    """Factory for Firefly UPDATE_TRANSACTION webhook bodies."""

    def make(
        description="PAGAMENTO POS CRV* COFFEE SHOP",
        destination_name="Coffee Shop",
        trigger="UPDATE_TRANSACTION",
        response="TRANSACTIONS",
        type="withdrawal",
        category_id=None,
        transaction_id=42,
    ):
        return {
            "trigger": trigger,
            "response": response,
            "content": {
                "id": transaction_id,
                "transactions": [
                    {
                        "type": type,
                        "category_id": category_id,
                        "description": description,
                        "destination_name": destination_name,
                        "transaction_journal_id": 101,
                        "tags": ["card"],
                    }
                ],
            },
        }

    return make
