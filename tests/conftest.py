"""
Shared fixtures.

Every test starts with fresh settings and no LLM client singleton, and with
OPENAI_API_KEY removed so nothing can reach a real model.
"""
import pytest

from core.config import reset_settings
from core.schema import Transaction
from llm.client import reset_client

STATEMENT_CSV = (
    b"date,narration,withdrawal_amount,deposit_amount,closing_balance\n"
    b"01/01/24,Coffee Shop,150,,5000\n"
    b"02/01/24,Salary January,,85000,90000\n"
    b"03/01/24,Uber Trip,320.50,,89679.50\n"
)


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    reset_settings()
    reset_client()
    yield
    reset_settings()
    reset_client()


@pytest.fixture
def statement_csv() -> bytes:
    return STATEMENT_CSV


@pytest.fixture
def make_transaction():
    """Factory for transactions with sensible defaults."""
    counter = [0]

    def _make(**overrides) -> Transaction:
        counter[0] += 1
        data = {
            "id": f"txn-{counter[0]}",
            "date": "01/01/24",
            "narration": f"Transaction {counter[0]}",
            "amount": 100.0,
            "type": "withdrawal",
            "closing_balance": 1000.0,
        }
        data.update(overrides)
        return Transaction(**data)

    return _make


class StubClient:
    """Stands in for LLMClient; records calls and returns a fixed payload or raises."""

    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    def call_with_structured_output(self, system_prompt, user_message, response_schema, temperature=None):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_message": user_message,
            "response_schema": response_schema,
        })
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def stub_client_factory():
    return StubClient
