import sqlite3
from pathlib import Path

from buyback_bot.core.types import BuybackAdvice, BuybackResult, FeeCollectionResult
from buyback_bot.ledger.schema import initialize_database
from buyback_bot.ledger.store import Store


def test_schema_creation(temp_db: Path) -> None:
    conn = sqlite3.connect(temp_db)
    cursor = conn.cursor()
    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    tables = {row[0] for row in cursor.fetchall()}
    assert {"cycles", "fee_collections", "advice", "buybacks"}.issubset(tables)
    conn.close()


def test_initialize_database_is_idempotent(temp_db: Path) -> None:
    with Store(temp_db) as store:
        cycle_id = store.create_cycle(1234567890.0)

    initialize_database(temp_db)

    with Store(temp_db) as store:
        assert store.get_cycle(cycle_id) is not None


def test_store_cycle_lifecycle(temp_db: Path) -> None:
    with Store(temp_db) as store:
        cycle_id = store.create_cycle(1234567890.0)
        assert cycle_id > 0
        assert store.get_cycle(cycle_id)["status"] == "running"

        store.update_cycle(cycle_id, status="error", outcome="error", error_message="rpc down")
        row = store.get_cycle(cycle_id)
        assert row["status"] == "error"
        assert row["error_message"] == "rpc down"


def test_record_fee_collection_and_advice(temp_db: Path) -> None:
    with Store(temp_db) as store:
        cycle_id = store.create_cycle(1234567890.0)
        store.record_fee_collection(
            cycle_id,
            FeeCollectionResult(total_claimed=0.3, transactions=["sig-1"], errors=["claim failed"]),
        )
        advice_id = store.record_advice(
            cycle_id,
            BuybackAdvice(should_buyback=False, confidence=40, reasoning="wait", warnings=["low volume"]),
        )

        collections = store.get_fee_collections(cycle_id)
        advice = store._conn.execute(
            "SELECT should_buyback, warnings_json FROM advice WHERE id = ?", (advice_id,)
        ).fetchone()

    assert collections[0]["total_claimed"] == 0.3
    assert collections[0]["transactions_json"] == '["sig-1"]'
    assert advice["should_buyback"] == 0
    assert advice["warnings_json"] == '["low volume"]'


def test_get_buybacks_filters_successes(temp_db: Path) -> None:
    with Store(temp_db) as store:
        cycle_id = store.create_cycle(1234567890.0)
        store.record_buyback(cycle_id, BuybackResult(input_amount=0.2, error="no route"))
        store.record_buyback(
            cycle_id,
            BuybackResult(success=True, input_amount=0.2, output_amount=900.0, price_impact="0.1", transaction="sig"),
        )

        all_rows = store.get_buybacks(cycle_id)
        successes = store.get_buybacks(success_only=True)

    assert len(all_rows) == 2
    assert [row["tx_signature"] for row in successes] == ["sig"]
