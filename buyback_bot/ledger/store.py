import json
import sqlite3
from pathlib import Path
from typing import Optional, List, Dict, Any
from datetime import datetime

from buyback_bot.core.types import BuybackAdvice, BuybackResult, FeeCollectionResult


class Store:
    """Append-only audit ledger of cycles, fee collections, advice and buybacks."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> None:
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def create_cycle(self, timestamp: float, status: str = "running", **kwargs) -> int:
        cursor = self._conn.cursor()
        cursor.execute(
            """INSERT INTO cycles (timestamp, status, outcome, fees_claimed,
               buyback_amount, error_message, execution_time_ms)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                timestamp,
                status,
                kwargs.get("outcome"),
                kwargs.get("fees_claimed", 0.0),
                kwargs.get("buyback_amount", 0.0),
                kwargs.get("error_message"),
                kwargs.get("execution_time_ms"),
            ),
        )
        self._conn.commit()
        return cursor.lastrowid

    def update_cycle(self, cycle_id: int, **kwargs) -> None:
        fields = []
        values = []
        for key, value in kwargs.items():
            fields.append(f"{key} = ?")
            values.append(value)
        values.append(cycle_id)
        sql = f"UPDATE cycles SET {', '.join(fields)} WHERE cycle_id = ?"
        self._conn.execute(sql, values)
        self._conn.commit()

    def get_cycle(self, cycle_id: int) -> Optional[Dict[str, Any]]:
        row = self._conn.execute(
            "SELECT * FROM cycles WHERE cycle_id = ?", (cycle_id,)
        ).fetchone()
        return dict(row) if row else None

    def record_fee_collection(self, cycle_id: int, result: FeeCollectionResult) -> int:
        cursor = self._conn.cursor()
        cursor.execute(
            """INSERT INTO fee_collections (cycle_id, timestamp, success,
               total_claimed, total_claimed_usd, transactions_json, errors_json)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                cycle_id,
                datetime.now().timestamp(),
                1 if result.success else 0,
                result.total_claimed,
                result.total_claimed_usd,
                json.dumps(result.transactions),
                json.dumps(result.errors),
            ),
        )
        self._conn.commit()
        return cursor.lastrowid

    def record_advice(self, cycle_id: int, advice: BuybackAdvice) -> int:
        cursor = self._conn.cursor()
        cursor.execute(
            """INSERT INTO advice (cycle_id, timestamp, should_buyback, confidence,
               suggested_amount, reasoning, warnings_json)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                cycle_id,
                datetime.now().timestamp(),
                1 if advice.should_buyback else 0,
                advice.confidence,
                advice.suggested_amount,
                advice.reasoning,
                json.dumps(advice.warnings),
            ),
        )
        self._conn.commit()
        return cursor.lastrowid

    def record_buyback(self, cycle_id: int, result: BuybackResult) -> int:
        cursor = self._conn.cursor()
        cursor.execute(
            """INSERT INTO buybacks (cycle_id, timestamp, success, input_amount,
               output_amount, price_impact, tx_signature, error_message)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                cycle_id,
                datetime.now().timestamp(),
                1 if result.success else 0,
                result.input_amount,
                result.output_amount,
                result.price_impact,
                result.transaction,
                result.error,
            ),
        )
        self._conn.commit()
        return cursor.lastrowid

    def get_buybacks(
        self, cycle_id: Optional[int] = None, success_only: bool = False
    ) -> List[Dict[str, Any]]:
        sql = "SELECT * FROM buybacks WHERE 1=1"
        params: list[Any] = []

        if cycle_id is not None:
            sql += " AND cycle_id = ?"
            params.append(cycle_id)
        if success_only:
            sql += " AND success = 1"

        sql += " ORDER BY timestamp DESC"
        cursor = self._conn.execute(sql, params)
        return [dict(row) for row in cursor.fetchall()]

    def get_fee_collections(self, cycle_id: Optional[int] = None) -> List[Dict[str, Any]]:
        sql = "SELECT * FROM fee_collections"
        params: list[Any] = []
        if cycle_id is not None:
            sql += " WHERE cycle_id = ?"
            params.append(cycle_id)
        sql += " ORDER BY timestamp DESC"
        cursor = self._conn.execute(sql, params)
        return [dict(row) for row in cursor.fetchall()]
