import sqlite3
from pathlib import Path

SCHEMA_VERSION = 1

CREATE_CYCLES_TABLE = """
CREATE TABLE IF NOT EXISTS cycles (
    cycle_id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp REAL NOT NULL,
    status TEXT NOT NULL CHECK(status IN ('running', 'success', 'error')),
    outcome TEXT,
    fees_claimed REAL,
    buyback_amount REAL,
    error_message TEXT,
    execution_time_ms REAL
);
"""

CREATE_FEE_COLLECTIONS_TABLE = """
CREATE TABLE IF NOT EXISTS fee_collections (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cycle_id INTEGER NOT NULL,
    timestamp REAL NOT NULL,
    success INTEGER NOT NULL,
    total_claimed REAL NOT NULL,
    total_claimed_usd REAL NOT NULL,
    transactions_json TEXT,
    errors_json TEXT,
    FOREIGN KEY (cycle_id) REFERENCES cycles(cycle_id)
);
"""

CREATE_ADVICE_TABLE = """
CREATE TABLE IF NOT EXISTS advice (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cycle_id INTEGER NOT NULL,
    timestamp REAL NOT NULL,
    should_buyback INTEGER NOT NULL,
    confidence REAL NOT NULL,
    suggested_amount REAL,
    reasoning TEXT,
    warnings_json TEXT,
    FOREIGN KEY (cycle_id) REFERENCES cycles(cycle_id)
);
"""

CREATE_BUYBACKS_TABLE = """
CREATE TABLE IF NOT EXISTS buybacks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cycle_id INTEGER NOT NULL,
    timestamp REAL NOT NULL,
    success INTEGER NOT NULL,
    input_amount REAL NOT NULL,
    output_amount REAL,
    price_impact TEXT,
    tx_signature TEXT,
    error_message TEXT,
    FOREIGN KEY (cycle_id) REFERENCES cycles(cycle_id)
);
"""

CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_cycles_timestamp ON cycles(timestamp);",
    "CREATE INDEX IF NOT EXISTS idx_fee_collections_cycle ON fee_collections(cycle_id);",
    "CREATE INDEX IF NOT EXISTS idx_advice_cycle ON advice(cycle_id);",
    "CREATE INDEX IF NOT EXISTS idx_buybacks_cycle ON buybacks(cycle_id);",
    "CREATE INDEX IF NOT EXISTS idx_buybacks_timestamp ON buybacks(timestamp);",
]

def initialize_database(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    cursor.execute(CREATE_CYCLES_TABLE)
    cursor.execute(CREATE_FEE_COLLECTIONS_TABLE)
    cursor.execute(CREATE_ADVICE_TABLE)
    cursor.execute(CREATE_BUYBACKS_TABLE)

    for sql in CREATE_INDICES:
        cursor.execute(sql)

    conn.commit()
    conn.close()
