"""Create (or upgrade in place) the sqlite audit ledger named in config.yaml / DATABASE_PATH."""
import sqlite3
from pathlib import Path

from rich.console import Console

from buyback_bot.core.config import load_config
from buyback_bot.ledger.schema import initialize_database

console = Console()


def main() -> None:
    db_path = Path(load_config().bot.database_path)
    console.print(f"🗄️ Ledger: {db_path.absolute()}")
    initialize_database(db_path)

    conn = sqlite3.connect(db_path)
    try:
        for (table,) in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        ):
            rows = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            console.print(f"  ✓ {table} ({rows} rows)")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
