# ebay_research/storage/snapshot_store.py

"""SQLite-backed catalog and append-only snapshot log."""

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from typing import cast

from ebay_research.analysis.change import percent_change
from ebay_research.analysis.rounding import round_half_up
from ebay_research.config.settings import Settings
from ebay_research.errors import OutOfOrderSnapshotError, UnknownProductError
from ebay_research.models.product import Product
from ebay_research.models.snapshot import (
    Measurement,
    PriceChange,
    Snapshot,
    SnapshotDiff,
)

logger = logging.getLogger("ebay_research.snapshot_store")

SCHEMA_VERSION = 1

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    row_number   INTEGER NOT NULL UNIQUE,
    no           TEXT    NOT NULL DEFAULT '',
    category     TEXT    NOT NULL DEFAULT '',
    maker        TEXT    NOT NULL DEFAULT '',
    product_name TEXT    NOT NULL,
    active_url   TEXT    NOT NULL DEFAULT '',
    sold_url     TEXT    NOT NULL DEFAULT '',
    created_at   TEXT    NOT NULL,
    updated_at   TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_products_maker ON products(maker);
CREATE INDEX IF NOT EXISTS idx_products_category ON products(category);

CREATE TABLE IF NOT EXISTS snapshots (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id    INTEGER NOT NULL
                  REFERENCES products(id) ON DELETE CASCADE,
    active_count  INTEGER,
    sold_count    INTEGER,
    balance       REAL,
    avg_price_usd REAL,
    avg_price_jpy INTEGER,
    min_price_usd REAL,
    max_price_usd REAL,
    recorded_at   TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_snapshots_product_date
    ON snapshots(product_id, recorded_at);
CREATE INDEX IF NOT EXISTS idx_snapshots_date
    ON snapshots(recorded_at);
"""

_PRODUCT_COLUMNS = (
    "id, row_number, no, category, maker, product_name, "
    "active_url, sold_url, created_at, updated_at"
)

_SNAPSHOT_COLUMNS = (
    "id, product_id, active_count, sold_count, balance, "
    "avg_price_usd, avg_price_jpy, min_price_usd, max_price_usd, "
    "recorded_at"
)


def _ts(moment: datetime) -> str:
    """Fixed-width ISO timestamp so TEXT ordering matches time ordering."""
    return moment.isoformat(timespec="microseconds")


def _row_to_product(row: tuple) -> Product:
    return Product(
        id=row[0],
        row_number=row[1],
        no=row[2],
        category=row[3],
        maker=row[4],
        product_name=row[5],
        active_url=row[6],
        sold_url=row[7],
        created_at=datetime.fromisoformat(row[8]),
        updated_at=datetime.fromisoformat(row[9]),
    )


def _row_to_snapshot(row: tuple) -> Snapshot:
    return Snapshot(
        id=row[0],
        product_id=row[1],
        active_count=row[2],
        sold_count=row[3],
        balance=row[4],
        avg_price_usd=row[5],
        avg_price_jpy=row[6],
        min_price_usd=row[7],
        max_price_usd=row[8],
        recorded_at=datetime.fromisoformat(row[9]),
    )


def diff_snapshots(
    newer: Snapshot, older: Snapshot | None,
) -> SnapshotDiff | None:
    """Change from *older* to *newer*; missing counts count as zero."""
    if older is None:
        return None
    return SnapshotDiff(
        balance_change=percent_change(older.balance, newer.balance),
        price_change=percent_change(
            older.avg_price_usd, newer.avg_price_usd
        ),
        active_count_change=(
            (newer.active_count or 0) - (older.active_count or 0)
        ),
        sold_count_change=(
            (newer.sold_count or 0) - (older.sold_count or 0)
        ),
    )


class SnapshotStore:
    """SQLite store for catalog products and their snapshot history.

    Snapshots are only ever inserted; there is no update or delete path
    for them.  ``clock`` supplies "now" for recording and for day windows.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        path = db_path or Settings.DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self.migrate()
        logger.debug("SnapshotStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def migrate(self) -> int:
        """Create tables if needed and return the schema version."""
        self._conn.executescript(_SCHEMA)
        self._conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
        self._conn.commit()
        return self.schema_version()

    def schema_version(self) -> int:
        row = self._conn.execute("PRAGMA user_version").fetchone()
        return int(row[0]) if row else 0

    # ── Catalog ──────────────────────────────────────────

    def sync_product(self, product: Product) -> Product:
        """Insert or update a product keyed on its row number."""
        now = _ts(self._clock())
        self._conn.execute(
            "INSERT INTO products (row_number, no, category, maker, "
            "    product_name, active_url, sold_url, "
            "    created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(row_number) DO UPDATE SET "
            "    no=excluded.no, "
            "    category=excluded.category, "
            "    maker=excluded.maker, "
            "    product_name=excluded.product_name, "
            "    active_url=excluded.active_url, "
            "    sold_url=excluded.sold_url, "
            "    updated_at=excluded.updated_at",
            (
                product.row_number,
                product.no,
                product.category,
                product.maker,
                product.product_name,
                product.active_url,
                product.sold_url,
                now,
                now,
            ),
        )
        self._conn.commit()
        return cast(Product, self.get_product_by_row(product.row_number))

    def get_product(self, product_id: int) -> Product | None:
        row = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = ?",
            (product_id,),
        ).fetchone()
        return _row_to_product(row) if row else None

    def get_product_by_row(self, row_number: int) -> Product | None:
        row = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products "
            "WHERE row_number = ?",
            (row_number,),
        ).fetchone()
        return _row_to_product(row) if row else None

    def all_products(self) -> list[Product]:
        """Every product, in sheet row order."""
        rows = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products "
            "ORDER BY row_number",
        ).fetchall()
        return [_row_to_product(r) for r in rows]

    def search_by_name(self, name: str) -> list[Product]:
        """Case-insensitive substring match on the product name."""
        rows = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products "
            "WHERE product_name LIKE ? ORDER BY row_number",
            (f"%{name}%",),
        ).fetchall()
        return [_row_to_product(r) for r in rows]

    def by_maker(self, maker: str) -> list[Product]:
        rows = self._conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products "
            "WHERE maker = ? COLLATE NOCASE ORDER BY row_number",
            (maker,),
        ).fetchall()
        return [_row_to_product(r) for r in rows]

    # ── Snapshot log ─────────────────────────────────────

    def record(
        self,
        product_id: int,
        measurement: Measurement,
        recorded_at: datetime | None = None,
    ) -> Snapshot:
        """Append one snapshot for *product_id*.

        A product's log only moves forward in time: *recorded_at* may equal
        but never precede its latest snapshot.

        Raises:
            UnknownProductError: if the product does not exist.
            OutOfOrderSnapshotError: if *recorded_at* is older than the
                latest snapshot of the product.
        """
        if self.get_product(product_id) is None:
            raise UnknownProductError(product_id)

        ts = _ts(recorded_at or self._clock())
        latest = self._conn.execute(
            "SELECT MAX(recorded_at) FROM snapshots WHERE product_id = ?",
            (product_id,),
        ).fetchone()[0]
        if latest is not None and ts < latest:
            raise OutOfOrderSnapshotError(product_id, ts, latest)
        cur = self._conn.execute(
            "INSERT INTO snapshots (product_id, active_count, "
            "    sold_count, balance, avg_price_usd, avg_price_jpy, "
            "    min_price_usd, max_price_usd, recorded_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                product_id,
                measurement.active_count,
                measurement.sold_count,
                measurement.balance,
                measurement.avg_price_usd,
                measurement.avg_price_jpy,
                measurement.min_price_usd,
                measurement.max_price_usd,
                ts,
            ),
        )
        self._conn.commit()
        snapshot_id = cur.lastrowid
        logger.debug(
            "Recorded snapshot %s for product %d at %s",
            snapshot_id, product_id, ts,
        )
        return Snapshot(
            id=int(snapshot_id or 0),
            product_id=product_id,
            recorded_at=datetime.fromisoformat(ts),
            active_count=measurement.active_count,
            sold_count=measurement.sold_count,
            balance=measurement.balance,
            avg_price_usd=measurement.avg_price_usd,
            avg_price_jpy=measurement.avg_price_jpy,
            min_price_usd=measurement.min_price_usd,
            max_price_usd=measurement.max_price_usd,
        )

    def since(self, moment: datetime) -> list[Snapshot]:
        """All snapshots recorded at or after *moment*, oldest first."""
        rows = self._conn.execute(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM snapshots "
            "WHERE recorded_at >= ? ORDER BY recorded_at, id",
            (_ts(moment),),
        ).fetchall()
        return [_row_to_snapshot(r) for r in rows]

    def window_start(self, days: float) -> datetime:
        return self._clock() - timedelta(days=days)

    def snapshots_for(
        self, product_id: int, days: float | None = None,
    ) -> list[Snapshot]:
        """A product's snapshots, oldest first, optionally last *days*."""
        query = (
            f"SELECT {_SNAPSHOT_COLUMNS} FROM snapshots "
            "WHERE product_id = ?"
        )
        params: tuple[object, ...] = (product_id,)
        if days is not None:
            query += " AND recorded_at >= ?"
            params += (_ts(self.window_start(days)),)
        query += " ORDER BY recorded_at, id"
        rows = self._conn.execute(query, params).fetchall()
        return [_row_to_snapshot(r) for r in rows]

    def latest_snapshot(self, product_id: int) -> Snapshot | None:
        row = self._conn.execute(
            f"SELECT {_SNAPSHOT_COLUMNS} FROM snapshots "
            "WHERE product_id = ? "
            "ORDER BY recorded_at DESC, id DESC LIMIT 1",
            (product_id,),
        ).fetchone()
        return _row_to_snapshot(row) if row else None

    def significant_changes(
        self,
        threshold: float = 0.1,
        days: float = 7,
    ) -> list[PriceChange]:
        """Products whose average price moved by >= *threshold* in *days*.

        Compares the oldest and newest snapshot inside the window.
        Products with fewer than two snapshots there, or a missing or
        non-positive oldest price, are skipped.  Largest moves first.
        """
        snapshots = self.since(self.window_start(days))
        by_product: dict[int, list[Snapshot]] = {}
        for snap in snapshots:
            by_product.setdefault(snap.product_id, []).append(snap)

        results: list[PriceChange] = []
        for product_id, history in by_product.items():
            if len(history) < 2:
                continue
            oldest, newest = history[0], history[-1]
            old_price, new_price = oldest.avg_price_usd, newest.avg_price_usd
            if old_price is None or new_price is None or old_price <= 0:
                continue

            change = (new_price - old_price) / old_price
            if abs(change) < threshold:
                continue

            product = self.get_product(product_id)
            results.append(PriceChange(
                product_id=product_id,
                product_name=product.product_name if product else "",
                old_price=old_price,
                new_price=new_price,
                change_percent=round_half_up(change * 100, 1),
                direction="up" if change > 0 else "down",
            ))

        results.sort(key=lambda r: abs(r.change_percent), reverse=True)
        logger.info(
            "Found %d significant price changes (threshold=%.0f%%, days=%s)",
            len(results), threshold * 100, days,
        )
        return results
