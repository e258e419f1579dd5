"""
Procurement Spend - DuckDB Warehouse Builder

Creates the sample warehouse the dashboard charts query:
- commodities: commodity_id, commodity_description
- vendors: vendor_id, vendor_name, state
- spend_transactions: one row per (commodity, vendor) purchase

Usage:
    python -m backend.chartdata.analytics.build_warehouse

The data is deterministic. Totals per commodity, vendor and state reproduce
the figures of the original procurement dashboard (total spend 515.6M,
Transformers 37.9M = 7.3%, Texas 422.3M = 81.9%).
"""

import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Optional, Union

import duckdb

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent.parent))

from backend.chartdata.config import ensure_data_dirs, settings

# =============================================================================
# SPEND TAXONOMY
# =============================================================================
# All amounts are integer cents so every marginal total is exact.
#
# Commodities: ten named commodities, then a long tail of small ones that
# makes up the rest of the total (each smaller than the tenth named one).
#
# Vendors: five named Texas vendors lead vendor spend; the rest of Texas is
# spread over smaller Texas suppliers. Florida, Ohio, New Jersey and Georgia
# each have one vendor; eleven other states share the remainder, each below
# Georgia.
# =============================================================================

TOTAL_SPEND_CENTS = 51_560_000_000

NAMED_COMMODITIES: list[tuple[str, int]] = [
    ("Transformers", 3_787_748_200),
    ("Watt-Hour Meters", 1_600_821_900),
    ("Asphaltic Concrete", 1_380_782_700),
    ("Switchgears", 1_353_885_800),
    ("Air Tools", 1_343_128_200),
    ("Construction Materials", 850_000_000),
    ("Office Supplies", 520_000_000),
    ("Vehicles", 480_000_000),
    ("IT Equipment", 390_000_000),
    ("Safety Equipment", 210_000_000),
]
TAIL_COMMODITY_COUNT = 200

NAMED_TEXAS_VENDORS: list[tuple[str, int]] = [
    ("Techline", 3_034_331_445),
    ("Sun Coast", 2_970_396_875),
    ("TX Electric", 2_447_396_056),
    ("Oldcastle", 1_286_221_376),
    ("Priester-Mell", 1_263_117_743),
]
TEXAS_TOTAL_CENTS = 42_232_884_938
TEXAS_SUPPLIER_COUNT = 26

STATE_VENDORS: list[tuple[str, str, int]] = [
    ("Sunshine Grid Services", "Florida", 958_066_301),
    ("Buckeye Industrial", "Ohio", 745_023_090),
    ("Garden State Electric", "New Jersey", 663_531_389),
    ("Peachtree Materials", "Georgia", 627_621_445),
]
OTHER_STATES = [
    "Louisiana",
    "Oklahoma",
    "California",
    "Arizona",
    "Colorado",
    "Illinois",
    "Pennsylvania",
    "North Carolina",
    "Tennessee",
    "Missouri",
    "New Mexico",
]

FIRST_TRANSACTION_DATE = date(2024, 1, 1)


def split_cents(total: int, parts: int) -> list[int]:
    """Split an amount into near-equal integer parts that sum exactly to total."""
    base, remainder = divmod(total, parts)
    return [base + (1 if i < remainder else 0) for i in range(parts)]


def commodity_totals() -> list[tuple[str, int]]:
    """Commodity descriptions with their total spend, largest first."""
    tail_total = TOTAL_SPEND_CENTS - sum(cents for _, cents in NAMED_COMMODITIES)
    tail = [
        (f"Miscellaneous Commodity {i + 1:03d}", cents)
        for i, cents in enumerate(split_cents(tail_total, TAIL_COMMODITY_COUNT))
    ]
    return NAMED_COMMODITIES + tail


def vendor_totals() -> list[tuple[str, str, int]]:
    """Vendor names with their state and total spend."""
    vendors = [(name, "Texas", cents) for name, cents in NAMED_TEXAS_VENDORS]

    texas_rest = TEXAS_TOTAL_CENTS - sum(cents for _, cents in NAMED_TEXAS_VENDORS)
    vendors += [
        (f"Lone Star Supply {i + 1:02d}", "Texas", cents)
        for i, cents in enumerate(split_cents(texas_rest, TEXAS_SUPPLIER_COUNT))
    ]
    vendors += STATE_VENDORS

    other_total = TOTAL_SPEND_CENTS - sum(cents for _, _, cents in vendors)
    vendors += [
        (f"{state} Contractors", state, cents)
        for state, cents in zip(OTHER_STATES, split_cents(other_total, len(OTHER_STATES)))
    ]
    return vendors


def allocate_transactions(
    commodities: list[int],
    vendors: list[int],
) -> list[tuple[int, int, int]]:
    """
    Allocate spend to (commodity index, vendor index, cents) cells.

    Walks both lists in order (north-west corner rule) so that every
    commodity total and every vendor total is matched exactly.
    """
    if sum(commodities) != sum(vendors):
        raise ValueError("commodity and vendor totals must match")

    cells = []
    c, v = 0, 0
    c_left, v_left = commodities[0], vendors[0]
    while c < len(commodities) and v < len(vendors):
        amount = min(c_left, v_left)
        if amount > 0:
            cells.append((c, v, amount))
        c_left -= amount
        v_left -= amount
        if c_left == 0:
            c += 1
            c_left = commodities[c] if c < len(commodities) else 0
        if v_left == 0:
            v += 1
            v_left = vendors[v] if v < len(vendors) else 0
    return cells


def create_connection(path: Optional[Union[str, Path]] = None) -> duckdb.DuckDBPyConnection:
    """Create or open the warehouse DuckDB file."""
    target = Path(path) if path is not None else settings.duckdb_path
    ensure_data_dirs(target)
    return duckdb.connect(str(target))


def build_tables(con: duckdb.DuckDBPyConnection) -> None:
    """(Re)create and populate commodities, vendors and spend_transactions."""
    commodities = commodity_totals()
    vendors = vendor_totals()

    for table in ("spend_transactions", "commodities", "vendors"):
        con.execute(f"DROP TABLE IF EXISTS {table}")

    con.execute("""
        CREATE TABLE commodities (
            commodity_id INTEGER PRIMARY KEY,
            commodity_description VARCHAR
        )
    """)
    con.execute("""
        CREATE TABLE vendors (
            vendor_id INTEGER PRIMARY KEY,
            vendor_name VARCHAR,
            state VARCHAR
        )
    """)
    con.execute("""
        CREATE TABLE spend_transactions (
            transaction_id INTEGER PRIMARY KEY,
            commodity_id INTEGER,
            vendor_id INTEGER,
            total_amount DOUBLE,
            transaction_date DATE
        )
    """)

    con.executemany(
        "INSERT INTO commodities VALUES (?, ?)",
        [(i + 1, name) for i, (name, _) in enumerate(commodities)],
    )
    con.executemany(
        "INSERT INTO vendors VALUES (?, ?, ?)",
        [(i + 1, name, state) for i, (name, state, _) in enumerate(vendors)],
    )

    cells = allocate_transactions(
        [cents for _, cents in commodities],
        [cents for _, _, cents in vendors],
    )
    con.executemany(
        "INSERT INTO spend_transactions VALUES (?, ?, ?, ?, ?)",
        [
            (
                i + 1,
                c + 1,
                v + 1,
                cents / 100,
                FIRST_TRANSACTION_DATE + timedelta(days=(i * 7) % 366),
            )
            for i, (c, v, cents) in enumerate(cells)
        ],
    )


def summarize(con: duckdb.DuckDBPyConnection) -> None:
    """Print table sizes and the headline totals."""
    print("\nTable row counts:")
    for table in ("commodities", "vendors", "spend_transactions"):
        count = con.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        print(f"  {table}: {count:,}")

    total = con.execute("SELECT SUM(total_amount) FROM spend_transactions").fetchone()[0]
    print(f"\nTotal spend: ${total:,.2f}")

    print("\nSpend by state (top 5):")
    rows = con.execute("""
        SELECT v.state, SUM(t.total_amount) AS spend
        FROM spend_transactions t
        JOIN vendors v ON t.vendor_id = v.vendor_id
        GROUP BY v.state
        ORDER BY spend DESC
        LIMIT 5
    """).fetchall()
    for state, spend in rows:
        print(f"  {state}: ${spend:,.2f} ({spend * 100 / total:.1f}%)")


def build_warehouse(path: Optional[Union[str, Path]] = None) -> Path:
    """Build the sample warehouse at path (default: configured DuckDB path)."""
    target = Path(path) if path is not None else settings.duckdb_path
    con = create_connection(target)
    try:
        build_tables(con)
    finally:
        con.close()
    return target


def main():
    """Main entry point for building the procurement warehouse."""
    print("=" * 60)
    print("Procurement Spend - DuckDB Warehouse Builder")
    print("=" * 60)
    print(f"\nDuckDB path: {settings.duckdb_path}")

    build_warehouse()

    con = duckdb.connect(str(settings.duckdb_path), read_only=True)
    try:
        summarize(con)
    finally:
        con.close()

    print("\n" + "=" * 60)
    print("Warehouse ready")
    print("=" * 60)


if __name__ == "__main__":
    main()
