"""SQLite access to Stacks databases (one file per database name)."""
import logging
import re
import sqlite3
from pathlib import Path

from app import config
from app.models import ObservedGenotype

logger = logging.getLogger(__name__)

DB_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")

_conns: dict[str, sqlite3.Connection] = {}


class DataSourceUnavailable(Exception):
    """The requested database cannot be opened or queried."""


def db_path(database: str) -> Path:
    if not database or not DB_NAME_RE.match(database):
        raise DataSourceUnavailable(f"Invalid database name: {database!r}")
    return Path(config.DB_DIR) / f"{database}.db"


def _connect(path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    return conn


def get_db(database: str) -> sqlite3.Connection:
    """Return the cached connection for an existing database."""
    conn = _conns.get(database)
    if conn is not None:
        return conn
    path = db_path(database)
    if not path.exists():
        raise DataSourceUnavailable(f"Database '{database}' not found")
    try:
        conn = _connect(path)
    except sqlite3.Error as e:
        logger.error("Cannot open database %s: %s", path, e)
        raise DataSourceUnavailable(f"Database '{database}' unavailable") from e
    _conns[database] = conn
    return conn


def close_all():
    for conn in _conns.values():
        conn.close()
    _conns.clear()


def _get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version, 0 if table doesn't exist."""
    try:
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] or 0
    except sqlite3.OperationalError:
        return 0


def _run_migrations(conn: sqlite3.Connection):
    """Run incremental migrations based on schema_version."""
    current = _get_schema_version(conn)

    if current < 1:
        # Migration 1: older databases lack the genotype count used by export filters
        cols = [r[1] for r in conn.execute("PRAGMA table_info(catalog_index)").fetchall()]
        if "genotypes" not in cols:
            conn.execute("ALTER TABLE catalog_index ADD COLUMN genotypes INTEGER NOT NULL DEFAULT 0")
        conn.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (1)")

    conn.commit()


def init_db(database: str) -> sqlite3.Connection:
    """Create the database file if needed and bring its schema up to date."""
    path = db_path(database)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = _conns.get(database)
    if conn is None:
        conn = _connect(path)
        _conns[database] = conn
    schema_path = Path(__file__).parent / "db_schema.sql"
    conn.executescript(schema_path.read_text())
    _run_migrations(conn)
    conn.commit()
    return conn


def _query(database: str, sql: str, params=()) -> list[sqlite3.Row]:
    conn = get_db(database)
    try:
        return conn.execute(sql, params).fetchall()
    except sqlite3.Error as e:
        logger.error("Query failed on %s: %s", database, e)
        raise DataSourceUnavailable(f"Database '{database}' query failed: {e}") from e


def count_batch_samples(database: str, batch_id: int) -> int:
    rows = _query(database, "SELECT COUNT(samples.id) AS count FROM samples WHERE batch_id = ?", (batch_id,))
    return rows[0]["count"]


def fetch_locus_genotypes(database: str, batch_id: int, tag_id: int) -> tuple[list[ObservedGenotype], dict[int, str]]:
    """Observed genotypes for one locus, ordered by sample id, plus corrections keyed by sample."""
    rows = _query(
        database,
        """SELECT catalog_genotypes.sample_id, samples.file,
                  catalog_genotypes.genotype, genotype_corrections.genotype AS corrected
           FROM catalog_genotypes
           LEFT JOIN genotype_corrections ON
                (genotype_corrections.catalog_id = catalog_genotypes.catalog_id AND
                 genotype_corrections.sample_id = catalog_genotypes.sample_id AND
                 genotype_corrections.batch_id = catalog_genotypes.batch_id)
           JOIN samples ON (catalog_genotypes.sample_id = samples.id)
           WHERE catalog_genotypes.batch_id = ? AND catalog_genotypes.catalog_id = ?
           ORDER BY catalog_genotypes.sample_id""",
        (batch_id, tag_id),
    )
    observed = [
        ObservedGenotype(sample_id=r["sample_id"], genotype=r["genotype"] or "", file=r["file"] or "")
        for r in rows
    ]
    corrections = {r["sample_id"]: r["corrected"] for r in rows if r["corrected"]}
    return observed, corrections


def apply_corrections(database: str, batch_id: int, tag_id: int, upserts: dict[int, str], deletes: list[int]):
    """Write and remove corrections for a locus in one transaction."""
    if not upserts and not deletes:
        return
    conn = get_db(database)
    try:
        if deletes:
            placeholders = ",".join("?" * len(deletes))
            conn.execute(
                f"DELETE FROM genotype_corrections WHERE batch_id = ? AND catalog_id = ? AND sample_id IN ({placeholders})",
                [batch_id, tag_id, *deletes],
            )
        if upserts:
            conn.executemany(
                """INSERT INTO genotype_corrections (batch_id, catalog_id, sample_id, genotype)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT (batch_id, catalog_id, sample_id) DO UPDATE SET genotype = excluded.genotype""",
                [(batch_id, tag_id, sid, code) for sid, code in upserts.items()],
            )
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise DataSourceUnavailable(f"Database '{database}' write failed: {e}") from e
    logger.info(
        "Saved %d and removed %d correction(s) for batch %s locus %s in %s",
        len(upserts), len(deletes), batch_id, tag_id, database,
    )


def delete_corrections(database: str, batch_id: int, tag_id: int):
    """Delete every correction for a locus."""
    conn = get_db(database)
    try:
        cur = conn.execute(
            "DELETE FROM genotype_corrections WHERE batch_id = ? AND catalog_id = ?",
            (batch_id, tag_id),
        )
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise DataSourceUnavailable(f"Database '{database}' write failed: {e}") from e
    logger.info("Removed %d correction(s) for batch %s locus %s in %s", cur.rowcount, batch_id, tag_id, database)


def count_loci(database: str, batch_id: int, conditions: list[tuple[str, object]]) -> int:
    """Count catalog loci of a batch matching (sql_fragment, value) conditions."""
    where = ["batch_id = ?"]
    params: list = [batch_id]
    for fragment, value in conditions:
        where.append(fragment)
        params.append(value)
    rows = _query(database, f"SELECT COUNT(*) AS count FROM catalog_index WHERE {' AND '.join(where)}", params)
    return rows[0]["count"]
