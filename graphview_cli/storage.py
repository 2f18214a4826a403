"""Local graph databases that neighbour fetches are answered from.

Architecture:
- **DatabaseManager** keeps one directory per named database under
  ``MEMORY_DIR`` and remembers which one is active.
- **GraphStore** holds raw node / relationship payloads in SQLite and answers
  the lookups an expansion needs (node by id, relationships incident to a
  node).

Payloads are stored in the driver wire shape understood by
:mod:`graphview_cli.mapper`.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from . import config
from .config import ensure_base_dirs

logger = logging.getLogger(__name__)

_DB_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def validate_database_name(name: str) -> str:
    """Return *name* if it is usable as a database directory, else raise ``ValueError``."""
    if not _DB_NAME_RE.match(name or ""):
        raise ValueError(
            f"Invalid database name {name!r}: use letters, digits, '_', '-' or '.', "
            "starting with a letter or digit"
        )
    return name


# ===================================================================
# DatabaseManager  (named databases / active database)
# ===================================================================

class DatabaseManager:
    """Manage database directories and the active database."""

    def __init__(self) -> None:
        ensure_base_dirs()

    def list_databases(self) -> List[str]:
        if not config.MEMORY_DIR.exists():
            return []
        return sorted(p.name for p in config.MEMORY_DIR.iterdir() if (p / "graph.db").exists())

    def database_dir(self, name: str) -> Path:
        return config.MEMORY_DIR / validate_database_name(name)

    def exists(self, name: str) -> bool:
        return name in self.list_databases()

    def open_store(self, name: str) -> "GraphStore":
        """Open (creating if needed) the SQLite store of database *name*."""
        path = self.database_dir(name)
        path.mkdir(parents=True, exist_ok=True)
        return GraphStore(path)

    def _write_state(self, current: Optional[str]) -> None:
        ensure_base_dirs()
        config.STATE_FILE.write_text(
            json.dumps({"current_database": current}, indent=2),
            encoding="utf-8",
        )

    def set_current(self, name: str) -> None:
        if not self.exists(name):
            raise ValueError(f"Database '{name}' not found")
        self._write_state(name)

    def get_current(self) -> Optional[str]:
        if not config.STATE_FILE.exists():
            return None
        try:
            payload = json.loads(config.STATE_FILE.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable state file %s", config.STATE_FILE)
            return None
        return payload.get("current_database")

    def unload(self) -> None:
        self._write_state(None)

    def delete(self, name: str) -> bool:
        if not self.exists(name):
            return False
        shutil.rmtree(self.database_dir(name))
        if self.get_current() == name:
            self.unload()
        logger.info("Deleted database %s", name)
        return True


# ===================================================================
# GraphStore  (SQLite)
# ===================================================================

def _check_payload(payload: Mapping[str, Any]) -> None:
    if not isinstance(payload, Mapping):
        raise ValueError("Graph payload must be an object with 'nodes' and 'relationships'")
    for key in ("nodes", "relationships"):
        if not isinstance(payload.get(key, []), list):
            raise ValueError(f"'{key}' must be a list")
    for raw in payload.get("nodes", []):
        if not isinstance(raw, Mapping):
            raise ValueError(f"Node payload must be an object: {raw!r}")
        if "id" not in raw:
            raise ValueError(f"Node payload without 'id': {raw!r}")
        if not isinstance(raw.get("labels") or [], list):
            raise ValueError(f"Node labels must be a list: {raw!r}")
        if not isinstance(raw.get("properties") or {}, Mapping):
            raise ValueError(f"Node properties must be an object: {raw!r}")
    for raw in payload.get("relationships", []):
        if not isinstance(raw, Mapping):
            raise ValueError(f"Relationship payload must be an object: {raw!r}")
        missing = {"id", "startNodeId", "endNodeId", "type"} - set(raw)
        if missing:
            raise ValueError(f"Relationship payload missing {sorted(missing)}: {raw!r}")
        if not isinstance(raw.get("properties") or {}, Mapping):
            raise ValueError(f"Relationship properties must be an object: {raw!r}")


def load_payload_file(path: Path) -> Dict[str, Any]:
    """Read and validate a JSON graph payload; raises ``ValueError`` when malformed."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc
    _check_payload(payload)
    return payload


class GraphStore:
    """SQLite store of raw graph payloads for one database."""

    def __init__(self, db_dir: Path) -> None:
        self.db_dir = db_dir
        self.db_path = db_dir / "graph.db"
        self.meta_path = db_dir / "meta.json"
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def close(self) -> None:
        self.conn.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.execute("""
            CREATE TABLE IF NOT EXISTS nodes (
                node_id    TEXT PRIMARY KEY,
                labels     TEXT NOT NULL,
                properties TEXT NOT NULL
            )
        """)
        cur.execute("""
            CREATE TABLE IF NOT EXISTS relationships (
                rel_id     TEXT PRIMARY KEY,
                src        TEXT NOT NULL,
                dst        TEXT NOT NULL,
                rel_type   TEXT NOT NULL,
                properties TEXT NOT NULL
            )
        """)
        cur.execute("CREATE INDEX IF NOT EXISTS idx_rels_src ON relationships(src)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_rels_dst ON relationships(dst)")
        self.conn.commit()

    # ------------------------------------------------------------------
    # Clear / metadata
    # ------------------------------------------------------------------

    def clear(self) -> None:
        cur = self.conn.cursor()
        cur.execute("DELETE FROM relationships")
        cur.execute("DELETE FROM nodes")
        self.conn.commit()

    def set_metadata(self, payload: Dict[str, Any]) -> None:
        self.meta_path.write_text(
            json.dumps(payload, indent=2), encoding="utf-8",
        )

    def get_metadata(self) -> Dict[str, Any]:
        if not self.meta_path.exists():
            return {}
        try:
            return json.loads(self.meta_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return {}

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_payload(self, payload: Mapping[str, Any], replace: bool = False) -> Dict[str, int]:
        """Insert (or replace) the nodes and relationships of a query result.

        With *replace* the existing rows are deleted in the same transaction,
        so a failed import leaves the database as it was.

        Returns:
            ``{"nodes": n, "relationships": m}`` counts of imported rows.
        """
        _check_payload(payload)
        raw_nodes = list(payload.get("nodes", []))
        raw_rels = list(payload.get("relationships", []))

        try:
            if replace:
                self.conn.execute("DELETE FROM relationships")
                self.conn.execute("DELETE FROM nodes")
            self._insert_rows(raw_nodes, raw_rels)
        except Exception:
            self.conn.rollback()
            raise
        self.conn.commit()
        logger.info("Imported %d nodes, %d relationships into %s", len(raw_nodes), len(raw_rels), self.db_path)
        return {"nodes": len(raw_nodes), "relationships": len(raw_rels)}

    def _insert_rows(self, raw_nodes: List[Mapping[str, Any]], raw_rels: List[Mapping[str, Any]]) -> None:
        self.conn.executemany(
            "INSERT OR REPLACE INTO nodes (node_id, labels, properties) VALUES (?, ?, ?)",
            [
                (
                    str(raw["id"]),
                    json.dumps(list(raw.get("labels") or [])),
                    json.dumps(raw.get("properties") or {}),
                )
                for raw in raw_nodes
            ],
        )
        self.conn.executemany(
            """
            INSERT OR REPLACE INTO relationships (rel_id, src, dst, rel_type, properties)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (
                    str(raw["id"]),
                    str(raw["startNodeId"]),
                    str(raw["endNodeId"]),
                    str(raw["type"]),
                    json.dumps(raw.get("properties") or {}),
                )
                for raw in raw_rels
            ],
        )

    def import_file(self, path: Path, replace: bool = False) -> Dict[str, int]:
        return self.import_payload(load_payload_file(path), replace=replace)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @staticmethod
    def _node_row(row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["node_id"],
            "labels": json.loads(row["labels"]),
            "properties": json.loads(row["properties"]),
        }

    @staticmethod
    def _rel_row(row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["rel_id"],
            "startNodeId": row["src"],
            "endNodeId": row["dst"],
            "type": row["rel_type"],
            "properties": json.loads(row["properties"]),
        }

    def get_raw_node(self, node_id: str) -> Optional[Dict[str, Any]]:
        row = self.conn.execute(
            "SELECT * FROM nodes WHERE node_id = ?", (node_id,),
        ).fetchone()
        return self._node_row(row) if row else None

    def get_raw_nodes(self, node_ids: Iterable[str]) -> List[Dict[str, Any]]:
        """Raw nodes for *node_ids*, in the order given; unknown ids are skipped."""
        result = []
        for node_id in node_ids:
            raw = self.get_raw_node(node_id)
            if raw is not None:
                result.append(raw)
        return result

    def first_node_ids(self, limit: int) -> List[str]:
        rows = self.conn.execute(
            "SELECT node_id FROM nodes ORDER BY rowid LIMIT ?", (limit,),
        ).fetchall()
        return [r[0] for r in rows]

    def incident_relationships(self, node_id: str) -> List[Dict[str, Any]]:
        rows = self.conn.execute(
            "SELECT * FROM relationships WHERE src = ? OR dst = ? ORDER BY rowid",
            (node_id, node_id),
        ).fetchall()
        return [self._rel_row(r) for r in rows]

    def relationships_among(self, node_ids: Iterable[str]) -> List[Dict[str, Any]]:
        ids = list(node_ids)
        if not ids:
            return []
        placeholders = ",".join("?" * len(ids))
        rows = self.conn.execute(
            f"SELECT * FROM relationships WHERE src IN ({placeholders}) AND dst IN ({placeholders}) ORDER BY rowid",
            ids + ids,
        ).fetchall()
        return [self._rel_row(r) for r in rows]

    def counts(self) -> Dict[str, int]:
        nodes = self.conn.execute("SELECT COUNT(*) FROM nodes").fetchone()[0]
        rels = self.conn.execute("SELECT COUNT(*) FROM relationships").fetchone()[0]
        return {"nodes": nodes, "relationships": rels}
