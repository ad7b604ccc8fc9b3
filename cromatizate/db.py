import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import NotFound, StoreUnavailable
from .models import (
    ColorBlindnessCategory,
    InteractionEvent,
    OntologyUpsert,
    Recommendation,
    RecommendationKind,
    Visitor,
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _loads(raw: Optional[str], default: Any) -> Any:
    """Decode a JSON column; rows written by older clients may hold junk"""
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


class Store:
    """SQLite row store for visitors, their interactions and derived data.

    Constructed explicitly and handed to whoever needs it; there is no
    module-level instance.
    """

    def __init__(self, db_path: str = "cromatizate.db"):
        self.db_path = db_path
        self.init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"[store] Cannot open database {self.db_path}: {e}")
            raise StoreUnavailable(str(e)) from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"[store] Database operation failed: {e}")
            raise StoreUnavailable(str(e)) from e
        finally:
            conn.close()

    def init_db(self):
        """Initialize database with required tables"""
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS visitors (
                    id TEXT PRIMARY KEY,
                    preferences_json TEXT NOT NULL DEFAULT '{}',
                    color_blindness TEXT,
                    adopted_json TEXT NOT NULL DEFAULT '{}',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS interactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    visitor_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    payload_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (visitor_id) REFERENCES visitors (id)
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS recommendations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    visitor_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    content_json TEXT NOT NULL,
                    confidence REAL NOT NULL,
                    source TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (visitor_id) REFERENCES visitors (id)
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ontologies (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    domain TEXT NOT NULL,
                    name TEXT NOT NULL,
                    version TEXT NOT NULL,
                    jsonld_json TEXT NOT NULL,
                    rules_json TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (domain, version)
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS semantic_outputs (
                    id TEXT PRIMARY KEY,
                    visitor_id TEXT NOT NULL,
                    input_type TEXT NOT NULL,
                    input_json TEXT NOT NULL,
                    jsonld_json TEXT NOT NULL,
                    recommendations_json TEXT,
                    created_at TEXT NOT NULL
                )
            """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    visitor_id TEXT NOT NULL,
                    metadata_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (visitor_id) REFERENCES visitors (id)
                )
            """
            )

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_interactions_visitor ON interactions (visitor_id, id)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_recommendations_visitor ON recommendations (visitor_id, id)"
            )
        logger.info(f"[store] Database initialized at {self.db_path}")

    def ping(self) -> bool:
        try:
            with self._connect() as conn:
                conn.execute("SELECT 1")
            return True
        except StoreUnavailable:
            return False

    # Visitors

    def _visitor_from_row(self, row: sqlite3.Row) -> Visitor:
        preferences = _loads(row["preferences_json"], {})
        adopted = _loads(row["adopted_json"], {})
        category = row["color_blindness"]
        return Visitor(
            id=row["id"],
            preferences=preferences if isinstance(preferences, dict) else {},
            color_blindness=ColorBlindnessCategory(category)
            if category in ColorBlindnessCategory._value2member_map_
            else None,
            adopted=adopted if isinstance(adopted, dict) else {},
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_visitor(self, visitor_id: str) -> Optional[Visitor]:
        """Retrieve a visitor by ID"""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM visitors WHERE id = ?", (visitor_id,)
            ).fetchone()
        return self._visitor_from_row(row) if row else None

    def ensure_visitor(self, visitor_id: str) -> Visitor:
        """Return the visitor row, creating an empty one on first contact"""
        now = _now()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO visitors (id, preferences_json, color_blindness, adopted_json, created_at, updated_at)
                VALUES (?, '{}', NULL, '{}', ?, ?)
            """,
                (visitor_id, now, now),
            )
            row = conn.execute(
                "SELECT * FROM visitors WHERE id = ?", (visitor_id,)
            ).fetchone()
        return self._visitor_from_row(row)

    def update_visitor(
        self,
        visitor_id: str,
        preferences: Optional[Dict[str, Any]] = None,
        color_blindness: Optional[ColorBlindnessCategory] = None,
        adopted: Optional[Dict[str, Any]] = None,
        set_color_blindness: bool = False,
    ) -> Visitor:
        """Update stored fields; last write wins"""
        assignments = ["updated_at = ?"]
        params: List[Any] = [_now()]
        if preferences is not None:
            assignments.append("preferences_json = ?")
            params.append(json.dumps(preferences))
        if set_color_blindness:
            assignments.append("color_blindness = ?")
            params.append(color_blindness.value if color_blindness else None)
        if adopted is not None:
            assignments.append("adopted_json = ?")
            params.append(json.dumps(adopted))
        params.append(visitor_id)

        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE visitors SET {', '.join(assignments)} WHERE id = ?", params
            )
            if cursor.rowcount == 0:
                raise NotFound("visitors", visitor_id)
            row = conn.execute(
                "SELECT * FROM visitors WHERE id = ?", (visitor_id,)
            ).fetchone()
        logger.info(f"[store] Visitor {visitor_id} updated")
        return self._visitor_from_row(row)

    # Interactions

    def add_interaction(self, visitor_id: str, event: InteractionEvent) -> InteractionEvent:
        """Append an interaction to the visitor's history"""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO interactions (visitor_id, kind, payload_json, created_at)
                VALUES (?, ?, ?, ?)
            """,
                (
                    visitor_id,
                    event.kind,
                    json.dumps(event.payload, default=str),
                    event.timestamp.isoformat(),
                ),
            )
        logger.debug(f"[store] Interaction {event.kind} recorded for {visitor_id}")
        return event

    def recent_interactions(self, visitor_id: str, limit: int = 100) -> List[InteractionEvent]:
        """Most recent first"""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM interactions
                WHERE visitor_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
            """,
                (visitor_id, limit),
            ).fetchall()

        return [
            InteractionEvent(
                kind=row["kind"],
                payload=_loads(row["payload_json"], {}),
                timestamp=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    # Recommendations

    def _recommendation_from_row(self, row: sqlite3.Row) -> Optional[Recommendation]:
        content = _loads(row["content_json"], {})
        if row["kind"] not in RecommendationKind._value2member_map_ or not isinstance(content, dict):
            return None
        content.setdefault("confidence", row["confidence"])
        return Recommendation(
            kind=row["kind"],
            content=content,
            source=row["source"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def add_recommendations(self, visitor_id: str, recommendations: Iterable[Recommendation]) -> int:
        rows: List[Tuple[Any, ...]] = [
            (
                visitor_id,
                rec.kind.value,
                json.dumps(rec.content, default=str),
                rec.confidence,
                rec.source.value,
                (rec.created_at.isoformat() if rec.created_at else _now()),
            )
            for rec in recommendations
        ]
        if not rows:
            return 0
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO recommendations (visitor_id, kind, content_json, confidence, source, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """,
                rows,
            )
        logger.info(f"[store] Stored {len(rows)} recommendation(s) for {visitor_id}")
        return len(rows)

    def recent_recommendations(self, visitor_id: str, limit: int = 20) -> List[Recommendation]:
        """Most recent first"""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM recommendations
                WHERE visitor_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
            """,
                (visitor_id, limit),
            ).fetchall()
        recs = [self._recommendation_from_row(row) for row in rows]
        return [rec for rec in recs if rec is not None]

    def latest_recommendation(
        self, visitor_id: str, kind: RecommendationKind
    ) -> Optional[Recommendation]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM recommendations
                WHERE visitor_id = ? AND kind = ?
                ORDER BY created_at DESC, id DESC
                LIMIT 1
            """,
                (visitor_id, kind.value),
            ).fetchone()
        return self._recommendation_from_row(row) if row else None

    # Ontologies

    def _ontology_from_row(self, row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["id"],
            "domain": row["domain"],
            "name": row["name"],
            "version": row["version"],
            "jsonld": _loads(row["jsonld_json"], {}),
            "rules": _loads(row["rules_json"], None),
            "createdAt": row["created_at"],
            "updatedAt": row["updated_at"],
        }

    def get_ontology(self, domain: str) -> Optional[Dict[str, Any]]:
        """Latest stored version of an ontology domain"""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM ontologies WHERE domain = ?
                ORDER BY version DESC LIMIT 1
            """,
                (domain,),
            ).fetchone()
        return self._ontology_from_row(row) if row else None

    def upsert_ontology(self, ontology: OntologyUpsert) -> Tuple[Dict[str, Any], bool]:
        """Insert or replace an ontology version. Returns (row, created)."""
        now = _now()
        rules_json = json.dumps(ontology.rules) if ontology.rules is not None else None
        with self._connect() as conn:
            existing = conn.execute(
                "SELECT id FROM ontologies WHERE domain = ? AND version = ?",
                (ontology.domain, ontology.version),
            ).fetchone()
            if existing:
                conn.execute(
                    """
                    UPDATE ontologies SET name = ?, jsonld_json = ?, rules_json = ?, updated_at = ?
                    WHERE id = ?
                """,
                    (ontology.name, json.dumps(ontology.jsonld), rules_json, now, existing["id"]),
                )
                row_id = existing["id"]
            else:
                cursor = conn.execute(
                    """
                    INSERT INTO ontologies (domain, name, version, jsonld_json, rules_json, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                    (
                        ontology.domain,
                        ontology.name,
                        ontology.version,
                        json.dumps(ontology.jsonld),
                        rules_json,
                        now,
                        now,
                    ),
                )
                row_id = cursor.lastrowid
            row = conn.execute("SELECT * FROM ontologies WHERE id = ?", (row_id,)).fetchone()

        logger.info(
            f"[store] Ontology {ontology.domain}@{ontology.version} {'updated' if existing else 'created'}"
        )
        return self._ontology_from_row(row), not existing

    # Semantic outputs

    def add_semantic_output(
        self,
        visitor_id: str,
        input_type: str,
        input_data: Any,
        jsonld: Dict[str, Any],
        recommendations: Optional[List[Dict[str, Any]]] = None,
    ) -> str:
        output_id = str(uuid.uuid4())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO semantic_outputs (id, visitor_id, input_type, input_json, jsonld_json, recommendations_json, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    output_id,
                    visitor_id,
                    input_type,
                    json.dumps(input_data, default=str),
                    json.dumps(jsonld),
                    json.dumps(recommendations) if recommendations else None,
                    _now(),
                ),
            )
        return output_id

    def semantic_outputs(self, visitor_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM semantic_outputs WHERE visitor_id = ?
                ORDER BY created_at DESC LIMIT ?
            """,
                (visitor_id, limit),
            ).fetchall()
        return [
            {
                "id": row["id"],
                "visitorId": row["visitor_id"],
                "inputType": row["input_type"],
                "inputData": _loads(row["input_json"], None),
                "jsonld": _loads(row["jsonld_json"], {}),
                "recommendations": _loads(row["recommendations_json"], None),
                "createdAt": row["created_at"],
            }
            for row in rows
        ]

    # Sessions

    def create_session(self, visitor_id: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        session = {
            "id": str(uuid.uuid4()),
            "user_id": visitor_id,
            "metadata": metadata,
            "created_at": _now(),
        }
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO sessions (id, visitor_id, metadata_json, created_at)
                VALUES (?, ?, ?, ?)
            """,
                (session["id"], visitor_id, json.dumps(metadata, default=str), session["created_at"]),
            )
        logger.info(f"[store] Session {session['id']} created for {visitor_id}")
        return session
