# app/saved_queries/repository.py
"""
The saved-query repository: a single ordered collection of SavedQuery entries.

Entries are only ever inserted, replaced or deleted. Every operation takes the
repository lock for its whole duration, validates before touching anything,
persists the new collection, and only then swaps it in. A failed validation
or write therefore leaves the collection exactly as it was.
"""

import locale
import logging
import threading
import unicodedata
import uuid
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from app.core.config import SAVED_QUERY_VERSION
from app.saved_queries.dao import SavedQueryDAO
from app.saved_queries.exceptions import DuplicateName, InvalidSavedQuery, NoValidEntries, NotFound
from app.saved_queries.schemas import ImportResult, SavedQuery, SavedQueryConfig, SavedQueryExport, utc_now

logger = logging.getLogger(__name__)

# Keys under which an import envelope may carry its list of entries
ENVELOPE_KEYS = ("queries", "savedQueries", "saved_queries", "items", "data")


def new_query_id() -> str:
    return f"query_{uuid.uuid4().hex}"


def flatten_payload(payload: Any) -> List[Any]:
    """A list of candidates, a single candidate, or an envelope holding a list."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ENVELOPE_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]
        return [payload]
    return []


def _name_key(name: str) -> str:
    return name.strip().casefold()


def _collation_key(name: str) -> Tuple[str, str]:
    """Sort key ignoring case and accents; accented spellings follow their plain form."""
    folded = name.casefold()
    base = "".join(ch for ch in unicodedata.normalize("NFKD", folded) if not unicodedata.combining(ch))
    return locale.strxfrm(base), locale.strxfrm(folded)


class SavedQueryRepository:
    """Process-wide saved-query collection with serialized mutations."""

    def __init__(self, dao: Optional[SavedQueryDAO] = None):
        self.dao = dao
        self._lock = threading.RLock()
        self._queries: List[SavedQuery] = []

    # ===== STATE =====

    def load(self) -> None:
        """Replace the in-memory collection with the persisted one."""
        with self._lock:
            if self.dao is not None:
                self._queries = self.dao.load_all()
                logger.info("Loaded %d saved queries", len(self._queries))

    def _commit(self, queries: List[SavedQuery]) -> None:
        if self.dao is not None:
            self.dao.replace_all(queries)
        self._queries = queries

    def list(self) -> List[SavedQuery]:
        with self._lock:
            return list(self._queries)

    def get(self, query_id: str) -> SavedQuery:
        with self._lock:
            for query in self._queries:
                if query.id == query_id:
                    return query
        raise NotFound(query_id)

    def _name_taken(self, name: str) -> bool:
        key = _name_key(name)
        return any(_name_key(query.name) == key for query in self._queries)

    # ===== VALIDATION =====

    @staticmethod
    def validate(candidate: Any) -> bool:
        """True iff the candidate has a name, a selected table and a column list."""
        if isinstance(candidate, SavedQuery):
            candidate = candidate.model_dump(by_alias=True)
        if not isinstance(candidate, dict):
            return False

        name = candidate.get("name")
        if not isinstance(name, str) or not name.strip():
            return False

        config = candidate.get("config")
        if not isinstance(config, dict):
            return False
        table = config.get("selectedTable", config.get("selected_table"))
        columns = config.get("selectedColumns", config.get("selected_columns"))
        return isinstance(table, str) and bool(table.strip()) and isinstance(columns, list)

    # ===== MUTATIONS =====

    def save(self, config: Dict[str, Any], name: str, description: Optional[str] = None) -> SavedQuery:
        """Append a new entry; the name must be unique ignoring case."""
        candidate = {"name": name, "description": description, "config": config}
        if not self.validate(candidate):
            raise InvalidSavedQuery("A saved query needs a name, a table and a column list")

        with self._lock:
            if self._name_taken(name):
                raise DuplicateName(name)
            try:
                query = SavedQuery(
                    id=new_query_id(),
                    name=name.strip(),
                    description=description,
                    timestamp=utc_now(),
                    version=SAVED_QUERY_VERSION,
                    config=SavedQueryConfig.model_validate(config),
                )
            except ValidationError as e:
                raise InvalidSavedQuery(f"Invalid saved query: {e.errors()[0]['msg']}") from e
            self._commit(self._queries + [query])

        logger.info("Saved query %s (%s)", query.name, query.id)
        return query

    def import_batch(self, payload: Any) -> ImportResult:
        """
        Merge an interchange document into the collection.

        Entries are deduplicated against the collection and each other by id,
        then by name ignoring case. Missing ids, timestamps and versions are
        filled in. The collection ends up sorted newest first.
        """
        candidates = flatten_payload(payload)
        valid = [entry for entry in (self._coerce_candidate(raw) for raw in candidates) if entry is not None]
        if not valid:
            raise NoValidEntries()

        with self._lock:
            seen_ids = {query.id for query in self._queries}
            seen_names = {_name_key(query.name) for query in self._queries}
            accepted: List[SavedQuery] = []
            for entry in valid:
                if entry.id in seen_ids or _name_key(entry.name) in seen_names:
                    continue
                seen_ids.add(entry.id)
                seen_names.add(_name_key(entry.name))
                accepted.append(entry)

            if accepted:
                merged = sorted(self._queries + accepted, key=lambda query: query.timestamp, reverse=True)
                self._commit(merged)
            total = len(self._queries)

        skipped = len(candidates) - len(accepted)
        logger.info("Imported %d saved queries (%d skipped)", len(accepted), skipped)
        if accepted:
            message = f"{len(accepted)} saved queries imported"
        else:
            message = "All saved queries already exist"
        return ImportResult(imported=len(accepted), skipped=skipped, total=total, message=message)

    def _coerce_candidate(self, raw: Any) -> Optional[SavedQuery]:
        if not self.validate(raw):
            return None
        data = dict(raw)
        if isinstance(data.get("id"), (int, float)) and not isinstance(data["id"], bool):
            data["id"] = str(data["id"])
        data["id"] = data.get("id") or new_query_id()
        if not data.get("timestamp") and not data.get("createdAt"):
            data["timestamp"] = utc_now()
        data["version"] = data.get("version") or SAVED_QUERY_VERSION
        try:
            return SavedQuery.model_validate(data)
        except ValidationError as e:
            logger.debug("Skipping imported entry %r: %s", data.get("name"), e)
            return None

    def duplicate(self, query_id: str) -> SavedQuery:
        """Append a copy of an entry under a fresh id and a " (Copy)" name."""
        with self._lock:
            original = self.get(query_id)
            name = f"{original.name} (Copy)"
            suffix = 2
            while self._name_taken(name):
                name = f"{original.name} (Copy {suffix})"
                suffix += 1
            copy = original.model_copy(
                update={"id": new_query_id(), "name": name, "timestamp": utc_now()},
                deep=True,
            )
            self._commit(self._queries + [copy])
        return copy

    def sort_by_name(self) -> List[SavedQuery]:
        with self._lock:
            self._commit(sorted(self._queries, key=lambda query: _collation_key(query.name)))
            return list(self._queries)

    def sort_by_date(self) -> List[SavedQuery]:
        with self._lock:
            self._commit(sorted(self._queries, key=lambda query: query.timestamp, reverse=True))
            return list(self._queries)

    def delete(self, query_id: str) -> None:
        with self._lock:
            remaining = [query for query in self._queries if query.id != query_id]
            if len(remaining) == len(self._queries):
                raise NotFound(query_id)
            self._commit(remaining)
        logger.info("Deleted saved query %s", query_id)

    # ===== INTERCHANGE =====

    def export(self) -> SavedQueryExport:
        return SavedQueryExport(queries=self.list())
