import json
import os
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ynab_syncher.domain.patterns import TransactionPattern
from ynab_syncher.logger import get_logger
from ynab_syncher.models import CategoryMapping

logger = get_logger(__name__)

_MAPPINGS_ADAPTER = TypeAdapter(list[CategoryMapping])


class JsonCategoryMappingStore:
    """Read-only view over learned category mappings kept in a JSON file.

    The file holds a list of mapping objects, e.g.::

        [{"id": "m1", "category": {"kind": "budget", "id": "c1", "name": "Groceries"},
          "text_patterns": ["tesco"], "confidence": 0.9, "occurrence_count": 4}]

    Mappings are maintained elsewhere; this store never writes the file.
    """

    def __init__(self, data_path: str = "category_mappings.json"):
        self.data_path = data_path
        self.mappings: list[CategoryMapping] = []
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.data_path):
            self.mappings = []
            return
        try:
            with open(self.data_path, encoding="utf-8") as handle:
                raw: Any = json.load(handle)
            self.mappings = _MAPPINGS_ADAPTER.validate_python(raw)
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("[INFER] Ignoring unreadable mappings file %s: %s", self.data_path, exc)
            self.mappings = []
        else:
            logger.info("[INFER] Loaded %s category mappings from %s.", len(self.mappings), self.data_path)

    def reload(self) -> None:
        self.load()

    def find_mappings_for_pattern(self, pattern: TransactionPattern) -> list[CategoryMapping]:
        found = [mapping for mapping in self.mappings if mapping.has_exact_match(pattern)]
        found.sort(key=lambda m: (m.confidence, m.occurrence_count), reverse=True)
        return found
