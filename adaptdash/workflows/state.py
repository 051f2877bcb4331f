# workflows/state.py
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field, replace
from typing import List, Optional

from adaptdash.analysis.filters import Filters, apply_filters
from adaptdash.app.logging import clear_load_id, get_logger
from adaptdash.ingest.importer import ImportResult
from adaptdash.ingest.models import SurveyRecord


logger = get_logger(__name__)


def upload_key(data: bytes) -> str:
    # Content fingerprint of an upload; a re-upload under the same name with new content gets a new key.
    return hashlib.sha1(data).hexdigest()


@dataclass
class DashboardState:
    """
    The in-memory record collection behind the dashboard.

    A new upload replaces everything wholesale (last load wins) and resets the
    filters; analyses only ever see `filtered()`, a fresh list per call.
    `clear()` remembers the upload it dropped so a widget still holding that
    file does not load it again.
    """

    records: List[SurveyRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    source: Optional[str] = None
    load_id: Optional[str] = None
    upload_key: Optional[str] = None
    dismissed_key: Optional[str] = None
    group_size_max: float = 50
    filters: Filters = field(default_factory=Filters.default)

    @property
    def has_data(self) -> bool:
        return bool(self.records)

    def needs_load(self, key: str) -> bool:
        return key != self.upload_key and key != self.dismissed_key

    def replace(self, result: ImportResult, key: Optional[str] = None) -> None:
        self.records = list(result.records)
        self.warnings = list(result.warnings)
        self.source = result.source
        self.load_id = result.load_id
        self.upload_key = key
        self.dismissed_key = None
        self.filters = Filters.default(group_size_max=self.group_size_max)
        logger.info("Dashboard data replaced", extra={"source": result.source, "rows": len(self.records)})

    def set_filters(self, filters: Filters) -> None:
        self.filters = filters

    def update_filters(self, **changes) -> None:
        self.filters = replace(self.filters, **changes)

    def filtered(self) -> List[SurveyRecord]:
        return apply_filters(self.records, self.filters)

    def clear(self) -> None:
        logger.info("Dashboard data cleared", extra={"source": self.source})
        self.dismissed_key = self.upload_key
        self.records = []
        self.warnings = []
        self.source = None
        self.load_id = None
        self.upload_key = None
        self.filters = Filters.default(group_size_max=self.group_size_max)
        clear_load_id()
