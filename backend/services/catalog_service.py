"""Read-only access to the hotel catalog."""

from __future__ import annotations

from typing import Optional

from backend.domain.models import Hotel
from backend.repository.data_repository import DataRepository
from backend.utils.config import Settings, get_settings


class CatalogService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def list_hotels(self) -> list[Hotel]:
        """Hotels ordered by name then address."""
        return self._repository.list_hotels()
