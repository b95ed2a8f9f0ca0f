"""Supabase-backed per-user document store with optimistic concurrency."""

import logging
from collections.abc import Callable
from copy import deepcopy
from dataclasses import dataclass

from supabase import Client

from protein_buddy.services.ledger import Document, DocumentRepository

_logger = logging.getLogger(__name__)

TABLE = "user_documents"


class DocumentConflictError(RuntimeError):
    """Raised when concurrent writers keep winning the version race."""


@dataclass
class SupabaseDocumentRepository(DocumentRepository):
    """Stores each user's document as a JSONB row guarded by a version column.

    Updates are conditional on the version that was read, so a mutation is
    always applied to the latest stored document. A lost race re-reads the
    row and applies the mutation again.
    """

    client: Client
    max_attempts: int = 5

    def get_document(self, email: str) -> Document:
        """Return the user's document, empty when none exists."""
        row = self._fetch_row(email)
        if row is None:
            return {}
        return _data_from(row)

    def update_document(
        self, email: str, mutate: Callable[[Document], None]
    ) -> Document:
        """Apply ``mutate`` to the latest document and store the result."""
        for attempt in range(1, self.max_attempts + 1):
            row = self._fetch_row(email)
            if row is None:
                self._ensure_row(email)
                row = self._fetch_row(email)
                if row is None:
                    raise RuntimeError(f"Failed to create document for {email}")
            current = _data_from(row)
            version = row.get("version")
            version = version if isinstance(version, int) else 0

            updated = deepcopy(current)
            mutate(updated)
            if updated == current:
                return updated

            response = (
                self.client.table(TABLE)
                .update({"data": updated, "version": version + 1})
                .eq("email", email)
                .eq("version", version)
                .execute()
            )
            if response.data:
                return updated
            _logger.info(
                "Document version conflict for %s (attempt %s/%s)",
                email,
                attempt,
                self.max_attempts,
            )
        raise DocumentConflictError(
            f"Gave up updating document for {email} after {self.max_attempts} attempts"
        )

    def _fetch_row(self, email: str) -> dict[str, object] | None:
        response = (
            self.client.table(TABLE)
            .select("email, data, version")
            .eq("email", email)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]

    def _ensure_row(self, email: str) -> None:
        self.client.table(TABLE).upsert(
            {"email": email, "data": {}, "version": 0},
            on_conflict="email",
            ignore_duplicates=True,
        ).execute()


def _data_from(row: dict[str, object]) -> Document:
    data = row.get("data")
    return data if isinstance(data, dict) else {}
