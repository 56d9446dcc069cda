"""
Catalog error taxonomy.

Every failure the catalog code raises on purpose is a `CatalogError`. The
`kind` string is what ingestion summaries record and what API error bodies
report as `code`.

- NotFound: remote miss (HTTP 404) or store miss
- Transient: network / server-side failure, retried by the next run only
- Malformed: payload shape violation
- ConstraintViolation: record rejected by the store
- BadRequest: invalid caller input
"""

from __future__ import annotations


class CatalogError(RuntimeError):
    kind = "catalog_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(CatalogError):
    kind = "not_found"


class Transient(CatalogError):
    kind = "transient"


class Malformed(CatalogError):
    kind = "malformed"


class ConstraintViolation(CatalogError):
    kind = "constraint_violation"


class BadRequest(CatalogError):
    kind = "bad_request"
