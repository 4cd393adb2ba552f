"""Billing context resolution.

Every billable row belongs either to an organization or to an individual user.
When both ids are known the organization wins.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import HTTPException, Query


@dataclass(frozen=True)
class BillingContext:
    """The owner of usage, quotas and alerts: an organization or a user."""

    user_id: UUID | None = None
    organization_id: UUID | None = None

    @classmethod
    def of(cls, user_id: UUID | None = None, organization_id: UUID | None = None) -> "BillingContext":
        if organization_id is not None:
            return cls(user_id=None, organization_id=organization_id)
        if user_id is not None:
            return cls(user_id=user_id, organization_id=None)
        raise ValueError("Either user_id or organization_id is required")

    @classmethod
    def from_row(cls, row: Any) -> "BillingContext":
        """Build the context a model row belongs to."""
        return cls.of(user_id=row.user_id, organization_id=row.organization_id)

    @property
    def is_organization(self) -> bool:
        return self.organization_id is not None

    @property
    def id(self) -> UUID:
        return self.organization_id if self.organization_id is not None else self.user_id  # type: ignore[return-value]

    def apply(self, query: Any, model: Any) -> Any:
        """Restrict a query over ``model`` to rows owned by this context."""
        if self.is_organization:
            return query.filter(model.organization_id == self.organization_id)
        return query.filter(model.user_id == self.user_id)

    def row_values(self) -> dict[str, UUID | None]:
        return {"user_id": self.user_id, "organization_id": self.organization_id}


def get_billing_context(
    user_id: UUID | None = Query(default=None),
    organization_id: UUID | None = Query(default=None),
) -> BillingContext:
    """FastAPI dependency resolving the context from query parameters."""
    try:
        return BillingContext.of(user_id=user_id, organization_id=organization_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
