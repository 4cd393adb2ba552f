from uuid import UUID

from sqlalchemy.orm import Session

from usage_billing.models.organization import Organization
from usage_billing.models.profile import Profile


class ProfileRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, profile_id: UUID) -> Profile | None:
        return self.db.query(Profile).filter(Profile.id == profile_id).first()

    def get_organization(self, organization_id: UUID) -> Organization | None:
        return self.db.query(Organization).filter(Organization.id == organization_id).first()
