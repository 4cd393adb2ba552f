from decimal import Decimal

from sqlalchemy.orm import Session

from usage_billing.models.usage_price import UsagePrice


class UsagePriceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> list[UsagePrice]:
        return self.db.query(UsagePrice).order_by(UsagePrice.event_type.asc()).all()

    def upsert(self, event_type: str, unit_price: Decimal) -> UsagePrice:
        price = self.db.query(UsagePrice).filter(UsagePrice.event_type == event_type).first()
        if price is None:
            price = UsagePrice(event_type=event_type, unit_price=unit_price)
            self.db.add(price)
        else:
            price.unit_price = unit_price  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(price)
        return price
