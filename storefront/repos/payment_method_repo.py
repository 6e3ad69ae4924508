# storefront/repos/payment_method_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.payment_method import PaymentMethodModel


class PaymentMethodRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, method_id: str) -> PaymentMethodModel | None:
        return self.db.get(PaymentMethodModel, method_id)

    def list_methods(self, active_only: bool = False) -> list[PaymentMethodModel]:
        query = select(PaymentMethodModel).order_by(PaymentMethodModel.name)
        if active_only:
            query = query.where(PaymentMethodModel.is_active.is_(True))
        return list(self.db.execute(query).scalars().all())

    def save(self, method: PaymentMethodModel) -> PaymentMethodModel:
        self.db.add(method)
        self.db.commit()
        self.db.refresh(method)
        return method
