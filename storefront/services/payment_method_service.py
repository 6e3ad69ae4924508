# storefront/services/payment_method_service.py
from sqlalchemy.orm import Session

from storefront.data.models.payment_method import PaymentMethodModel
from storefront.domain.errors import NotFoundError
from storefront.domain.schemas import PaymentMethodIn
from storefront.repos.payment_method_repo import PaymentMethodRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentMethodService:
    def __init__(self, db: Session):
        self.repo = PaymentMethodRepo(db)

    def list_active(self) -> list[PaymentMethodModel]:
        return self.repo.list_methods(active_only=True)

    def list_all(self) -> list[PaymentMethodModel]:
        return self.repo.list_methods()

    def create(self, payload: PaymentMethodIn) -> PaymentMethodModel:
        method = PaymentMethodModel(
            name=payload.name,
            type=payload.type.value,
            is_active=payload.is_active,
            config=payload.config.model_dump(exclude_none=True),
        )
        created = self.repo.save(method)
        logger.info(f"Payment method {created.id} ({created.type}) created")
        return created

    def toggle_active(self, method_id: str) -> PaymentMethodModel:
        method = self.repo.get(method_id)
        if not method:
            raise NotFoundError(f"Payment method {method_id} does not exist")
        method.is_active = not method.is_active
        logger.info(f"Payment method {method.id} active={method.is_active}")
        return self.repo.save(method)
