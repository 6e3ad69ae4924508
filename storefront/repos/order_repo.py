# storefront/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel, items: list[OrderItemModel]) -> OrderModel:
        #header and lines go in one transaction, caller rolls back on failure
        order.items = items
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_item(self, order_id: int, item_id: int) -> OrderItemModel | None:
        item = self.db.get(OrderItemModel, item_id)
        if item is None or item.order_id != order_id:
            return None
        return item

    def list_orders(self, user_id: str | None = None, status: str | None = None) -> list[OrderModel]:
        query = select(OrderModel).options(selectinload(OrderModel.items)).order_by(OrderModel.created_at.desc())
        if user_id is not None:
            query = query.where(OrderModel.user_id == user_id)
        if status is not None:
            query = query.where(OrderModel.status == status)
        return list(self.db.execute(query).scalars().all())

    def save(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def rollback(self):
        self.db.rollback()
