# storefront/repos/catalog_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import ProductModel, ProductOptionModel


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: str) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def list_products(self, category_id: str | None = None, active_only: bool = True) -> list[ProductModel]:
        query = (
            select(ProductModel)
            .options(selectinload(ProductModel.options).selectinload(ProductOptionModel.variations))
            .order_by(ProductModel.name)
        )
        if category_id is not None:
            query = query.where(ProductModel.category_id == category_id)
        if active_only:
            query = query.where(ProductModel.is_active.is_(True))
        return list(self.db.execute(query).scalars().all())

    def save_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.commit()

    def list_categories(self) -> list[CategoryModel]:
        query = select(CategoryModel).order_by(CategoryModel.position, CategoryModel.name)
        return list(self.db.execute(query).scalars().all())

    def get_category(self, category_id: str) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def create_category(self, category: CategoryModel) -> CategoryModel:
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category
