# storefront/services/catalog_service.py
from sqlalchemy.orm import Session

from storefront.data.models.category import CategoryModel
from storefront.data.models.product import OptionVariationModel, ProductModel, ProductOptionModel
from storefront.domain.errors import NotFoundError, ValidationError
from storefront.domain.schemas import CategoryIn, ProductIn
from storefront.repos.catalog_repo import CatalogRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _build_options(payload: ProductIn) -> list[ProductOptionModel]:
    return [
        ProductOptionModel(
            title=o.title,
            required=o.required,
            position=pos,
            variations=[
                OptionVariationModel(name=v.name, price=v.price, position=vpos)
                for vpos, v in enumerate(o.variations)
            ],
        )
        for pos, o in enumerate(payload.options)
    ]


class CatalogService:
    """Products, their options/variations and categories (back office + menu)."""

    def __init__(self, db: Session):
        self.repo = CatalogRepo(db)

    def get_product(self, product_id: str) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def list_products(self, category_id: str | None = None, include_inactive: bool = False) -> list[ProductModel]:
        return self.repo.list_products(category_id=category_id, active_only=not include_inactive)

    def create_product(self, payload: ProductIn) -> ProductModel:
        self._check_category(payload.category_id)
        self._check_options(payload)

        product = ProductModel(
            **payload.model_dump(exclude={"options"}),
            options=_build_options(payload),
        )
        created = self.repo.save_product(product)
        logger.info(f"Product {created.id} '{created.name}' created with {len(created.options)} option(s)")
        return created

    def update_product(self, product_id: str, payload: ProductIn) -> ProductModel:
        """Full replace. Options and variations are rebuilt from the payload."""
        product = self.get_product(product_id)
        self._check_category(payload.category_id)
        self._check_options(payload)

        for field, value in payload.model_dump(exclude={"options"}).items():
            setattr(product, field, value)
        product.options = _build_options(payload)

        updated = self.repo.save_product(product)
        logger.info(f"Product {updated.id} updated")
        return updated

    def delete_product(self, product_id: str) -> None:
        product = self.get_product(product_id)
        self.repo.delete_product(product)
        logger.info(f"Product {product_id} deleted")

    def list_categories(self) -> list[CategoryModel]:
        return self.repo.list_categories()

    def create_category(self, payload: CategoryIn) -> CategoryModel:
        created = self.repo.create_category(CategoryModel(name=payload.name, position=payload.position))
        logger.info(f"Category {created.id} '{created.name}' created")
        return created

    def _check_category(self, category_id: str | None) -> None:
        if category_id and not self.repo.get_category(category_id):
            raise ValidationError(f"Category {category_id} does not exist", field="category_id")

    def _check_options(self, payload: ProductIn) -> None:
        for option in payload.options:
            if option.required and not option.variations:
                raise ValidationError(
                    f"Required option '{option.title}' needs at least one variation", field="options"
                )
