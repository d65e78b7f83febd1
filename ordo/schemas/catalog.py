from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ordo.models.core import DiscountKind, PromotionScope
from ordo.schemas.common import Money


class CatalogCategory(BaseModel):
    id: str
    name: str


class CategoryIn(BaseModel):
    name: str = Field(min_length=1)


class CatalogProduct(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Money
    image_url: Optional[str] = None
    category_id: str
    available: bool = True
    personalization_ids: list[str] = []


class ProductIn(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    image_url: Optional[str] = None
    category_id: str
    available: bool = True
    personalization_ids: list[str] = []


class GroupOption(BaseModel):
    id: str
    name: str
    price: Money = Decimal("0")
    available: bool = True


class OptionIn(BaseModel):
    name: str = Field(min_length=1)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    available: bool = True


class PersonalizationGroup(BaseModel):
    id: str
    name: str
    label: Optional[str] = None
    options: list[GroupOption] = []
    allow_repetition: bool = False
    min_selection: int = 0
    max_selection: Optional[int] = None

    @property
    def is_exclusive(self) -> bool:
        # radio semantics
        return self.max_selection == 1

    def option(self, option_id: str) -> GroupOption | None:
        for opt in self.options:
            if opt.id == option_id:
                return opt
        return None


class PersonalizationIn(BaseModel):
    name: str = Field(min_length=1)
    label: Optional[str] = None
    allow_repetition: bool = False
    min_selection: int = Field(default=0, ge=0)
    max_selection: Optional[int] = Field(default=None, ge=1)
    options: list[OptionIn] = []

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.max_selection is not None and self.min_selection > self.max_selection:
            raise ValueError("min_selection cannot exceed max_selection")
        return self


class CatalogPromotion(BaseModel):
    id: str
    name: str
    discount_kind: DiscountKind
    discount_value: Money
    scope: PromotionScope = PromotionScope.ALL_PRODUCTS
    product_ids: list[str] = []
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class PromotionIn(BaseModel):
    name: str = Field(min_length=1)
    discount_kind: DiscountKind
    discount_value: Decimal = Field(ge=0)
    scope: PromotionScope = PromotionScope.ALL_PRODUCTS
    product_ids: list[str] = []
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class MenuOut(BaseModel):
    """Priced menu as the customer sees it."""
    categories: list[CatalogCategory]
    products: list["PricedProduct"]
    personalizations: list[PersonalizationGroup]
    is_open: bool


class PricedProduct(CatalogProduct):
    effective_price: Money
    promotion_id: Optional[str] = None
    promotion_name: Optional[str] = None


MenuOut.model_rebuild()


class AvailabilityIn(BaseModel):
    available: bool


class ProductDetailOut(BaseModel):
    product: PricedProduct
    personalizations: list[PersonalizationGroup]
