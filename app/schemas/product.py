from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ProductBase(BaseModel):
    item_code: str = Field(..., min_length=1)
    item_description: str = Field(..., min_length=1)
    unit: str = Field(..., min_length=1)
    mrp: float = Field(..., ge=0)
    dp: float = Field(..., ge=0)
    nlc: float = Field(..., ge=0)
    percentage: float = Field(..., ge=0, le=100)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True
        coerce_numbers_to_str = True


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    item_code: Optional[str] = Field(None, min_length=1)
    item_description: Optional[str] = Field(None, min_length=1)
    unit: Optional[str] = Field(None, min_length=1)
    mrp: Optional[float] = Field(None, ge=0)
    dp: Optional[float] = Field(None, ge=0)
    nlc: Optional[float] = Field(None, ge=0)
    percentage: Optional[float] = Field(None, ge=0, le=100)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True
        coerce_numbers_to_str = True

    def changes(self) -> dict:
        """Fields the client actually sent, minus explicit nulls."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class ProductResponse(ProductBase):
    id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class SkippedProduct(BaseModel):
    item_code: str
    reason: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True
