from typing import Optional
from pydantic import BaseModel, Field


class DocumentCreate(BaseModel):
    name: str = Field(min_length=1)
    content: str


class InvoiceCreate(BaseModel):
    amount: int = Field(ge=0)
    status: str = "draft"
    due_date: Optional[str] = None
