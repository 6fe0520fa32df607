# src/board_order/schemas/card.py
"""Card-related Pydantic schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CardCreate(BaseModel):
    """Schema for appending a card to a column."""

    column_key: str = Field(..., min_length=1, max_length=255, description="Target column")
    title: str = Field(..., min_length=1, max_length=500)
    payload: dict[str, Any] | None = None


class CardBulkCreate(BaseModel):
    """Schema for inserting several cards at one drop point."""

    column_key: str = Field(..., min_length=1, max_length=255)
    titles: list[str] = Field(..., min_length=1, max_length=1000)
    after_card_id: int | None = Field(None, description="Card directly above the batch")
    before_card_id: int | None = Field(None, description="Card directly below the batch")


class CardMove(BaseModel):
    """Schema for moving a card next to the cards around the drop point."""

    target_column: str = Field(..., min_length=1, max_length=255)
    after_card_id: int | None = Field(None, description="Card directly above; null for the top")
    before_card_id: int | None = Field(None, description="Card directly below; null for the bottom")

    @model_validator(mode="after")
    def _distinct_neighbours(self) -> "CardMove":
        if self.after_card_id is not None and self.after_card_id == self.before_card_id:
            raise ValueError("after_card_id and before_card_id must differ")
        return self


class CardResponse(BaseModel):
    """Schema for card information returned by the API."""

    id: int
    column_key: str
    position: str | None
    title: str
    payload: dict[str, Any] | None = None

    model_config = ConfigDict(from_attributes=True)


class MoveResponse(BaseModel):
    """Outcome of a completed move."""

    card_id: int
    column_key: str
    position: str
    attempts: int
    rebalanced: bool

    model_config = ConfigDict(from_attributes=True)
