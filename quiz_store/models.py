"""
models.py
=========
Pydantic v2 models for documents this service writes to MongoDB.

Quiz questions and quiz metadata are maintained outside this service and are
passed through as free-form documents, so only ``User`` is modelled here.
Field aliases keep the camelCase names the frontend already stores.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    clerk_user_id: str = Field(..., alias="clerkUserId", min_length=1)
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
