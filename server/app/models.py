# server/app/models.py
from typing import Optional

from pydantic import BaseModel


class Shortcut(BaseModel):
    shortcut_id: int = 0  # assigned from list position at load time
    shortcut_name: str
    shortcut_icon: str = ""
    name: str
    source: str
    destination: str
    amount: Optional[float] = None
    budget: Optional[str] = None
    category: Optional[str] = None


class AddTransactionIn(BaseModel):
    shortcut_id: int
    amount_override: Optional[float] = None


class RequestLogEntry(BaseModel):
    timestamp: str
    client: Optional[str] = None
    body: str
