from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CoinOut(BaseModel):
    id: int
    name: str
    symbol: str
    cmc_rank: Optional[int] = None
    is_active: int = 1


class Top100Data(BaseModel):
    coins: List[CoinOut] = Field(default_factory=list)
    timestamp: int


class Top100Response(BaseModel):
    success: Literal[True] = True
    data: Top100Data
    cached: bool


class ActiveCoinsData(BaseModel):
    activeSymbols: List[str] = Field(default_factory=list)
    timestamp: int
    totalChecked: int
    apiCallsMade: int


class ActiveCoinsResponse(BaseModel):
    success: Literal[True] = True
    data: ActiveCoinsData
    cached: bool


class MarketErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str


class IconOut(BaseModel):
    displayName: str
    name: str
    symbol: Optional[str] = None
    fileName: str
    path: str


class IconListResponse(BaseModel):
    icons: List[IconOut] = Field(default_factory=list)
    total: int
    filtered: int
    isFiltered: bool
    apiKeyConfigured: bool
    marketError: Optional[str] = None
