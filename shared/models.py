"""
Pydantic models for the stock exporter.

These models describe the upstream Finnhub payloads and the validated
entities the collector turns into metric samples. All of them live for a
single collection cycle only.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Quote(BaseModel):
    """Finnhub quote payload. Only the current price is exported."""

    c: Optional[float] = Field(None, description="Current price")
    d: Optional[float] = Field(None, description="Change")
    dp: Optional[float] = Field(None, description="Percent change")
    h: Optional[float] = Field(None, description="High price of the day")
    l: Optional[float] = Field(None, description="Low price of the day")  # noqa: E741
    o: Optional[float] = Field(None, description="Open price of the day")
    pc: Optional[float] = Field(None, description="Previous close price")
    t: Optional[int] = Field(None, description="Quote unix timestamp")

    model_config = ConfigDict(extra="ignore")

    @property
    def current_price(self) -> Optional[float]:
        return self.c


class NewsItem(BaseModel):
    """A company news record with every field needed for labelling."""

    datetime: int = Field(..., description="Publication unix timestamp (seconds)")
    headline: str = Field(..., description="News headline")
    url: str = Field(..., description="Article URL")
    id: int = Field(..., description="Finnhub news id")

    model_config = ConfigDict(frozen=True)


class CompanyNewsRecord(BaseModel):
    """Raw Finnhub company news record; any field may be missing."""

    datetime: Optional[int] = Field(None, description="Publication unix timestamp")
    headline: Optional[str] = Field(None, description="News headline")
    id: Optional[int] = Field(None, description="Finnhub news id")
    url: Optional[str] = Field(None, description="Article URL")
    category: Optional[str] = None
    image: Optional[str] = None
    related: Optional[str] = None
    source: Optional[str] = None
    summary: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    def missing_fields(self) -> list[str]:
        """Names of the required fields that are absent."""
        return [
            name
            for name in ("datetime", "headline", "id", "url")
            if getattr(self, name) is None
        ]

    def to_news_item(self) -> Optional[NewsItem]:
        """Return a NewsItem, or None if a required field is absent."""
        if self.missing_fields():
            return None
        return NewsItem(
            datetime=self.datetime,
            headline=self.headline,
            url=self.url,
            id=self.id,
        )
