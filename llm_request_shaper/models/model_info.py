from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ModelInfo(BaseModel):
    """
    Read-only model metadata consumed by the cost and caching logic.

    Prices are expressed per million tokens.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    id: Optional[str] = Field(None, description="Provider model identifier")
    name: Optional[str] = Field(None, description="Human readable name")
    provider: Optional[str] = Field(None, description="Upstream provider")
    input_price: Optional[float] = Field(None, ge=0, description="Input price per million tokens")
    output_price: Optional[float] = Field(None, ge=0, description="Output price per million tokens")
    cache_writes_price: Optional[float] = Field(None, ge=0, description="Cache write price per million tokens")
    cache_reads_price: Optional[float] = Field(None, ge=0, description="Cache read price per million tokens")
    max_tokens: Optional[int] = Field(None, ge=1, description="Maximum output tokens")
    context_window: Optional[int] = Field(None, ge=1, description="Context window in tokens")
    supports_prompt_cache: bool = Field(False, description="Server-side prompt caching support")
    supports_images: bool = Field(False, description="Image input support")
