"""Raw fetched page before extraction."""

import base64

from pydantic import BaseModel, ConfigDict, Field


def make_external_id(source_name: str, url: str) -> str:
    """
    Deterministic join key for a (source, url) pair.
    Base64 of "{source_name}-{url}" with padding stripped; the registry
    already holds ids in this format, so it must not change.
    """
    base = f"{source_name}-{url}"
    return base64.b64encode(base.encode("utf-8")).decode("ascii").rstrip("=")


class RawItem(BaseModel):
    """
    One fetched announcement page.
    Created per fetch, never mutated, discarded after the pipeline consumes it.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    markup: str = Field(..., description="HTML snapshot of the page or its article container")
    source_name: str
    external_id: str

    @classmethod
    def from_page(cls, source_name: str, url: str, markup: str) -> "RawItem":
        """Build an item, deriving external_id from (source_name, url)."""
        return cls(
            url=url,
            markup=markup,
            source_name=source_name,
            external_id=make_external_id(source_name, url),
        )
