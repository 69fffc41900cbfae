"""CSL-JSON schema returned by DOI content negotiation."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class CslBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "CSL %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class CslName(CslBaseModel):
    family: str | None = None
    given: str | None = None
    literal: str | None = None


class CslDate(CslBaseModel):
    date_parts: list[list[int | str | None]] = Field(default_factory=list, alias="date-parts")

    @property
    def year(self) -> str | None:
        if not self.date_parts or not self.date_parts[0]:
            return None
        first = self.date_parts[0][0]
        return str(first) if first is not None else None


class CslItem(CslBaseModel):
    type: str | None = None
    title: str | list[str] | None = None
    author: list[CslName] = Field(default_factory=list)
    issued: CslDate | None = None
    published: CslDate | None = None
    container_title: str | list[str] | None = Field(default=None, alias="container-title")
    publisher: str | None = None
    version: str | None = None
    doi: str | None = Field(default=None, alias="DOI")
    url: str | None = Field(default=None, alias="URL")
