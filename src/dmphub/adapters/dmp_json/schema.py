"""Wire schemas for RDA DMP Common Standard documents and harvested works."""

from __future__ import annotations

import logging
from datetime import datetime  # noqa: TC003
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from dmphub.domain.model import (
    AssertionStatus,
    Confidence,
    FundingStatus,
    Privacy,
)

log = logging.getLogger(__name__)


class DmpBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = {f"{type(self).__name__}.{key}" for key in extras}
        new_keys.difference_update(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug("Unmodelled DMP keys: %s", ", ".join(sorted(new_keys)))


class TypedIdentifierSchema(DmpBaseModel):
    type: str | None = None
    identifier: str


class AffiliationSchema(DmpBaseModel):
    name: str | None = None
    affiliation_id: TypedIdentifierSchema | None = None


class ContactSchema(DmpBaseModel):
    name: str | None = None
    mbox: str | None = None
    contact_id: TypedIdentifierSchema | None = None
    dmproadmap_affiliation: AffiliationSchema | None = None


class ContributorSchema(DmpBaseModel):
    name: str | None = None
    mbox: str | None = None
    contributor_id: TypedIdentifierSchema | None = None
    dmproadmap_affiliation: AffiliationSchema | None = None
    role: list[str] = Field(default_factory=list)


class FundingSchema(DmpBaseModel):
    name: str | None = None
    funder_id: TypedIdentifierSchema | None = None
    funding_status: FundingStatus | None = None
    grant_id: TypedIdentifierSchema | None = None
    dmproadmap_funding_opportunity_id: TypedIdentifierSchema | None = None
    dmproadmap_project_number: str | None = None
    dmphub_provenance_id: str | None = None
    dmphub_created_at: datetime | None = None


class ProjectSchema(DmpBaseModel):
    title: str | None = None
    description: str | None = None
    start: str | None = None
    end: str | None = None
    funding: list[FundingSchema] = Field(default_factory=list)


class RelatedIdentifierSchema(DmpBaseModel):
    type: str | None = None
    identifier: str
    descriptor: str | None = None
    work_type: str | None = None
    citation: str | None = None
    dmphub_provenance_id: str | None = None
    confidence: Confidence | None = None
    score: int | None = None
    notes: list[str] = Field(default_factory=list)


class ModificationSchema(DmpBaseModel):
    id: str
    provenance: str
    timestamp: datetime
    status: AssertionStatus = AssertionStatus.PENDING
    provenance_name: str | None = None
    note: str | None = None
    confidence: Confidence | None = None
    dmproadmap_related_identifiers: list[RelatedIdentifierSchema] = Field(default_factory=list)
    funding: list[FundingSchema] = Field(default_factory=list)


class DmpSchema(DmpBaseModel):
    """The ``dmp`` object. Keys not modelled here are kept as extras and written back."""

    title: str
    description: str | None = None
    dmp_id: TypedIdentifierSchema | None = None
    contact: ContactSchema | None = None
    contributor: list[ContributorSchema] = Field(default_factory=list)
    project: list[ProjectSchema] = Field(default_factory=list)
    dmproadmap_related_identifiers: list[RelatedIdentifierSchema] = Field(default_factory=list)
    dmproadmap_privacy: Privacy | None = None
    dmproadmap_external_system_identifier: str | None = None
    dmphub_provenance_id: str | None = None
    dmphub_provenance_identifier: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    registered: datetime | None = None
    dmphub_tombstoned_at: datetime | None = None
    dmphub_modifications: list[ModificationSchema] = Field(default_factory=list)


class WorkAffiliationSchema(DmpBaseModel):
    id: str | None = None
    name: str | None = None


class WorkPersonSchema(DmpBaseModel):
    id: str | None = None
    name: str | None = None
    last_name: str | None = None
    affiliation: list[WorkAffiliationSchema] = Field(default_factory=list)


class FundingReferenceSchema(DmpBaseModel):
    funder_name: str | None = None
    funder_id: str | None = None
    funder_id_type: str | None = None
    award_uri: str | None = None
    award_number: str | None = None
    award_title: str | None = None


class WorkRepositorySchema(DmpBaseModel):
    name: str | None = None
    id: list[str] = Field(default_factory=list)


class MatchSchema(DmpBaseModel):
    dmp_id: str
    confidence: Confidence
    score: int
    notes: list[str] = Field(default_factory=list)


class CandidateWorkSchema(DmpBaseModel):
    id: str
    type: str | None = None
    title: str | None = None
    abstract: str | None = None
    people: list[WorkPersonSchema] = Field(default_factory=list)
    funding_references: list[FundingReferenceSchema] = Field(default_factory=list)
    repositories: list[WorkRepositorySchema] = Field(default_factory=list)
    citation: str | None = None
    match: MatchSchema | None = None


class WorksDocument(DmpBaseModel):
    works: list[CandidateWorkSchema] = Field(default_factory=list)
