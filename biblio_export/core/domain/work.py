# biblio_export/core/domain/work.py

"""Immutable work snapshot types

A ``Work`` is built once from a repository response and is only ever read
afterwards. Collections are tuples so that a snapshot cannot be changed in
place by an adapter.
"""

# Standard library imports
from datetime import date
from datetime import datetime
from decimal import Decimal

# Third party imports
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

# Local imports
from biblio_export.core.domain.enums import ContributionType
from biblio_export.core.domain.enums import LocationPlatform
from biblio_export.core.domain.enums import PublicationType
from biblio_export.core.domain.enums import SubjectType
from biblio_export.core.domain.enums import WorkStatus
from biblio_export.core.domain.enums import WorkType
from biblio_export.shared.utils.identifiers import is_valid_doi
from biblio_export.shared.utils.identifiers import is_valid_isbn13
from biblio_export.shared.utils.identifiers import normalize_doi
from biblio_export.shared.utils.identifiers import normalize_isbn
from biblio_export.shared.utils.identifiers import normalize_orcid

SNAPSHOT_MODEL_CONFIG = ConfigDict(
    frozen=True,
    extra="forbid",
    str_strip_whitespace=True,
)


class Publisher(BaseModel):
    """Publisher referenced by an imprint"""

    model_config = SNAPSHOT_MODEL_CONFIG

    publisher_id: str
    publisher_name: str = Field(min_length=1)
    publisher_shortname: str | None = None
    publisher_url: str | None = None


class Imprint(BaseModel):
    """Imprint owning a work"""

    model_config = SNAPSHOT_MODEL_CONFIG

    imprint_id: str
    imprint_name: str = Field(min_length=1)
    imprint_url: str | None = None
    publisher: Publisher


class Affiliation(BaseModel):
    """Institutional affiliation of a contributor"""

    model_config = SNAPSHOT_MODEL_CONFIG

    institution_name: str
    position: str | None = None
    affiliation_ordinal: int = 1


class Contribution(BaseModel):
    """A contributor's role and rank on a work"""

    model_config = SNAPSHOT_MODEL_CONFIG

    contributor_id: str
    contribution_type: ContributionType
    first_name: str | None = None
    last_name: str = Field(min_length=1)
    full_name: str = Field(min_length=1)
    orcid: str | None = None
    main_contribution: bool = True
    biography: str | None = None
    affiliations: tuple[Affiliation, ...] = ()
    rank: int = Field(ge=1)

    @field_validator("orcid")
    @classmethod
    def strip_orcid_prefix(cls, v: str | None) -> str | None:
        return normalize_orcid(v) if v else None

    @property
    def inverted_name(self) -> str:
        """Name in "Last, First" order"""
        if self.first_name:
            return f"{self.last_name}, {self.first_name}"
        return self.last_name

    @property
    def first_affiliation(self) -> Affiliation | None:
        return self.affiliations[0] if self.affiliations else None


class Price(BaseModel):
    """Unit price of a publication in one currency"""

    model_config = SNAPSHOT_MODEL_CONFIG

    currency_code: str = Field(min_length=3, max_length=3)
    unit_price: Decimal = Field(ge=0)

    @field_validator("currency_code")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class Location(BaseModel):
    """Where a publication can be found online"""

    model_config = SNAPSHOT_MODEL_CONFIG

    landing_page: str | None = None
    full_text_url: str | None = None
    location_platform: LocationPlatform = LocationPlatform.OTHER
    canonical: bool = False


class Publication(BaseModel):
    """One manifestation of a work with its own identifier and pricing"""

    model_config = SNAPSHOT_MODEL_CONFIG

    publication_id: str
    publication_type: PublicationType
    isbn: str | None = None
    prices: tuple[Price, ...] = ()
    locations: tuple[Location, ...] = ()

    @field_validator("isbn")
    @classmethod
    def normalize_isbn_value(cls, v: str | None) -> str | None:
        """ISBN-13 digits when valid; an invalid value is kept as given for the formats to judge"""
        if not v:
            return None
        try:
            return normalize_isbn(v)
        except ValueError:
            return v

    @property
    def valid_isbn(self) -> str | None:
        return self.isbn if self.isbn and is_valid_isbn13(self.isbn) else None

    @field_validator("prices")
    @classmethod
    def unique_currencies(cls, v: tuple[Price, ...]) -> tuple[Price, ...]:
        """Price list is keyed by currency"""
        currencies = [price.currency_code for price in v]
        if len(currencies) != len(set(currencies)):
            raise ValueError(f"Duplicate currency in price list: {currencies}")
        return tuple(sorted(v, key=lambda price: price.currency_code))

    def price_for(self, currency_code: str) -> Decimal | None:
        """Get the unit price in a currency, if listed"""
        for price in self.prices:
            if price.currency_code == currency_code.upper():
                return price.unit_price
        return None

    @property
    def canonical_location(self) -> Location | None:
        for location in self.locations:
            if location.canonical:
                return location
        return self.locations[0] if self.locations else None


class Subject(BaseModel):
    """Classification scheme identifier plus code"""

    model_config = SNAPSHOT_MODEL_CONFIG

    subject_type: SubjectType
    subject_code: str = Field(min_length=1)
    subject_ordinal: int = 1


class Language(BaseModel):
    """Language of a work (ISO 639-2/B code, lowercase)"""

    model_config = SNAPSHOT_MODEL_CONFIG

    language_code: str = Field(min_length=3, max_length=3)
    main_language: bool = True

    @field_validator("language_code")
    @classmethod
    def lower_code(cls, v: str) -> str:
        return v.lower()


class SeriesIssue(BaseModel):
    """Membership of a work in a series"""

    model_config = SNAPSHOT_MODEL_CONFIG

    series_name: str
    series_type: str | None = None
    issn_print: str | None = None
    issn_digital: str | None = None
    issue_ordinal: int = 1


class Funding(BaseModel):
    """Funding acknowledgement"""

    model_config = SNAPSHOT_MODEL_CONFIG

    funder_name: str
    funder_doi: str | None = None
    program: str | None = None
    project_name: str | None = None
    grant_number: str | None = None


class Work(BaseModel):
    """Bibliographic record to be exported"""

    model_config = SNAPSHOT_MODEL_CONFIG

    work_id: str
    work_type: WorkType
    work_status: WorkStatus = WorkStatus.ACTIVE
    title: str = Field(min_length=1)
    subtitle: str | None = None
    full_title: str = Field(min_length=1)
    doi: str | None = None
    reference: str | None = None
    edition: int | None = Field(None, ge=1)
    publication_date: date | None = None
    place: str | None = None
    page_count: int | None = Field(None, ge=1)
    license: str | None = None
    copyright_holder: str | None = None
    landing_page: str | None = None
    lccn: str | None = None
    oclc: str | None = None
    short_abstract: str | None = None
    long_abstract: str | None = None
    toc: str | None = None
    cover_url: str | None = None
    updated_at: datetime | None = None
    imprint: Imprint
    languages: tuple[Language, ...] = ()
    contributions: tuple[Contribution, ...] = ()
    publications: tuple[Publication, ...] = ()
    subjects: tuple[Subject, ...] = ()
    issues: tuple[SeriesIssue, ...] = ()
    fundings: tuple[Funding, ...] = ()

    @field_validator("doi")
    @classmethod
    def strip_doi_prefix(cls, v: str | None) -> str | None:
        if not v:
            return None
        try:
            return normalize_doi(v)
        except ValueError:
            return v

    @field_validator("contributions")
    @classmethod
    def dense_ranks(cls, v: tuple[Contribution, ...]) -> tuple[Contribution, ...]:
        """Sort by incoming rank and renumber 1..n"""
        ordered = sorted(v, key=lambda contribution: contribution.rank)
        return tuple(
            contribution.model_copy(update={"rank": rank})
            for rank, contribution in enumerate(ordered, start=1)
        )

    @field_validator("publications")
    @classmethod
    def unique_isbns(cls, v: tuple[Publication, ...]) -> tuple[Publication, ...]:
        """ISBNs are unique across a work's publications"""
        isbns = [publication.isbn for publication in v if publication.isbn]
        duplicates = sorted({isbn for isbn in isbns if isbns.count(isbn) > 1})
        if duplicates:
            raise ValueError(f"Duplicate ISBN across publications: {', '.join(duplicates)}")
        return v

    @field_validator("subjects")
    @classmethod
    def order_subjects(cls, v: tuple[Subject, ...]) -> tuple[Subject, ...]:
        return tuple(
            sorted(v, key=lambda s: (s.subject_type.value, s.subject_ordinal, s.subject_code))
        )

    # Convenience accessors used by several formats
    @property
    def isbns(self) -> list[str]:
        """Valid ISBNs of all publications in publication order"""
        return [p.valid_isbn for p in self.publications if p.valid_isbn]

    @property
    def valid_doi(self) -> str | None:
        return self.doi if self.doi and is_valid_doi(self.doi) else None

    @property
    def invalid_isbns(self) -> list[str]:
        return [p.isbn for p in self.publications if p.isbn and not p.valid_isbn]

    @property
    def has_minimal_identity(self) -> bool:
        """A valid DOI or at least one valid ISBN"""
        return bool(self.valid_doi) or bool(self.isbns)

    @property
    def first_contributor(self) -> Contribution | None:
        return self.contributions[0] if self.contributions else None

    @property
    def publication_year(self) -> int | None:
        return self.publication_date.year if self.publication_date else None

    @property
    def doi_url(self) -> str | None:
        return f"https://doi.org/{self.valid_doi}" if self.valid_doi else None

    @property
    def main_language(self) -> str | None:
        for language in self.languages:
            if language.main_language:
                return language.language_code
        return self.languages[0].language_code if self.languages else None

    @property
    def publisher_name(self) -> str:
        return self.imprint.publisher.publisher_name

    @property
    def abstract(self) -> str | None:
        """Long abstract, falling back to the short one"""
        return self.long_abstract or self.short_abstract

    def contributions_of(self, *types: ContributionType) -> list[Contribution]:
        """Contributions with any of the given roles, in rank order"""
        return [c for c in self.contributions if c.contribution_type in types]

    def subjects_of(self, subject_type: SubjectType) -> list[Subject]:
        return [s for s in self.subjects if s.subject_type is subject_type]
