# biblio_export/infrastructure/client/_queries.py

"""GraphQL documents and the query parameter builder"""

# Local imports
from biblio_export.core.types.json import JSONDict

# Limit used for nested collections a query includes; excluded ones use 0
FILTER_INCLUDE_ALL = 99999
FILTER_INCLUDE_NONE = 0

WORK_FIELDS = """
fragment WorkFields on Work {
    workId
    workType
    workStatus
    fullTitle
    title
    subtitle
    reference
    edition
    doi
    publicationDate
    place
    pageCount
    license
    copyrightHolder
    landingPage
    lccn
    oclc
    shortAbstract
    longAbstract
    toc
    coverUrl
    updatedAt
    imprint {
        imprintId
        imprintName
        imprintUrl
        publisher {
            publisherId
            publisherName
            publisherShortname
            publisherUrl
        }
    }
    issues(limit: $issuesLimit) {
        issueOrdinal
        series {
            seriesName
            seriesType
            issnPrint
            issnDigital
        }
    }
    languages(limit: $languagesLimit) {
        languageCode
        mainLanguage
    }
    contributions {
        contributionType
        firstName
        lastName
        fullName
        mainContribution
        biography
        contributionOrdinal
        contributor {
            contributorId
            orcid
        }
        affiliations {
            position
            affiliationOrdinal
            institution {
                institutionName
            }
        }
    }
    publications(limit: $publicationsLimit) {
        publicationId
        publicationType
        isbn
        prices {
            currencyCode
            unitPrice
        }
        locations {
            landingPage
            fullTextUrl
            locationPlatform
            canonical
        }
    }
    subjects(limit: $subjectsLimit) {
        subjectCode
        subjectType
        subjectOrdinal
    }
    fundings(limit: $fundingsLimit) {
        program
        projectName
        grantNumber
        institution {
            institutionName
            institutionDoi
        }
    }
}
"""

_COLLECTION_VARIABLES = """
    $issuesLimit: Int!
    $languagesLimit: Int!
    $publicationsLimit: Int!
    $subjectsLimit: Int!
    $fundingsLimit: Int!
"""

WORK_QUERY = (
    f"""
query WorkQuery(
    $workId: Uuid!
{_COLLECTION_VARIABLES}) {{
    work(workId: $workId) {{
        ...WorkFields
    }}
}}
"""
    + WORK_FIELDS
)

WORKS_QUERY = (
    f"""
query WorksQuery(
    $publishers: [Uuid!]
    $limit: Int!
    $offset: Int!
{_COLLECTION_VARIABLES}) {{
    works(
        limit: $limit
        offset: $offset
        publishers: $publishers
        order: {{field: FULL_TITLE, direction: ASC}}
    ) {{
        ...WorkFields
    }}
}}
"""
    + WORK_FIELDS
)

PUBLISHER_QUERY = """
query PublisherQuery($publisherId: Uuid!) {
    publisher(publisherId: $publisherId) {
        publisherId
        publisherName
        publisherShortname
        publisherUrl
    }
}
"""


class QueryParameters:
    """Toggles which nested collections a work query pulls

    Example:
        >>> QueryParameters().with_issues().with_languages().variables()["issuesLimit"]
        99999
    """

    __slots__ = ("issues", "languages", "publications", "subjects", "fundings")

    def __init__(
        self,
        issues: bool = False,
        languages: bool = False,
        publications: bool = False,
        subjects: bool = False,
        fundings: bool = False,
    ) -> None:
        self.issues = issues
        self.languages = languages
        self.publications = publications
        self.subjects = subjects
        self.fundings = fundings

    @classmethod
    def with_all(cls) -> "QueryParameters":
        return cls(True, True, True, True, True)

    def _replace(self, **changes: bool) -> "QueryParameters":
        values = {name: getattr(self, name) for name in self.__slots__}
        values.update(changes)
        return QueryParameters(**values)

    def with_issues(self) -> "QueryParameters":
        return self._replace(issues=True)

    def with_languages(self) -> "QueryParameters":
        return self._replace(languages=True)

    def with_publications(self) -> "QueryParameters":
        return self._replace(publications=True)

    def with_subjects(self) -> "QueryParameters":
        return self._replace(subjects=True)

    def with_fundings(self) -> "QueryParameters":
        return self._replace(fundings=True)

    def without_issues(self) -> "QueryParameters":
        return self._replace(issues=False)

    def without_languages(self) -> "QueryParameters":
        return self._replace(languages=False)

    def without_publications(self) -> "QueryParameters":
        return self._replace(publications=False)

    def without_subjects(self) -> "QueryParameters":
        return self._replace(subjects=False)

    def without_fundings(self) -> "QueryParameters":
        return self._replace(fundings=False)

    def variables(self) -> JSONDict:
        """Collection limits as GraphQL variables"""
        return {
            f"{name}Limit": FILTER_INCLUDE_ALL if getattr(self, name) else FILTER_INCLUDE_NONE
            for name in self.__slots__
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryParameters):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)

    def __repr__(self) -> str:
        enabled = [name for name in self.__slots__ if getattr(self, name)]
        return f"QueryParameters({', '.join(enabled) or 'none'})"
