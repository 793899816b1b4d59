# biblio_export/core/domain/enums.py

"""Domain enumerations for bibliographic export"""

# Standard library imports
from enum import Enum


class WorkType(Enum):
    """Type of work as held in the metadata repository"""

    BOOK_CHAPTER = "BOOK_CHAPTER"
    MONOGRAPH = "MONOGRAPH"
    EDITED_BOOK = "EDITED_BOOK"
    TEXTBOOK = "TEXTBOOK"
    JOURNAL_ISSUE = "JOURNAL_ISSUE"
    BOOK_SET = "BOOK_SET"


class WorkStatus(Enum):
    """Publishing status of a work"""

    UNSPECIFIED = "UNSPECIFIED"
    CANCELLED = "CANCELLED"
    FORTHCOMING = "FORTHCOMING"
    POSTPONED_INDEFINITELY = "POSTPONED_INDEFINITELY"
    ACTIVE = "ACTIVE"
    NO_LONGER_OUR_PRODUCT = "NO_LONGER_OUR_PRODUCT"
    OUT_OF_STOCK_INDEFINITELY = "OUT_OF_STOCK_INDEFINITELY"
    OUT_OF_PRINT = "OUT_OF_PRINT"
    INACTIVE = "INACTIVE"
    UNKNOWN = "UNKNOWN"
    REMAINDERED = "REMAINDERED"
    WITHDRAWN_FROM_SALE = "WITHDRAWN_FROM_SALE"
    RECALLED = "RECALLED"


class ContributionType(Enum):
    """Role a contributor plays on a work"""

    AUTHOR = "AUTHOR"
    EDITOR = "EDITOR"
    TRANSLATOR = "TRANSLATOR"
    PHOTOGRAPHER = "PHOTOGRAPHER"
    ILLUSTRATOR = "ILLUSTRATOR"
    MUSIC_EDITOR = "MUSIC_EDITOR"
    FOREWORD_BY = "FOREWORD_BY"
    INTRODUCTION_BY = "INTRODUCTION_BY"
    AFTERWORD_BY = "AFTERWORD_BY"
    PREFACE_BY = "PREFACE_BY"


class PublicationType(Enum):
    """Physical or digital manifestation of a work"""

    PAPERBACK = "PAPERBACK"
    HARDBACK = "HARDBACK"
    PDF = "PDF"
    HTML = "HTML"
    XML = "XML"
    EPUB = "EPUB"
    MOBI = "MOBI"

    @property
    def is_print(self) -> bool:
        """Whether this publication is a printed edition"""
        return self in (PublicationType.PAPERBACK, PublicationType.HARDBACK)


class SubjectType(Enum):
    """Classification scheme of a subject code"""

    BIC = "BIC"
    BISAC = "BISAC"
    THEMA = "THEMA"
    LCC = "LCC"
    CUSTOM = "CUSTOM"
    KEYWORD = "KEYWORD"


class LocationPlatform(Enum):
    """Hosting platform of a publication location"""

    PROJECT_MUSE = "PROJECT_MUSE"
    OAPEN = "OAPEN"
    DOAB = "DOAB"
    JSTOR = "JSTOR"
    EBSCO_HOST = "EBSCO_HOST"
    OCLC_KB = "OCLC_KB"
    PROQUEST_KB = "PROQUEST_KB"
    PROQUEST_EXLIBRIS = "PROQUEST_EXLIBRIS"
    EBSCO_KB = "EBSCO_KB"
    JISC_KB = "JISC_KB"
    GOOGLE_BOOKS = "GOOGLE_BOOKS"
    INTERNET_ARCHIVE = "INTERNET_ARCHIVE"
    SCIENCE_OPEN = "SCIENCE_OPEN"
    SCIELO = "SCIELO"
    PUBLISHER_WEBSITE = "PUBLISHER_WEBSITE"
    OTHER = "OTHER"


class Severity(Enum):
    """Severity of a format validation issue"""

    ERROR = "error"  # Blocks generation for this format
    WARNING = "warning"  # Output still produced, field embedded as comment or omitted


class RecordState(Enum):
    """Per-record states of an export

    FETCHED -> VALIDATING -> VALID -> GENERATING -> GENERATED
    FETCHED -> VALIDATING -> INVALID -> REJECTED
    """

    FETCHED = "fetched"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"
    GENERATING = "generating"
    GENERATED = "generated"
    REJECTED = "rejected"


class ManifestStatus(Enum):
    """Terminal outcome of a record in a batch export"""

    GENERATED = "generated"
    REJECTED = "rejected"  # Format validation failed
    FAILED = "failed"  # Fetch or generation fault
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


# States after which a record never changes again
TERMINAL_RECORD_STATES = frozenset({RecordState.GENERATED, RecordState.REJECTED})
