# biblio_export/adapters/specifications/citation.py

"""Reference manager formats: BibTeX and CSL-JSON

Citation keys are the ASCII-folded surname of the first contributor (or
the first significant title word) plus the publication year, ``nd`` when
undated. Keys that collide within one export batch get ``a``, ``b``, ...
suffixes in record order: when a combined document is assembled, or
across the batch before each record is written on its own.
"""

# Standard library imports
from collections import Counter
from collections import defaultdict
from json import dumps
from logging import getLogger
from typing import Sequence

# Local imports
from biblio_export.adapters.specifications._common import creators
from biblio_export.adapters.specifications._common import identifier_issues
from biblio_export.adapters.specifications._common import write_document
from biblio_export.core.domain.enums import ContributionType
from biblio_export.core.domain.enums import Severity
from biblio_export.core.domain.enums import SubjectType
from biblio_export.core.domain.enums import WorkType
from biblio_export.core.domain.issue import Issue
from biblio_export.core.domain.work import Contribution
from biblio_export.core.domain.work import Work
from biblio_export.core.types.json import JSONDict
from biblio_export.core.types.protocols import BinarySink
from biblio_export.shared.utils.text_utils import first_significant_word
from biblio_export.shared.utils.text_utils import key_token
from biblio_export.shared.utils.text_utils import strip_markup

logger = getLogger(__name__)

BIBTEX_TYPES = {
    WorkType.BOOK_CHAPTER: "incollection",
    WorkType.MONOGRAPH: "book",
    WorkType.EDITED_BOOK: "book",
    WorkType.TEXTBOOK: "book",
    WorkType.BOOK_SET: "book",
    WorkType.JOURNAL_ISSUE: "misc",
}

CSL_TYPES = {
    WorkType.BOOK_CHAPTER: "chapter",
    WorkType.MONOGRAPH: "book",
    WorkType.EDITED_BOOK: "book",
    WorkType.TEXTBOOK: "book",
    WorkType.BOOK_SET: "book",
    WorkType.JOURNAL_ISSUE: "periodical",
}

CSL_NAME_VARIABLES = {
    ContributionType.AUTHOR: "author",
    ContributionType.EDITOR: "editor",
    ContributionType.TRANSLATOR: "translator",
    ContributionType.ILLUSTRATOR: "illustrator",
}

BIBTEX_ESCAPES = {
    "\\": r"\textbackslash{}",
    "{": r"\{",
    "}": r"\}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}


def citation_key_base(work: Work) -> str:
    """Undisambiguated citation key of a work"""
    stem = ""
    first = work.first_contributor
    if first:
        stem = key_token(first.last_name)
    if not stem:
        stem = first_significant_word(work.title) or "anon"
    year = str(work.publication_year) if work.publication_year else "nd"
    return f"{stem}{year}"


def _suffix(index: int) -> str:
    """0 -> a, 25 -> z, 26 -> aa"""
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("a") + remainder) + letters
    return letters


def disambiguate_keys(bases: Sequence[str]) -> list[str]:
    """Make keys unique within one document

    Keys occurring once are kept as they are. Repeated keys all get a
    letter suffix in order of appearance, skipping any suffixed form that
    is already taken.
    """
    counts = Counter(bases)
    used = {base for base in bases if counts[base] == 1}
    next_index: defaultdict[str, int] = defaultdict(int)
    keys = []
    for base in bases:
        if counts[base] == 1:
            keys.append(base)
            continue
        while True:
            candidate = base + _suffix(next_index[base])
            next_index[base] += 1
            if candidate not in used:
                break
        used.add(candidate)
        keys.append(candidate)
    return keys


class CitationEntry:
    """A rendered citation awaiting its final key"""

    __slots__ = ("key_base", "doi", "entry_type", "fields")

    def __init__(
        self, key_base: str, doi: str | None, entry_type: str, fields: JSONDict
    ) -> None:
        self.key_base = key_base
        self.doi = doi
        self.entry_type = entry_type
        self.fields = fields

    def with_key(self, key: str) -> "CitationEntry":
        """Same entry with a settled key; a unique key is kept as is on assembly"""
        return CitationEntry(key, self.doi, self.entry_type, self.fields)


def prepare_citation_batch(fragments: Sequence[CitationEntry]) -> list[CitationEntry]:
    """Settle keys across a batch whose records are written as separate documents"""
    keys = disambiguate_keys([entry.key_base for entry in fragments])
    return [entry.with_key(key) for key, entry in zip(keys, fragments)]


def _escape_bibtex(value: str) -> str:
    return "".join(BIBTEX_ESCAPES.get(char, char) for char in value)


def _bibtex_names(contributions: list[Contribution]) -> str | None:
    if not contributions:
        return None
    return " and ".join(c.inverted_name for c in contributions)


def _csl_name(contribution: Contribution) -> JSONDict:
    name: JSONDict = {"family": contribution.last_name}
    if contribution.first_name:
        name["given"] = contribution.first_name
    return name


def _validate_common(work: Work, label: str) -> list[Issue]:
    issues: list[Issue] = []
    if not work.doi:
        issues.append(Issue.warning("doi", f"{label} entry has no DOI"))
    if work.work_type is WorkType.BOOK_CHAPTER:
        issues.append(Issue.warning("work_type", "Parent book title is not available"))
    issues.extend(identifier_issues(work, Severity.WARNING))
    return issues


class BibtexSpecification:
    """BibTeX database entries"""

    format_id = "bibtex"
    version = "1.0"
    name = "BibTeX"
    content_type = "application/x-bibtex"
    file_extension = "bib"

    def validate(self, work: Work) -> list[Issue]:
        issues: list[Issue] = []
        if work.publication_date is None:
            issues.append(Issue.error("publication_date", "BibTeX requires a year"))
        if not creators(work):
            issues.append(Issue.error("contributions", "BibTeX requires an author or editor"))
        issues.extend(_validate_common(work, "BibTeX"))
        return issues

    def generate(self, work: Work, sink: BinarySink) -> None:
        self.assemble([self.render_record(work)], sink)

    def render_record(self, work: Work) -> CitationEntry:
        fields: JSONDict = {
            "author": _bibtex_names(work.contributions_of(ContributionType.AUTHOR)),
            "editor": _bibtex_names(work.contributions_of(ContributionType.EDITOR)),
            "title": work.full_title,
            "year": str(work.publication_year) if work.publication_year else None,
            "date": work.publication_date.isoformat() if work.publication_date else None,
            "publisher": work.publisher_name,
            "address": work.place,
            "edition": str(work.edition) if work.edition else None,
            "series": work.issues[0].series_name if work.issues else None,
            "number": str(work.issues[0].issue_ordinal) if work.issues else None,
            "doi": work.valid_doi,
            "isbn": work.isbns[0] if work.isbns else None,
            "url": work.landing_page,
            "language": work.main_language,
            "keywords": ", ".join(s.subject_code for s in work.subjects_of(SubjectType.KEYWORD)),
        }
        return CitationEntry(
            citation_key_base(work),
            work.valid_doi,
            BIBTEX_TYPES[work.work_type],
            {name: value for name, value in fields.items() if value},
        )

    def prepare_batch(self, fragments: Sequence[CitationEntry]) -> list[CitationEntry]:
        return prepare_citation_batch(fragments)

    def assemble(self, fragments: Sequence[CitationEntry], sink: BinarySink) -> None:
        keys = disambiguate_keys([entry.key_base for entry in fragments])
        blocks = []
        for key, entry in zip(keys, fragments):
            lines = [f"@{entry.entry_type}{{{key},"]
            for name, value in entry.fields.items():
                lines.append(f"  {name} = {{{_escape_bibtex(str(value))}}},")
            lines.append("}")
            blocks.append("\n".join(lines))
        write_document(sink, ("\n\n".join(blocks) + "\n").encode("utf-8"))


class CslJsonSpecification:
    """CSL-JSON item array; ``id`` is the DOI, else the citation key"""

    format_id = "csl-json"
    version = "1.0"
    name = "CSL-JSON"
    content_type = "application/vnd.citationstyles.csl+json"
    file_extension = "json"

    def validate(self, work: Work) -> list[Issue]:
        issues: list[Issue] = []
        if work.publication_date is None:
            issues.append(Issue.warning("publication_date", "No issued date"))
        if not work.contributions:
            issues.append(Issue.warning("contributions", "No names"))
        issues.extend(_validate_common(work, "CSL"))
        return issues

    def generate(self, work: Work, sink: BinarySink) -> None:
        self.assemble([self.render_record(work)], sink)

    def render_record(self, work: Work) -> CitationEntry:
        item: JSONDict = {"type": CSL_TYPES[work.work_type], "title": work.full_title}
        for role, variable in CSL_NAME_VARIABLES.items():
            names = [_csl_name(c) for c in work.contributions_of(role)]
            if names:
                item[variable] = names
        if work.publication_date:
            date = work.publication_date
            item["issued"] = {"date-parts": [[date.year, date.month, date.day]]}
        optional: JSONDict = {
            "publisher": work.publisher_name,
            "publisher-place": work.place,
            "edition": work.edition,
            "number-of-pages": work.page_count,
            "DOI": work.valid_doi,
            "ISBN": work.isbns[0] if work.isbns else None,
            "URL": work.landing_page or work.doi_url,
            "language": work.main_language,
            "abstract": strip_markup(work.abstract) if work.abstract else None,
            "collection-title": work.issues[0].series_name if work.issues else None,
            "collection-number": work.issues[0].issue_ordinal if work.issues else None,
            "license": work.license,
        }
        item.update({name: value for name, value in optional.items() if value is not None})
        return CitationEntry(citation_key_base(work), work.valid_doi, item["type"], item)

    def prepare_batch(self, fragments: Sequence[CitationEntry]) -> list[CitationEntry]:
        return prepare_citation_batch(fragments)

    def assemble(self, fragments: Sequence[CitationEntry], sink: BinarySink) -> None:
        keys = disambiguate_keys([entry.key_base for entry in fragments])
        items = []
        for key, entry in zip(keys, fragments):
            items.append({"id": entry.doi or key, "citation-key": key, **entry.fields})
        write_document(sink, (dumps(items, indent=2, ensure_ascii=False) + "\n").encode("utf-8"))
