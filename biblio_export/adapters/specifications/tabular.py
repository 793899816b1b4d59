# biblio_export/adapters/specifications/tabular.py

"""Delimited and spreadsheet catalogue feeds

Every layout writes one row per publication and repeats the work-level
columns on each row. A work without publications still gets one row with
empty publication cells. Column count is fixed per layout.
"""

# Standard library imports
from csv import QUOTE_MINIMAL
from csv import writer
from datetime import datetime
from io import BytesIO
from io import StringIO
from logging import getLogger
from typing import Callable
from typing import Sequence
from zipfile import ZIP_DEFLATED
from zipfile import ZipFile
from zipfile import ZipInfo

# Third party imports
from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment
from openpyxl.styles import Border
from openpyxl.styles import Font
from openpyxl.styles import PatternFill
from openpyxl.styles import Side
from openpyxl.utils import get_column_letter
from openpyxl.writer.excel import ExcelWriter

# Local imports
from biblio_export.adapters.specifications._common import Clock
from biblio_export.adapters.specifications._common import identifier_issues
from biblio_export.adapters.specifications._common import utc_now
from biblio_export.adapters.specifications._common import write_document
from biblio_export.core.domain.enums import ContributionType
from biblio_export.core.domain.enums import Severity
from biblio_export.core.domain.issue import Issue
from biblio_export.core.domain.work import Publication
from biblio_export.core.domain.work import Work
from biblio_export.core.types.protocols import BinarySink
from biblio_export.core.types.protocols import Row
from biblio_export.shared.utils.text_utils import normalize_whitespace
from biblio_export.shared.utils.text_utils import strip_markup

logger = getLogger(__name__)

MULTI_VALUE_SEPARATOR = "; "

type CellValue = Callable[[Work, Publication | None], object]


class Column:
    """Header, spreadsheet width and value extractor of one column"""

    __slots__ = ("header", "width", "value")

    def __init__(self, header: str, width: int, value: CellValue) -> None:
        self.header = header
        self.width = width
        self.value = value

    def cell(self, work: Work, publication: Publication | None) -> str:
        value = self.value(work, publication)
        if value is None:
            return ""
        return str(value)


def _join(values: list[str]) -> str:
    return MULTI_VALUE_SEPARATOR.join(value for value in values if value)


def _contributors(work: Work) -> str:
    return _join(
        [f"{c.full_name} ({c.contribution_type.value.lower()})" for c in work.contributions]
    )


def _prices(publication: Publication | None) -> str:
    if publication is None:
        return ""
    return _join([f"{p.currency_code} {p.unit_price:.2f}" for p in publication.prices])


def _full_text_url(publication: Publication | None) -> str | None:
    location = publication.canonical_location if publication else None
    return location.full_text_url if location else None


def _first_surname(work: Work, role: ContributionType) -> str | None:
    contributions = work.contributions_of(role)
    return contributions[0].last_name if contributions else None


CATALOGUE_COLUMNS = (
    Column("work_id", 38, lambda w, p: w.work_id),
    Column("doi", 30, lambda w, p: w.doi_url),
    Column("title", 40, lambda w, p: w.title),
    Column("subtitle", 30, lambda w, p: w.subtitle),
    Column("full_title", 50, lambda w, p: w.full_title),
    Column("work_type", 15, lambda w, p: w.work_type.value),
    Column("work_status", 15, lambda w, p: w.work_status.value),
    Column("contributors", 40, lambda w, p: _contributors(w)),
    Column("edition", 8, lambda w, p: w.edition),
    Column("publication_date", 14, lambda w, p: w.publication_date),
    Column("place", 20, lambda w, p: w.place),
    Column("page_count", 10, lambda w, p: w.page_count),
    Column("languages", 12, lambda w, p: _join([lang.language_code for lang in w.languages])),
    Column("publisher", 30, lambda w, p: w.publisher_name),
    Column("imprint", 30, lambda w, p: w.imprint.imprint_name),
    Column("license", 30, lambda w, p: w.license),
    Column("copyright_holder", 25, lambda w, p: w.copyright_holder),
    Column("landing_page", 40, lambda w, p: w.landing_page),
    Column("lccn", 15, lambda w, p: w.lccn),
    Column("oclc", 15, lambda w, p: w.oclc),
    Column("subjects", 30, lambda w, p: _join([s.subject_code for s in w.subjects])),
    Column("series", 30, lambda w, p: _join([i.series_name for i in w.issues])),
    Column(
        "short_abstract",
        60,
        lambda w, p: strip_markup(w.short_abstract) if w.short_abstract else None,
    ),
    Column("publication_type", 15, lambda w, p: p.publication_type.value if p else None),
    Column("isbn", 16, lambda w, p: p.valid_isbn if p else None),
    Column("prices", 25, lambda w, p: _prices(p)),
    Column("full_text_url", 40, lambda w, p: _full_text_url(p)),
)

# KBART Phase II title list fields
KBART_COLUMNS = (
    Column("publication_title", 40, lambda w, p: w.full_title),
    Column(
        "print_identifier",
        16,
        lambda w, p: p.valid_isbn if p and p.publication_type.is_print else None,
    ),
    Column(
        "online_identifier",
        16,
        lambda w, p: p.valid_isbn if p and not p.publication_type.is_print else None,
    ),
    Column("date_first_issue_online", 10, lambda w, p: None),
    Column("num_first_vol_online", 10, lambda w, p: None),
    Column("num_first_issue_online", 10, lambda w, p: None),
    Column("date_last_issue_online", 10, lambda w, p: None),
    Column("num_last_vol_online", 10, lambda w, p: None),
    Column("num_last_issue_online", 10, lambda w, p: None),
    Column("title_url", 40, lambda w, p: _full_text_url(p) or w.landing_page),
    Column("first_author", 20, lambda w, p: _first_surname(w, ContributionType.AUTHOR)),
    Column("title_id", 30, lambda w, p: w.doi_url or w.work_id),
    Column("embargo_info", 10, lambda w, p: None),
    Column("coverage_depth", 10, lambda w, p: "fulltext"),
    Column("notes", 10, lambda w, p: None),
    Column("publisher_name", 30, lambda w, p: w.publisher_name),
    Column("publication_type", 12, lambda w, p: "monograph"),
    Column(
        "date_monograph_published_print",
        12,
        lambda w, p: w.publication_date if p and p.publication_type.is_print else None,
    ),
    Column(
        "date_monograph_published_online",
        12,
        lambda w, p: w.publication_date if p and not p.publication_type.is_print else None,
    ),
    Column("monograph_volume", 8, lambda w, p: None),
    Column("monograph_edition", 8, lambda w, p: w.edition),
    Column("first_editor", 20, lambda w, p: _first_surname(w, ContributionType.EDITOR)),
    Column("parent_publication_title_id", 10, lambda w, p: None),
    Column("preceding_publication_title_id", 10, lambda w, p: None),
    Column("access_type", 8, lambda w, p: "F" if w.license else "P"),
)


def restamp_archive(data: bytes, stamp: datetime) -> bytes:
    """Copy of a ZIP archive with every member dated ``stamp``"""
    # ZIP dates start in 1980
    date_time = (max(stamp.year, 1980), *stamp.timetuple()[1:6])
    output = BytesIO()
    with ZipFile(BytesIO(data)) as source, ZipFile(output, "w") as target:
        for info in source.infolist():
            member = ZipInfo(info.filename, date_time=date_time)
            member.compress_type = ZIP_DEFLATED
            target.writestr(member, source.read(info.filename))
    return output.getvalue()


def work_rows(work: Work, columns: Sequence[Column]) -> list[Row]:
    """One row per publication, or a single row with empty publication cells"""
    publications: list[Publication | None] = list(work.publications) or [None]
    return [[column.cell(work, publication) for column in columns] for publication in publications]


def validate_rows(work: Work) -> list[Issue]:
    issues: list[Issue] = []
    if not work.publications:
        issues.append(
            Issue.warning("publications", "No publications; one row with empty publication cells")
        )
    issues.extend(identifier_issues(work, Severity.WARNING))
    return issues


class TabularSpecification:
    """Delimited text layout (CSV, TSV or KBART)"""

    def __init__(
        self,
        format_id: str,
        name: str,
        delimiter: str,
        columns: Sequence[Column] = CATALOGUE_COLUMNS,
        content_type: str = "text/csv",
        file_extension: str = "csv",
        flatten_whitespace: bool = False,
        title_list: bool = False,
    ) -> None:
        self.format_id = format_id
        self.version = "1.0"
        self.name = name
        self.content_type = content_type
        self.file_extension = file_extension
        self._delimiter = delimiter
        self._columns = tuple(columns)
        self._flatten_whitespace = flatten_whitespace
        self._title_list = title_list

    @property
    def headers(self) -> list[str]:
        return [column.header for column in self._columns]

    def validate(self, work: Work) -> list[Issue]:
        issues = validate_rows(work)
        if self._title_list:
            if not work.landing_page:
                issues.insert(0, Issue.error("landing_page", "KBART requires a title_url"))
            if not work.publications:
                issues = [i for i in issues if i.field != "publications"]
                issues.append(Issue.error("publications", "KBART requires a publication"))
        return issues

    def generate(self, work: Work, sink: BinarySink) -> None:
        self.assemble([self.render_record(work)], sink)

    def render_record(self, work: Work) -> list[Row]:
        rows = work_rows(work, self._columns)
        if self._flatten_whitespace:
            rows = [[normalize_whitespace(cell) for cell in row] for row in rows]
        return rows

    def assemble(self, fragments: Sequence[list[Row]], sink: BinarySink) -> None:
        buffer = StringIO()
        csv_writer = writer(
            buffer, delimiter=self._delimiter, lineterminator="\n", quoting=QUOTE_MINIMAL
        )
        csv_writer.writerow(self.headers)
        for rows in fragments:
            csv_writer.writerows(rows)
        write_document(sink, buffer.getvalue().encode("utf-8"))


class XlsxSpecification:
    """Spreadsheet with the catalogue layout

    Workbook properties and the archive member dates carry the export time.
    """

    format_id = "xlsx"
    version = "1.0"
    name = "Excel workbook"
    content_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    file_extension = "xlsx"

    # Header styling
    HEADER_FONT = Font(bold=True, color="FFFFFF")
    HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center", wrap_text=True)

    # Data styling
    DATA_ALIGNMENT = Alignment(vertical="top", wrap_text=True)
    BORDER = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )

    def __init__(self, columns: Sequence[Column] = CATALOGUE_COLUMNS, clock: Clock = utc_now):
        self._columns = tuple(columns)
        self._clock = clock

    def validate(self, work: Work) -> list[Issue]:
        return validate_rows(work)

    def generate(self, work: Work, sink: BinarySink) -> None:
        self.assemble([self.render_record(work)], sink)

    def render_record(self, work: Work) -> list[Row]:
        return work_rows(work, self._columns)

    def assemble(self, fragments: Sequence[list[Row]], sink: BinarySink) -> None:
        wb = Workbook()
        ws = wb.active
        ws.title = "Catalogue"

        for col_num, column in enumerate(self._columns, 1):
            cell = ws.cell(row=1, column=col_num, value=column.header)
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_FILL
            cell.alignment = self.HEADER_ALIGNMENT
            cell.border = self.BORDER
            ws.column_dimensions[get_column_letter(col_num)].width = column.width

        row_num = 2
        for rows in fragments:
            for row in rows:
                for col_num, value in enumerate(row, 1):
                    cell = ws.cell(
                        row=row_num, column=col_num, value=ILLEGAL_CHARACTERS_RE.sub("", value)
                    )
                    cell.alignment = self.DATA_ALIGNMENT
                row_num += 1

        # Freeze the header row
        ws.freeze_panes = "A2"

        exported_at = self._clock().replace(tzinfo=None)
        wb.properties.created = exported_at
        wb.properties.modified = exported_at
        wb.properties.creator = "biblio-export"

        # Workbook.save would stamp "modified" with the current time
        buffer = BytesIO()
        ExcelWriter(wb, ZipFile(buffer, "w", ZIP_DEFLATED)).save()
        write_document(sink, restamp_archive(buffer.getvalue(), exported_at))
