# biblio_export/adapters/specifications/onix.py

"""ONIX for Books product metadata, releases 3.0 and 2.1

One ``Product`` is written per publication that carries an ISBN. Release
3.0 also accepts a work with only a DOI, which becomes a single product.
Release 2.1 requires at least one ISBN.
"""

# Standard library imports
from logging import getLogger
from typing import Sequence
import xml.etree.ElementTree as ET

# Local imports
from biblio_export.adapters.specifications._common import Clock
from biblio_export.adapters.specifications._common import add_comment
from biblio_export.adapters.specifications._common import identifier_issues
from biblio_export.adapters.specifications._common import serialize_xml
from biblio_export.adapters.specifications._common import sub_element
from biblio_export.adapters.specifications._common import utc_now
from biblio_export.adapters.specifications._common import warning_comments
from biblio_export.adapters.specifications._common import write_document
from biblio_export.core.domain.enums import ContributionType
from biblio_export.core.domain.enums import PublicationType
from biblio_export.core.domain.enums import Severity
from biblio_export.core.domain.enums import SubjectType
from biblio_export.core.domain.enums import WorkStatus
from biblio_export.core.domain.issue import Issue
from biblio_export.core.domain.work import Publication
from biblio_export.core.domain.work import Work
from biblio_export.core.types.protocols import BinarySink
from biblio_export.infrastructure.config._models import OnixConfig
from biblio_export.shared.utils.text_utils import strip_markup

logger = getLogger(__name__)

ONIX3_NAMESPACE = "http://ns.editeur.org/onix/3.0/reference"
SUPPORTED_VERSIONS = ("3.0", "2.1")

# ONIX code list 17
CONTRIBUTOR_ROLES = {
    ContributionType.AUTHOR: "A01",
    ContributionType.EDITOR: "B01",
    ContributionType.TRANSLATOR: "B06",
    ContributionType.PHOTOGRAPHER: "A13",
    ContributionType.ILLUSTRATOR: "A12",
    ContributionType.MUSIC_EDITOR: "B25",
    ContributionType.FOREWORD_BY: "A23",
    ContributionType.INTRODUCTION_BY: "A24",
    ContributionType.AFTERWORD_BY: "A19",
    ContributionType.PREFACE_BY: "A15",
}

# ONIX code list 26
SUBJECT_SCHEMES = {
    SubjectType.BIC: "12",
    SubjectType.BISAC: "10",
    SubjectType.THEMA: "93",
    SubjectType.LCC: "04",
    SubjectType.CUSTOM: "24",
    SubjectType.KEYWORD: "20",
}

# ONIX code list 64
PUBLISHING_STATUS = {
    WorkStatus.UNSPECIFIED: "00",
    WorkStatus.CANCELLED: "01",
    WorkStatus.FORTHCOMING: "02",
    WorkStatus.POSTPONED_INDEFINITELY: "03",
    WorkStatus.ACTIVE: "04",
    WorkStatus.NO_LONGER_OUR_PRODUCT: "05",
    WorkStatus.OUT_OF_STOCK_INDEFINITELY: "06",
    WorkStatus.OUT_OF_PRINT: "07",
    WorkStatus.INACTIVE: "08",
    WorkStatus.UNKNOWN: "09",
    WorkStatus.REMAINDERED: "10",
    WorkStatus.WITHDRAWN_FROM_SALE: "11",
    WorkStatus.RECALLED: "15",
}

# ONIX 3.0 code lists 150/175: (ProductForm, ProductFormDetail)
PRODUCT_FORMS_30 = {
    PublicationType.PAPERBACK: ("BC", None),
    PublicationType.HARDBACK: ("BB", None),
    PublicationType.PDF: ("EB", "E107"),
    PublicationType.HTML: ("EB", "E105"),
    PublicationType.XML: ("EB", "E113"),
    PublicationType.EPUB: ("EB", "E101"),
    PublicationType.MOBI: ("EB", "E127"),
}

# ONIX 2.1 code lists 7/10: (ProductForm, EpubType)
PRODUCT_FORMS_21 = {
    PublicationType.PAPERBACK: ("BC", None),
    PublicationType.HARDBACK: ("BB", None),
    PublicationType.PDF: ("DG", "002"),
    PublicationType.HTML: ("DG", "001"),
    PublicationType.XML: ("DG", "017"),
    PublicationType.EPUB: ("DG", "029"),
    PublicationType.MOBI: ("DG", "022"),
}


def _availability(status: WorkStatus) -> str:
    """ONIX code list 65"""
    if status is WorkStatus.ACTIVE:
        return "21"
    if status is WorkStatus.FORTHCOMING:
        return "10"
    return "40"


class OnixSpecification:
    """ONIX product feed for one release"""

    content_type = "application/xml"
    file_extension = "xml"

    def __init__(
        self, version: str = "3.0", config: OnixConfig | None = None, clock: Clock = utc_now
    ):
        if version not in SUPPORTED_VERSIONS:
            raise ValueError(f"Unsupported ONIX release: {version}")
        self.format_id = "onix"
        self.version = version
        self.name = f"ONIX for Books {version}"
        self._config = config or OnixConfig()
        self._clock = clock

    def validate(self, work: Work) -> list[Issue]:
        issues: list[Issue] = []
        issues.extend(identifier_issues(work, Severity.ERROR))
        if self.version == "2.1":
            if not work.isbns:
                issues.append(Issue.error("isbn", "ONIX 2.1 requires at least one ISBN"))
        elif not work.has_minimal_identity:
            issues.append(
                Issue.error("identifier", "ONIX 3.0 requires a DOI or at least one ISBN")
            )

        skipped = [p.publication_type.value for p in work.publications if not p.isbn]
        if skipped and work.isbns:
            issues.append(
                Issue.warning(
                    "publications",
                    f"Publications without ISBN are not listed: {', '.join(skipped)}",
                )
            )
        if not work.contributions:
            issues.append(Issue.warning("contributions", "No contributors; NoContributor is sent"))
        if work.publication_date is None:
            issues.append(Issue.warning("publication_date", "Publishing date omitted"))
        if not work.abstract:
            issues.append(Issue.warning("long_abstract", "No description text"))
        for publication in work.publications:
            if publication.isbn and not publication.prices:
                issues.append(
                    Issue.warning(
                        f"publications[{publication.isbn}].prices",
                        "No prices; supplied as free of charge",
                    )
                )
        return issues

    def generate(self, work: Work, sink: BinarySink) -> None:
        self.assemble([self.render_record(work)], sink)

    def render_record(self, work: Work) -> list[ET.Element]:
        """Product elements for one work"""
        comments = warning_comments(self.validate(work))
        publications: list[Publication | None] = [p for p in work.publications if p.isbn]
        if not publications:
            publications = [None]
        return [self._product(work, publication, comments) for publication in publications]

    def assemble(self, fragments: Sequence[list[ET.Element]], sink: BinarySink) -> None:
        root = ET.Element("ONIXMessage", {"release": self.version})
        if self.version == "3.0":
            root.set("xmlns", ONIX3_NAMESPACE)
        self._header(root)
        for products in fragments:
            root.extend(products)
        write_document(sink, serialize_xml(root))

    # Header -----------------------------------------------------------

    def _header(self, root: ET.Element) -> None:
        header = sub_element(root, "Header")
        sent = self._clock()
        if self.version == "3.0":
            sender = sub_element(header, "Sender")
            sub_element(sender, "SenderName", self._config.sender_name)
            if self._config.sender_email:
                sub_element(sender, "EmailAddress", self._config.sender_email)
            sub_element(header, "SentDateTime", sent.strftime("%Y%m%dT%H%M%SZ"))
        else:
            sub_element(header, "FromCompany", self._config.sender_name)
            if self._config.sender_email:
                sub_element(header, "FromEmail", self._config.sender_email)
            sub_element(header, "SentDate", sent.strftime("%Y%m%d"))

    # Product ----------------------------------------------------------

    def _product(
        self, work: Work, publication: Publication | None, comments: list[str]
    ) -> ET.Element:
        product = ET.Element("Product")
        for comment in comments:
            add_comment(product, comment)
        reference = publication.publication_id if publication else work.work_id
        sub_element(product, "RecordReference", f"urn:uuid:{reference}")
        sub_element(product, "NotificationType", "03")
        if self.version == "3.0":
            sub_element(product, "RecordSourceType", "01")
        self._identifier(product, "01", work.work_id)
        if publication and publication.isbn:
            self._identifier(product, "15", publication.isbn)
        if work.doi:
            self._identifier(product, "06", work.doi)

        if self.version == "3.0":
            self._product_30(product, work, publication)
        else:
            self._product_21(product, work, publication)
        return product

    @staticmethod
    def _identifier(product: ET.Element, id_type: str, value: str) -> None:
        identifier = sub_element(product, "ProductIdentifier")
        sub_element(identifier, "ProductIDType", id_type)
        sub_element(identifier, "IDValue", value)

    def _product_30(self, product: ET.Element, work: Work, publication: Publication | None) -> None:
        detail = sub_element(product, "DescriptiveDetail")
        sub_element(detail, "ProductComposition", "00")
        form, form_detail = (
            PRODUCT_FORMS_30[publication.publication_type] if publication else ("EB", None)
        )
        sub_element(detail, "ProductForm", form)
        if form_detail:
            sub_element(detail, "ProductFormDetail", form_detail)

        title_detail = sub_element(detail, "TitleDetail")
        sub_element(title_detail, "TitleType", "01")
        element = sub_element(title_detail, "TitleElement")
        sub_element(element, "TitleElementLevel", "01")
        sub_element(element, "TitleText", work.title)
        if work.subtitle:
            sub_element(element, "Subtitle", work.subtitle)

        self._contributors(detail, work)
        if work.edition:
            sub_element(detail, "EditionNumber", work.edition)
        for language in work.languages:
            lang = sub_element(detail, "Language")
            sub_element(lang, "LanguageRole", "01")
            sub_element(lang, "LanguageCode", language.language_code)
        if work.page_count:
            extent = sub_element(detail, "Extent")
            sub_element(extent, "ExtentType", "00")
            sub_element(extent, "ExtentValue", work.page_count)
            sub_element(extent, "ExtentUnit", "03")
        self._subjects(detail, work)

        if work.abstract:
            collateral = sub_element(product, "CollateralDetail")
            text_content = sub_element(collateral, "TextContent")
            sub_element(text_content, "TextType", "03")
            sub_element(text_content, "ContentAudience", "00")
            sub_element(text_content, "Text", strip_markup(work.abstract))

        publishing = sub_element(product, "PublishingDetail")
        imprint = sub_element(publishing, "Imprint")
        sub_element(imprint, "ImprintName", work.imprint.imprint_name)
        publisher = sub_element(publishing, "Publisher")
        sub_element(publisher, "PublishingRole", "01")
        sub_element(publisher, "PublisherName", work.publisher_name)
        if work.place:
            sub_element(publishing, "CityOfPublication", work.place)
        sub_element(publishing, "PublishingStatus", PUBLISHING_STATUS[work.work_status])
        if work.publication_date:
            publishing_date = sub_element(publishing, "PublishingDate")
            sub_element(publishing_date, "PublishingDateRole", "01")
            sub_element(
                publishing_date, "Date", work.publication_date.strftime("%Y%m%d"), dateformat="00"
            )

        if publication:
            supply = sub_element(sub_element(product, "ProductSupply"), "SupplyDetail")
            supplier = sub_element(supply, "Supplier")
            sub_element(supplier, "SupplierRole", "09")
            sub_element(supplier, "SupplierName", work.publisher_name)
            sub_element(supply, "ProductAvailability", _availability(work.work_status))
            if not publication.prices:
                sub_element(supply, "UnpricedItemType", "01")
            for price in publication.prices:
                price_element = sub_element(supply, "Price")
                sub_element(price_element, "PriceType", "02")
                sub_element(price_element, "PriceAmount", f"{price.unit_price:.2f}")
                sub_element(price_element, "CurrencyCode", price.currency_code)

    def _product_21(self, product: ET.Element, work: Work, publication: Publication | None) -> None:
        form, epub_type = (
            PRODUCT_FORMS_21[publication.publication_type] if publication else ("DG", None)
        )
        sub_element(product, "ProductForm", form)
        if epub_type:
            sub_element(product, "EpubType", epub_type)

        title = sub_element(product, "Title")
        sub_element(title, "TitleType", "01")
        sub_element(title, "TitleText", work.title)
        if work.subtitle:
            sub_element(title, "Subtitle", work.subtitle)

        self._contributors(product, work)
        if work.edition:
            sub_element(product, "EditionNumber", work.edition)
        for language in work.languages:
            lang = sub_element(product, "Language")
            sub_element(lang, "LanguageRole", "01")
            sub_element(lang, "LanguageCode", language.language_code)
        if work.page_count:
            sub_element(product, "NumberOfPages", work.page_count)
        self._subjects(product, work)

        if work.abstract:
            other_text = sub_element(product, "OtherText")
            sub_element(other_text, "TextTypeCode", "01")
            sub_element(other_text, "Text", strip_markup(work.abstract))

        imprint = sub_element(product, "Imprint")
        sub_element(imprint, "ImprintName", work.imprint.imprint_name)
        publisher = sub_element(product, "Publisher")
        sub_element(publisher, "PublishingRole", "01")
        sub_element(publisher, "PublisherName", work.publisher_name)
        if work.place:
            sub_element(product, "CityOfPublication", work.place)
        sub_element(product, "PublishingStatus", PUBLISHING_STATUS[work.work_status])
        if work.publication_date:
            sub_element(product, "PublicationDate", work.publication_date.strftime("%Y%m%d"))

        if publication:
            supply = sub_element(product, "SupplyDetail")
            sub_element(supply, "SupplierName", work.publisher_name)
            sub_element(supply, "SupplierRole", "01")
            sub_element(supply, "ProductAvailability", _availability(work.work_status))
            for price in publication.prices:
                price_element = sub_element(supply, "Price")
                sub_element(price_element, "PriceTypeCode", "02")
                sub_element(price_element, "PriceAmount", f"{price.unit_price:.2f}")
                sub_element(price_element, "CurrencyCode", price.currency_code)

    def _contributors(self, parent: ET.Element, work: Work) -> None:
        if not work.contributions:
            sub_element(parent, "NoContributor")
            return
        for contribution in work.contributions:
            contributor = sub_element(parent, "Contributor")
            sub_element(contributor, "SequenceNumber", contribution.rank)
            sub_element(
                contributor, "ContributorRole", CONTRIBUTOR_ROLES[contribution.contribution_type]
            )
            if contribution.orcid and self.version == "3.0":
                name_identifier = sub_element(contributor, "NameIdentifier")
                sub_element(name_identifier, "NameIDType", "21")
                sub_element(name_identifier, "IDValue", contribution.orcid)
            sub_element(contributor, "PersonName", contribution.full_name)
            if contribution.first_name:
                sub_element(contributor, "NamesBeforeKey", contribution.first_name)
            sub_element(contributor, "KeyNames", contribution.last_name)

    @staticmethod
    def _subjects(parent: ET.Element, work: Work) -> None:
        for subject in work.subjects:
            element = sub_element(parent, "Subject")
            sub_element(element, "SubjectSchemeIdentifier", SUBJECT_SCHEMES[subject.subject_type])
            if subject.subject_type is SubjectType.KEYWORD:
                sub_element(element, "SubjectHeadingText", subject.subject_code)
            else:
                sub_element(element, "SubjectCode", subject.subject_code)
