# tests/unit/adapters/specifications/test_marc21.py

"""Tests for binary MARC 21 and MARCXML output"""

# Standard library imports
from io import BytesIO
import xml.etree.ElementTree as ET

# Third party imports
from hypothesis import HealthCheck
from hypothesis import given
from hypothesis import settings
from hypothesis import strategies as st
import pytest

# Local imports
from biblio_export.adapters.specifications.marc21 import FIELD_TERMINATOR
from biblio_export.adapters.specifications.marc21 import LEADER_LENGTH
from biblio_export.adapters.specifications.marc21 import MARCXML_NAMESPACE
from biblio_export.adapters.specifications.marc21 import MAX_ABSTRACT_BYTES
from biblio_export.adapters.specifications.marc21 import RECORD_TERMINATOR
from biblio_export.adapters.specifications.marc21 import SUBFIELD_DELIMITER
from biblio_export.adapters.specifications.marc21 import Marc21Specification
from biblio_export.adapters.specifications.marc21 import MarcRecord
from biblio_export.adapters.specifications.marc21 import MarcXmlSpecification
from biblio_export.adapters.specifications.marc21 import build_marc_record
from biblio_export.core.domain.enums import ContributionType
from biblio_export.core.domain.enums import PublicationType
from biblio_export.core.domain.enums import WorkType
from biblio_export.core.domain.errors import GenerationError
from biblio_export.core.domain.issue import has_errors
from tests.fixtures.works import WorkBuilder
from tests.fixtures.works import make_isbn

NS = {"marc": MARCXML_NAMESPACE}

printable_text = st.text(
    alphabet=st.characters(blacklist_categories=("Cc", "Cs")), min_size=1, max_size=300
).filter(lambda s: s.strip())


def parse_iso2709(data: bytes) -> list[tuple[str, bytes]]:
    """Split one record into (tag, field bytes) using its own leader and directory"""
    leader = data[:LEADER_LENGTH].decode("ascii")
    record_length = int(leader[0:5])
    base_address = int(leader[12:17])
    assert record_length == len(data)
    assert data[-1:] == RECORD_TERMINATOR
    assert data[base_address - 1 : base_address] == FIELD_TERMINATOR

    directory = data[LEADER_LENGTH : base_address - 1]
    assert len(directory) % 12 == 0
    fields = []
    for start in range(0, len(directory), 12):
        entry = directory[start : start + 12].decode("ascii")
        tag, length, offset = entry[:3], int(entry[3:7]), int(entry[7:12])
        field = data[base_address + offset : base_address + offset + length]
        assert field.endswith(FIELD_TERMINATOR)
        fields.append((tag, field))
    assert base_address + sum(len(f) for _, f in fields) + 1 == record_length
    return fields


def _generate(specification, work) -> bytes:
    sink = BytesIO()
    specification.generate(work, sink)
    return sink.getvalue()


class TestIso2709Layout:
    """Leader, directory and field accounting"""

    def test_leader_and_directory_match_bytes(self):
        data = _generate(Marc21Specification(), WorkBuilder.monograph())
        fields = parse_iso2709(data)
        tags = [tag for tag, _ in fields]
        assert tags[:4] == ["001", "005", "007", "008"]
        assert tags == sorted(tags)
        assert data[5:12] == b"nam a22"
        assert data[20:24] == b"4500"

    def test_control_field_values(self):
        fields = dict(parse_iso2709(_generate(Marc21Specification(), WorkBuilder.monograph())))
        assert fields["001"] == b"work-0001" + FIELD_TERMINATOR
        assert fields["005"] == b"20240102030405.0" + FIELD_TERMINATOR
        assert len(fields["008"]) == 41
        assert fields["008"][7:11] == b"2021"
        assert fields["008"][35:38] == b"eng"

    def test_isbn_fields_with_qualifiers(self):
        fields = parse_iso2709(_generate(Marc21Specification(), WorkBuilder.monograph()))
        isbn_fields = [field for tag, field in fields if tag == "020"]
        assert isbn_fields == [
            b"  " + SUBFIELD_DELIMITER + b"a" + make_isbn(2).encode() + SUBFIELD_DELIMITER
            + b"qpaperback" + FIELD_TERMINATOR,
            b"  " + SUBFIELD_DELIMITER + b"a" + make_isbn(3).encode() + SUBFIELD_DELIMITER
            + b"qpdf" + FIELD_TERMINATOR,
        ]

    def test_chapter_bibliographic_level(self):
        chapter = WorkBuilder.monograph(work_type=WorkType.BOOK_CHAPTER)
        data = _generate(Marc21Specification(), chapter)
        assert data[7:8] == b"a"

    def test_multibyte_text_counted_in_bytes(self):
        work = WorkBuilder.monograph(title="Étude à Zürich", full_title="Étude à Zürich")
        parse_iso2709(_generate(Marc21Specification(), work))

    def test_structural_bytes_removed_from_values(self):
        title = "Open\x1eBook\x1f Two\x1dVolumes"
        work = WorkBuilder.monograph(title=title, full_title=title, subtitle="\x1f")
        fields = dict(parse_iso2709(_generate(Marc21Specification(), work)))
        title_field = fields["245"]
        assert title_field.count(FIELD_TERMINATOR) == 1
        assert SUBFIELD_DELIMITER + b"aOpenBook TwoVolumes" in title_field
        assert SUBFIELD_DELIMITER + b"b" not in title_field

    @settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
    @given(title=printable_text, abstract=st.one_of(st.none(), printable_text))
    def test_layout_holds_for_any_text(self, title: str, abstract: str | None) -> None:
        """Declared lengths and offsets always match the serialized bytes"""
        work = WorkBuilder.monograph(title=title, full_title=title, long_abstract=abstract)
        record = build_marc_record(work)
        data = record.to_iso2709()
        parse_iso2709(data)
        assert record.record_length() == len(data)

    def test_concatenated_records(self):
        sink = BytesIO()
        spec = Marc21Specification()
        spec.assemble([spec.render_record(w) for w in WorkBuilder.catalogue(3)], sink)
        data = sink.getvalue()
        offset = 0
        count = 0
        while offset < len(data):
            length = int(data[offset : offset + 5])
            parse_iso2709(data[offset : offset + length])
            offset += length
            count += 1
        assert count == 3


class TestMarcValidation:
    def test_requires_identity(self):
        issues = Marc21Specification().validate(WorkBuilder.monograph(doi=None, publications=()))
        assert [i.field for i in issues if i.is_error] == ["identifier"]

    def test_long_abstract_truncated_with_warning(self):
        work = WorkBuilder.monograph(long_abstract="x" * (MAX_ABSTRACT_BYTES + 500))
        issues = Marc21Specification().validate(work)
        assert not has_errors(issues)
        assert "long_abstract" in {i.field for i in issues}
        fields = dict(parse_iso2709(_generate(Marc21Specification(), work)))
        assert len(fields["520"]) <= 9999

    def test_oversized_field_is_an_error(self):
        work = WorkBuilder.monograph(toc="y" * 12000)
        issues = Marc21Specification().validate(work)
        assert "marc.505" in {i.field for i in issues if i.is_error}

    def test_oversized_field_fails_serialization(self):
        record = MarcRecord("00000nam a2200000 i 4500")
        record.add("505", "0", " ", ("a", "z" * 10000))
        with pytest.raises(GenerationError):
            record.to_iso2709()

    def test_main_entry_only_for_first_author(self):
        editor_first = WorkBuilder.monograph(
            contributions=(
                WorkBuilder.contribution("Editor", "Ed", ContributionType.EDITOR, rank=1),
                WorkBuilder.contribution("Writer", "Wes", rank=2),
            )
        )
        tags = [tag for tag, _ in parse_iso2709(_generate(Marc21Specification(), editor_first))]
        assert "100" not in tags
        assert tags.count("700") == 2


class TestMarcXml:
    def test_well_formed_collection(self):
        spec = MarcXmlSpecification()
        sink = BytesIO()
        spec.assemble([spec.render_record(w) for w in WorkBuilder.catalogue(2)], sink)
        root = ET.fromstring(sink.getvalue())
        assert root.tag == f"{{{MARCXML_NAMESPACE}}}collection"
        records = root.findall("marc:record", NS)
        assert len(records) == 2
        assert records[0].findtext("marc:controlfield[@tag='001']", namespaces=NS) == "work-0001"

    def test_leader_matches_binary(self):
        work = WorkBuilder.monograph()
        binary = _generate(Marc21Specification(), work)
        root = ET.fromstring(_generate(MarcXmlSpecification(), work))
        leader = root.findtext("marc:record/marc:leader", namespaces=NS)
        assert leader == binary[:LEADER_LENGTH].decode("ascii")

    def test_subfields(self):
        work = WorkBuilder.monograph(
            publications=(WorkBuilder.publication(PublicationType.HARDBACK, make_isbn(9)),)
        )
        root = ET.fromstring(_generate(MarcXmlSpecification(), work))
        datafield = root.find("marc:record/marc:datafield[@tag='245']", NS)
        assert datafield.get("ind1") == "1"
        assert datafield.get("ind2") == "4"
        codes = [(sf.get("code"), sf.text) for sf in datafield.findall("marc:subfield", NS)]
        assert codes == [
            ("a", "The Open Book"),
            ("b", "Essays on Access"),
            ("c", "Ada Lovelace"),
        ]
