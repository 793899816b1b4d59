# tests/unit/adapters/specifications/test_citation.py

"""Tests for BibTeX and CSL-JSON output and citation keys"""

# Standard library imports
from io import BytesIO
from json import loads
from re import findall

# Third party imports
from hypothesis import given
from hypothesis import strategies as st

# Local imports
from biblio_export.adapters.specifications.citation import BibtexSpecification
from biblio_export.adapters.specifications.citation import CslJsonSpecification
from biblio_export.adapters.specifications.citation import citation_key_base
from biblio_export.adapters.specifications.citation import disambiguate_keys
from biblio_export.core.domain.enums import ContributionType
from biblio_export.core.domain.enums import PublicationType
from biblio_export.core.domain.enums import WorkType
from biblio_export.core.domain.issue import has_errors
from tests.fixtures.works import WorkBuilder
from tests.fixtures.works import make_isbn

key_bases = st.lists(st.sampled_from(["smith2020", "smith2020a", "doe2019", "ndnd", "x1"]))


def _generate(specification, work) -> bytes:
    sink = BytesIO()
    specification.generate(work, sink)
    return sink.getvalue()


def _assemble(specification, works) -> bytes:
    sink = BytesIO()
    specification.assemble([specification.render_record(w) for w in works], sink)
    return sink.getvalue()


class TestCitationKeys:
    """Key derivation and disambiguation"""

    def test_surname_and_year(self):
        work = WorkBuilder.monograph(
            contributions=(WorkBuilder.contribution("Gödel", "Kurt"),)
        )
        assert citation_key_base(work) == "godel2021"

    def test_title_word_without_contributors(self):
        work = WorkBuilder.monograph(contributions=(), publication_date=None)
        assert citation_key_base(work) == "opennd"

    def test_singletons_unchanged(self):
        assert disambiguate_keys(["doe2019", "smith2020"]) == ["doe2019", "smith2020"]

    def test_duplicates_suffixed_in_order(self):
        keys = disambiguate_keys(["smith2020", "doe2019", "smith2020", "smith2020"])
        assert keys == ["smith2020a", "doe2019", "smith2020b", "smith2020c"]

    def test_suffix_skips_existing_key(self):
        keys = disambiguate_keys(["smith2020", "smith2020a", "smith2020"])
        assert keys == ["smith2020b", "smith2020a", "smith2020c"]

    @given(key_bases)
    def test_keys_are_unique(self, bases: list[str]) -> None:
        keys = disambiguate_keys(bases)
        assert len(set(keys)) == len(keys)

    @given(key_bases)
    def test_keys_are_deterministic(self, bases: list[str]) -> None:
        assert disambiguate_keys(bases) == disambiguate_keys(list(bases))

    @given(key_bases)
    def test_keys_extend_their_base(self, bases: list[str]) -> None:
        for base, key in zip(bases, disambiguate_keys(bases)):
            assert key.startswith(base)
            if bases.count(base) == 1:
                assert key == base


class TestCslJson:
    """CSL-JSON v1.0 output"""

    def test_single_work_scenario(self):
        """One ISBN, one contributor: one item typed like the work, identified by its DOI"""
        spec = CslJsonSpecification()
        work = WorkBuilder.monograph(
            publications=(WorkBuilder.publication(PublicationType.PAPERBACK, make_isbn(7)),)
        )
        assert not has_errors(spec.validate(work))

        items = loads(_generate(spec, work))
        assert len(items) == 1
        assert items[0]["type"] == "book"
        assert items[0]["id"] == work.doi
        assert items[0]["ISBN"] == make_isbn(7)
        assert items[0]["author"] == [{"family": "Lovelace", "given": "Ada"}]
        assert items[0]["issued"] == {"date-parts": [[2021, 3, 15]]}

    def test_chapter_type(self):
        work = WorkBuilder.monograph(work_type=WorkType.BOOK_CHAPTER)
        items = loads(_generate(CslJsonSpecification(), work))
        assert items[0]["type"] == "chapter"

    def test_fallback_id_without_doi(self):
        work = WorkBuilder.monograph(doi=None)
        items = loads(_generate(CslJsonSpecification(), work))
        assert items[0]["id"] == "lovelace2021"
        assert items[0]["id"] == loads(_generate(CslJsonSpecification(), work))[0]["id"]

    def test_undated_anonymous_work_is_not_rejected(self):
        work = WorkBuilder.monograph(contributions=(), publication_date=None)
        issues = CslJsonSpecification().validate(work)
        assert not has_errors(issues)
        assert {issue.field for issue in issues} >= {"publication_date", "contributions"}

    def test_colliding_keys_in_combined_document(self):
        works = WorkBuilder.catalogue(3)
        items = loads(_assemble(CslJsonSpecification(), works))
        assert [item["citation-key"] for item in items] == [
            "lovelace2021a",
            "lovelace2021b",
            "lovelace2021c",
        ]
        assert [item["id"] for item in items] == [w.doi for w in works]


class TestBibtex:
    """BibTeX v1.0 output"""

    def test_entry_type_and_key(self):
        output = _generate(BibtexSpecification(), WorkBuilder.monograph()).decode("utf-8")
        assert output.startswith("@book{lovelace2021,")
        assert "  doi = {10.11647/OBP.0001}," in output
        assert "  author = {Lovelace, Ada}," in output

    def test_chapter_is_incollection(self):
        work = WorkBuilder.monograph(work_type=WorkType.BOOK_CHAPTER)
        spec = BibtexSpecification()
        assert _generate(spec, work).startswith(b"@incollection{")
        assert "work_type" in {issue.field for issue in spec.validate(work)}

    def test_requires_year(self):
        issues = BibtexSpecification().validate(WorkBuilder.monograph(publication_date=None))
        errors = [issue.field for issue in issues if issue.is_error]
        assert errors == ["publication_date"]

    def test_requires_author_or_editor(self):
        translator = WorkBuilder.contribution(
            "Weaver", "Warren", ContributionType.TRANSLATOR
        )
        issues = BibtexSpecification().validate(WorkBuilder.monograph(contributions=(translator,)))
        assert [issue.field for issue in issues if issue.is_error] == ["contributions"]

    def test_editor_only_is_accepted(self):
        editor = WorkBuilder.contribution("Editor", "Ed", ContributionType.EDITOR)
        spec = BibtexSpecification()
        work = WorkBuilder.monograph(contributions=(editor,))
        assert not has_errors(spec.validate(work))
        assert "  editor = {Editor, Ed}," in _generate(spec, work).decode("utf-8")

    def test_special_characters_escaped(self):
        work = WorkBuilder.monograph(full_title="Profit & Loss: 100% of #1")
        output = _generate(BibtexSpecification(), work).decode("utf-8")
        assert r"title = {Profit \& Loss: 100\% of \#1}," in output

    def test_combined_document_keys_unique(self):
        output = _assemble(BibtexSpecification(), WorkBuilder.catalogue(4)).decode("utf-8")
        keys = findall(r"@\w+\{([^,]+),", output)
        assert keys == ["lovelace2021a", "lovelace2021b", "lovelace2021c", "lovelace2021d"]
