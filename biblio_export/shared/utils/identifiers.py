# biblio_export/shared/utils/identifiers.py

"""ISBN, DOI and ORCID normalization helpers"""

# Standard library imports
from re import sub

DOI_URL_PREFIXES = ("https://doi.org/", "http://doi.org/", "https://dx.doi.org/", "doi:")
ORCID_URL_PREFIX = "https://orcid.org/"


def isbn13_check_digit(first_twelve: str) -> str:
    """Compute the ISBN-13 check digit for 12 leading digits"""
    total = sum(int(digit) * (1 if i % 2 == 0 else 3) for i, digit in enumerate(first_twelve))
    return str((10 - total % 10) % 10)


def is_valid_isbn13(isbn: str) -> bool:
    """Check an unhyphenated ISBN-13 including its check digit"""
    if len(isbn) != 13 or not isbn.isdigit():
        return False
    if not isbn.startswith(("978", "979")):
        return False
    return isbn13_check_digit(isbn[:12]) == isbn[12]


def normalize_isbn(value: str) -> str:
    """Normalize an ISBN-10 or ISBN-13 to 13 bare digits

    Args:
        value: ISBN with or without hyphens and spaces

    Returns:
        Thirteen digit ISBN

    Raises:
        ValueError: If the value is not a valid ISBN
    """
    compact = sub(r"[\s-]", "", value).upper()
    if len(compact) == 10 and compact[:9].isdigit() and (compact[9].isdigit() or compact[9] == "X"):
        check = sum((10 - i) * (10 if c == "X" else int(c)) for i, c in enumerate(compact))
        if check % 11 != 0:
            raise ValueError(f"Invalid ISBN-10 checksum: {value}")
        body = "978" + compact[:9]
        return body + isbn13_check_digit(body)
    if not is_valid_isbn13(compact):
        raise ValueError(f"Invalid ISBN: {value}")
    return compact


def hyphenate_isbn13(isbn: str) -> str:
    """Format a bare ISBN-13 as prefix-body-check

    Registrant ranges are not known here, so the body is kept in one group.
    """
    return f"{isbn[:3]}-{isbn[3:12]}-{isbn[12]}"


def normalize_doi(value: str) -> str:
    """Strip resolver prefixes from a DOI

    Raises:
        ValueError: If the remaining value does not look like a DOI
    """
    doi = value.strip()
    for prefix in DOI_URL_PREFIXES:
        if doi.lower().startswith(prefix):
            doi = doi[len(prefix) :]
            break
    if not is_valid_doi(doi):
        raise ValueError(f"Invalid DOI: {value}")
    return doi


def is_valid_doi(doi: str) -> bool:
    """Bare DOI: a "10." directory prefix, a slash and a non-empty suffix"""
    prefix, _, suffix = doi.partition("/")
    return prefix.startswith("10.") and len(prefix) > 3 and bool(suffix)


def normalize_orcid(value: str) -> str:
    """Strip the resolver prefix from an ORCID iD"""
    orcid = value.strip()
    if orcid.startswith(ORCID_URL_PREFIX):
        orcid = orcid[len(ORCID_URL_PREFIX) :]
    return orcid
