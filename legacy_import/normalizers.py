"""Field normalizers for legacy person and clinical-note values.

Every function here is pure and tolerant: ``None`` or an empty cell yields an
empty string, and a value that does not fit the expected shape is passed
through unchanged rather than rejected. The legacy exports are dirty, and the
import keeps whatever it cannot confidently rewrite.
"""

from __future__ import annotations

import re

BR_DATE_PATTERN = re.compile(r"[0-9]{2}/[0-9]{2}/[0-9]{4}")
ISO_DATE_PREFIX = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")

_NON_DIGIT = re.compile(r"[^0-9]")
_PHONE_DISALLOWED = re.compile(r"[^0-9()\-\s]")
_PHONE_PLACEHOLDER = re.compile(r"[()0\-\s]+")

_BR_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)
_P_CLOSE = re.compile(r"</p>", re.IGNORECASE)
_P_OPEN = re.compile(r"<p>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]*>")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_HORIZONTAL_SPACE = re.compile(r"[ \t]+")

# Decoded in this order, after tags are stripped, so "&lt;b&gt;" survives as text.
HTML_ENTITIES = [
    (re.compile(r"&nbsp;", re.IGNORECASE), " "),
    (re.compile(r"&amp;", re.IGNORECASE), "&"),
    (re.compile(r"&lt;", re.IGNORECASE), "<"),
    (re.compile(r"&gt;", re.IGNORECASE), ">"),
    (re.compile(r"&quot;", re.IGNORECASE), '"'),
]

SEX_LABELS = {
    "M": "Masculino",
    "F": "Feminino",
}

MARITAL_STATUS_LABELS = {
    "solteiro": "Solteiro(a)",
    "casado": "Casado(a)",
    "divorciado": "Divorciado(a)",
    "viuvo": "Viúvo(a)",
    "viúvo": "Viúvo(a)",
    "separado": "Separado(a)",
    "uniao estavel": "União Estável",
    "união estável": "União Estável",
}


def clean_tax_id(value: str | None) -> str:
    """Strip every non-digit from a CPF/CNPJ value.

    Examples
    --------
    >>> clean_tax_id("123.456.789-01")
    '12345678901'
    """
    if not value:
        return ""
    return _NON_DIGIT.sub("", value)


def format_tax_id(value: str | None) -> str:
    """Format an 11-digit CPF as ``###.###.###-##``.

    Values that do not clean to exactly 11 digits (CNPJs, truncated ids,
    free text) are returned as given. Formatting an already formatted CPF
    returns it unchanged.

    Parameters
    ----------
    value : str | None
        Raw ``cnpj_cpf`` cell.

    Returns
    -------
    str
        Formatted CPF, the original value, or empty string for None.

    Examples
    --------
    >>> format_tax_id("12345678901")
    '123.456.789-01'

    >>> format_tax_id("12.345.678/0001-90")
    '12.345.678/0001-90'
    """
    digits = clean_tax_id(value)
    if len(digits) != 11:
        return value or ""
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def format_date_br(value: str | None) -> str:
    """Convert an ISO date (``YYYY-MM-DD``, optionally followed by a time) to
    ``DD/MM/YYYY``.

    Values already in ``DD/MM/YYYY`` pass through; anything else is returned
    unchanged. No calendar validation is done.

    Examples
    --------
    >>> format_date_br("2024-03-15 10:30:00")
    '15/03/2024'

    >>> format_date_br("15/03/2024")
    '15/03/2024'
    """
    if not value:
        return ""

    if BR_DATE_PATTERN.fullmatch(value):
        return value

    match = ISO_DATE_PREFIX.match(value)
    if match:
        year, month, day = match.groups()
        return f"{day}/{month}/{year}"

    return value


def is_br_date(value: str) -> bool:
    """Return True when value is exactly ``DD/MM/YYYY``."""
    return bool(BR_DATE_PATTERN.fullmatch(value))


def normalize_phone(value: str | None) -> str:
    """Keep only digits, parentheses, hyphens and whitespace.

    Legacy exports fill unknown numbers with placeholders such as
    ``(00) 0000-0000``; a value made only of zeros and punctuation is
    treated as no number at all.

    Examples
    --------
    >>> normalize_phone("(11) 98765-4321 ramal")
    '(11) 98765-4321'

    >>> normalize_phone("(00) 0000-0000")
    ''
    """
    if not value:
        return ""
    cleaned = _PHONE_DISALLOWED.sub("", value).strip()
    if _PHONE_PLACEHOLDER.fullmatch(cleaned):
        return ""
    return cleaned


def normalize_sex(value: str | None) -> str:
    """Map ``M``/``F`` (any case) to ``Masculino``/``Feminino``."""
    if not value:
        return ""
    return SEX_LABELS.get(value.upper().strip(), value)


def normalize_marital_status(value: str | None) -> str:
    """Map legacy marital-status spellings to the destination labels.

    Unknown values pass through so no information is lost.

    Examples
    --------
    >>> normalize_marital_status(" CASADO ")
    'Casado(a)'

    >>> normalize_marital_status("Amasiado")
    'Amasiado'
    """
    if not value:
        return ""
    return MARITAL_STATUS_LABELS.get(value.lower().strip(), value)


def clean_html(value: str | None) -> str:
    """Convert a fragment of legacy note HTML to plain text.

    Line-break tags and closing paragraphs become newlines, all other tags are
    removed, a fixed set of entities is decoded, and whitespace is collapsed
    (at most one blank line, single spaces within a line).

    Parameters
    ----------
    value : str | None
        HTML fragment from the ``descricao`` column.

    Returns
    -------
    str
        Trimmed plain text; empty string for None.
    """
    if not value:
        return ""

    text = _BR_TAG.sub("\n", value)
    text = _P_CLOSE.sub("\n", text)
    text = _P_OPEN.sub("", text)
    text = _ANY_TAG.sub("", text)
    for pattern, replacement in HTML_ENTITIES:
        text = pattern.sub(replacement, text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    text = _HORIZONTAL_SPACE.sub(" ", text)
    return text.strip()
