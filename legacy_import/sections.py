"""Section extraction for legacy clinical notes.

Notes written with the legacy template look like::

    <b>Queixa principal:</b> dor de cabeça<p><b>Diagnóstico:</b> enxaqueca<p>

Each label is searched independently over the whole note, and its text runs
until the next ``<p>``, the next ``<b>`` or the end of the note. The search
does not continue across a line break, so a section whose text spills onto
another line without a closing tag is not captured. Notes that do not follow
the template at all are kept whole as observations.
"""

from __future__ import annotations

import logging
import re
from typing import Dict

from .enums import RecordSection
from .normalizers import clean_html

LOG = logging.getLogger(__name__)

OBSERVACOES_KEY = "observacoes"


def _section_pattern(label: str) -> re.Pattern[str]:
    return re.compile(
        rf"<b>{re.escape(label)}</b>\s*(.*?)(?=<p>|<b>|\Z)",
        re.IGNORECASE,
    )


SECTION_PATTERNS = [
    (section.value, _section_pattern(section.label)) for section in RecordSection
]


def extract_sections(html: str) -> Dict[str, str]:
    """Split a clinical note into its labelled narrative sections.

    Parameters
    ----------
    html : str
        Raw ``descricao`` value from the PRONTUARIO export.

    Returns
    -------
    Dict[str, str]
        Cleaned text keyed by ``queixa``, ``historia``, ``diagnostico``,
        ``tratamento`` and ``prescricao`` for every label found. When no
        label is found, a single ``observacoes`` key holding the whole
        cleaned note.

    Examples
    --------
    >>> extract_sections("<b>Queixa principal:</b> dor de cabeça<p>")
    {'queixa': 'dor de cabeça'}

    >>> extract_sections("Paciente retornou bem.")
    {'observacoes': 'Paciente retornou bem.'}
    """
    sections: Dict[str, str] = {}

    for key, pattern in SECTION_PATTERNS:
        match = pattern.search(html)
        if match and match.group(1):
            sections[key] = clean_html(match.group(1))

    if not sections:
        sections[OBSERVACOES_KEY] = clean_html(html)
    else:
        LOG.debug("Extracted sections %s", sorted(sections))

    return sections
