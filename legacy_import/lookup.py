"""Person lookup used to resolve clinical-note references."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Mapping

from .data_models import PersonLookupEntry
from .normalizers import format_tax_id

LOG = logging.getLogger(__name__)


def build_person_lookup(
    person_rows: Iterable[Mapping[str, str]],
) -> Mapping[str, PersonLookupEntry]:
    """Index legacy persons by id.

    Both patients and professionals are indexed, since clinical notes refer to
    either. Rows without an id are skipped. When an id repeats, the later
    row replaces the earlier one.

    Parameters
    ----------
    person_rows : Iterable[Mapping[str, str]]
        Parsed PESSOA rows.

    Returns
    -------
    Mapping[str, PersonLookupEntry]
        Read-only mapping of person id to name and formatted CPF.
    """
    lookup: Dict[str, PersonLookupEntry] = {}
    duplicates = 0

    for row in person_rows:
        person_id = row.get("id")
        if not person_id:
            continue
        if person_id in lookup:
            duplicates += 1
            LOG.debug("Person id %s repeated; keeping the later row", person_id)
        lookup[person_id] = PersonLookupEntry(
            nome=row.get("nome") or "",
            cpf=format_tax_id(row.get("cnpj_cpf")),
        )

    if duplicates:
        LOG.warning("%d repeated person id(s) in person file", duplicates)
    LOG.info("Built person lookup with %d entries", len(lookup))
    return MappingProxyType(lookup)
