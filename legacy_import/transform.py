"""Transformation of parsed legacy rows into normalized records.

**Input Contract:**
- Parsed PESSOA rows (dicts keyed by header) for patients
- Parsed PRONTUARIO rows plus the person lookup for clinical records
- Columns may be missing; absent columns are treated as empty

**Output Contract:**
- Patients: every non-professional person with a name, in input order
- Clinical records: every note whose client resolves to a named person and
  whose date is in ``DD/MM/YYYY`` form after reformatting, in input order

**Error Handling:**
- Rows that cannot be normalized are dropped, never raised; drop counts are
  logged and surface to callers only through the pipeline stats
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .data_models import MedicalRecord, PatientRecord, PersonLookupEntry
from .enums import PersonType
from .normalizers import (
    clean_html,
    format_date_br,
    format_tax_id,
    is_br_date,
    normalize_marital_status,
    normalize_phone,
    normalize_sex,
)
from .sections import OBSERVACOES_KEY, extract_sections

LOG = logging.getLogger(__name__)

PERSON_COLUMNS = [
    "id",
    "nome",
    "email",
    "cnpj_cpf",
    "ie_rg",
    "sexo",
    "estado_civil",
    "nascimento",
    "CEP",
    "endereco",
    "numero",
    "complemento",
    "bairro",
    "telefone",
    "celular",
    "profissao",
    "mae_nome",
    "pai_nome",
    "tipo",
    "tipo_sanguineo",
    "escolaridade",
    "observacao",
]

NOTE_COLUMNS = ["id", "id_cliente", "id_profissional", "data", "descricao"]

HISTORY_PREFIX = "História: "


def rows_to_frame(rows: Iterable[Mapping[str, Any]], columns: List[str]) -> pd.DataFrame:
    """Build a string-only DataFrame from parsed rows.

    Every column in ``columns`` is guaranteed to exist; missing columns and
    missing cells are filled with empty strings.
    """
    frame = pd.DataFrame.from_records(list(rows))
    for column in columns:
        if column not in frame.columns:
            frame[column] = ""
    return frame.fillna("").astype(str)


def professional_mask(frame: pd.DataFrame) -> pd.Series:
    """Boolean mask of rows whose ``tipo`` is ``profissional``."""
    return frame["tipo"].map(PersonType.from_string).eq(PersonType.PROFISSIONAL)


def count_professionals(person_rows: Iterable[Mapping[str, Any]]) -> int:
    frame = rows_to_frame(person_rows, ["tipo"])
    return int(professional_mask(frame).sum())


def transform_patients(
    person_rows: Iterable[Mapping[str, Any]],
) -> List[PatientRecord]:
    """Map PESSOA rows to patient records.

    Professionals are excluded, as are rows without a name. The primary
    ``telefone`` is the mobile number when there is one, otherwise the
    landline; the landline is also kept on its own in ``telefone_fixo``.

    Parameters
    ----------
    person_rows : Iterable[Mapping[str, Any]]
        Parsed PESSOA rows.

    Returns
    -------
    List[PatientRecord]
        Patients in input order.
    """
    frame = rows_to_frame(person_rows, PERSON_COLUMNS)
    clients = frame.loc[~professional_mask(frame)]

    mobile = clients["celular"].map(normalize_phone)
    landline = clients["telefone"].map(normalize_phone)

    normalized = pd.DataFrame(
        {
            "nome": clients["nome"],
            "cpf": clients["cnpj_cpf"].map(format_tax_id),
            "rg": clients["ie_rg"],
            "telefone": mobile.where(mobile != "", landline),
            "telefone_fixo": landline,
            "email": clients["email"],
            "data_nascimento": clients["nascimento"].map(format_date_br),
            "sexo": clients["sexo"].map(normalize_sex),
            "estado_civil": clients["estado_civil"].map(normalize_marital_status),
            "profissao": clients["profissao"],
            "nome_mae": clients["mae_nome"],
            "nome_pai": clients["pai_nome"],
            "cep": clients["CEP"],
            "endereco": clients["endereco"],
            "numero": clients["numero"],
            "complemento": clients["complemento"],
            "bairro": clients["bairro"],
            "tipo_sanguineo": clients["tipo_sanguineo"],
            "escolaridade": clients["escolaridade"],
            "observacoes": clients["observacao"],
        },
        columns=PatientRecord.field_names(),
    )

    named = normalized.loc[normalized["nome"] != ""]
    unnamed = len(normalized) - len(named)
    if unnamed:
        LOG.warning("Skipped %d person row(s) without a name", unnamed)

    patients = [
        PatientRecord(**record) for record in named.to_dict(orient="records")
    ]
    LOG.info(
        "Transformed %d patients from %d person rows (%d professionals excluded)",
        len(patients),
        len(frame),
        len(frame) - len(clients),
    )
    return patients


def build_observations(description: str, sections: Dict[str, str]) -> str:
    """Choose the free-text observations for a clinical record.

    Prefers the extractor's own observations (set when the note had no
    labels), then the history section with its label restored, then the
    whole cleaned note.
    """
    if sections.get(OBSERVACOES_KEY):
        return sections[OBSERVACOES_KEY]
    if sections.get("historia"):
        return HISTORY_PREFIX + sections["historia"]
    return clean_html(description)


def link_note(
    row: Mapping[str, str], lookup: Mapping[str, PersonLookupEntry]
) -> Optional[MedicalRecord]:
    """Normalize one PRONTUARIO row, or return None when it must be dropped.

    A row is dropped when its ``id_cliente`` does not resolve to a named
    person, or when its ``data`` does not reformat to ``DD/MM/YYYY``.
    """
    patient = lookup.get(row["id_cliente"])
    if patient is None or not patient.nome:
        LOG.debug("Note %s: client %r not found", row["id"], row["id_cliente"])
        return None

    data_registro = format_date_br(row["data"])
    if not data_registro or not is_br_date(data_registro):
        LOG.debug("Note %s: unusable date %r", row["id"], row["data"])
        return None

    professional = lookup.get(row["id_profissional"])
    description = row["descricao"]
    sections = extract_sections(description)

    return MedicalRecord(
        cpf_paciente=patient.cpf,
        nome_paciente=patient.nome,
        nome_profissional=professional.nome if professional else "",
        data_registro=data_registro,
        queixa=sections.get("queixa", ""),
        diagnostico=sections.get("diagnostico", ""),
        tratamento=sections.get("tratamento", ""),
        prescricao=sections.get("prescricao", ""),
        observacoes=build_observations(description, sections),
    )


def transform_medical_records(
    note_rows: Iterable[Mapping[str, Any]],
    lookup: Mapping[str, PersonLookupEntry],
) -> List[MedicalRecord]:
    """Map PRONTUARIO rows to clinical records linked through the lookup.

    Parameters
    ----------
    note_rows : Iterable[Mapping[str, Any]]
        Parsed PRONTUARIO rows.
    lookup : Mapping[str, PersonLookupEntry]
        Person lookup from ``build_person_lookup``.

    Returns
    -------
    List[MedicalRecord]
        Linked records in input order.
    """
    frame = rows_to_frame(note_rows, NOTE_COLUMNS)

    records: List[MedicalRecord] = []
    for row in frame[NOTE_COLUMNS].to_dict(orient="records"):
        record = link_note(row, lookup)
        if record is not None:
            records.append(record)

    dropped = len(frame) - len(records)
    if dropped:
        LOG.warning(
            "Dropped %d of %d clinical notes (unknown client or missing date)",
            dropped,
            len(frame),
        )
    LOG.info("Linked %d clinical records", len(records))
    return records
