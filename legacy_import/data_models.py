"""Unified data models for the legacy import pipeline.

This module provides the dataclasses passed between pipeline steps, from the
parsed legacy exports through to the normalized records handed to the
destination import.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, List


@dataclass(frozen=True)
class ParsedCsv:
    """Result of parsing one semicolon-delimited legacy export.

    Parameters
    ----------
    headers : List[str]
        Trimmed column names from the first line, BOM removed.
    rows : List[Dict[str, str]]
        One mapping per data line, keyed by header. Values are trimmed strings;
        ``NULL`` cells are already converted to empty strings.
    """

    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class PersonLookupEntry:
    """Lookup value for one legacy person id.

    Parameters
    ----------
    nome : str
        Person name as exported (may be empty).
    cpf : str
        Tax id formatted as ``###.###.###-##`` when it has 11 digits, the raw
        value otherwise.
    """

    nome: str
    cpf: str


@dataclass(frozen=True)
class PatientRecord:
    """Normalized patient ready for the destination import.

    Field order is the column order of the patients export. Only ``nome`` is
    guaranteed non-empty; every other field defaults to an empty string.
    """

    nome: str
    cpf: str = ""
    rg: str = ""
    telefone: str = ""
    telefone_fixo: str = ""
    email: str = ""
    data_nascimento: str = ""
    sexo: str = ""
    estado_civil: str = ""
    profissao: str = ""
    nome_mae: str = ""
    nome_pai: str = ""
    cep: str = ""
    endereco: str = ""
    numero: str = ""
    complemento: str = ""
    bairro: str = ""
    tipo_sanguineo: str = ""
    escolaridade: str = ""
    observacoes: str = ""

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]


@dataclass(frozen=True)
class MedicalRecord:
    """Normalized clinical record linked to a patient.

    Fields
    ------
    cpf_paciente : str
        Formatted tax id of the resolved patient (may be empty).
    nome_paciente : str
        Resolved patient name; never empty in pipeline output.
    nome_profissional : str
        Resolved professional name; empty when the reference did not resolve.
    data_registro : str
        Record date, ``DD/MM/YYYY`` for well-formed source dates; never empty.
    queixa, diagnostico, tratamento, prescricao : str
        Narrative sections extracted from the note HTML.
    observacoes : str
        Free text. Holds the whole cleaned note when no section label was
        found, or the history section prefixed with ``História:``.
    """

    cpf_paciente: str = ""
    nome_paciente: str = ""
    nome_profissional: str = ""
    data_registro: str = ""
    queixa: str = ""
    diagnostico: str = ""
    tratamento: str = ""
    prescricao: str = ""
    observacoes: str = ""

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]


@dataclass(frozen=True)
class PipelineStats:
    """Derived counts for one pipeline run.

    These are the only visibility callers get into dropped rows: compare
    ``total_prontuarios`` with ``prontuarios_vinculados`` (or
    ``total_pessoas`` with ``total_pacientes``) to detect silent exclusions.
    """

    total_pessoas: int
    total_pacientes: int
    total_profissionais: int
    total_prontuarios: int
    prontuarios_vinculados: int

    @property
    def pacientes_descartados(self) -> int:
        """Persons that are neither exported patients nor professionals."""
        return self.total_pessoas - self.total_profissionais - self.total_pacientes

    @property
    def prontuarios_nao_vinculados(self) -> int:
        return self.total_prontuarios - self.prontuarios_vinculados

    def as_dict(self) -> Dict[str, int]:
        """Return the counts under the keys used by the import screen."""
        return {
            "totalPessoas": self.total_pessoas,
            "totalPacientes": self.total_pacientes,
            "totalProfissionais": self.total_profissionais,
            "totalProntuarios": self.total_prontuarios,
            "prontuariosVinculados": self.prontuarios_vinculados,
        }


@dataclass(frozen=True)
class PipelineResult:
    """Everything produced by one call to ``process_legacy_files``.

    Parameters
    ----------
    patients : List[PatientRecord]
        Exported patients, in person-file order.
    medical_records : List[MedicalRecord]
        Linked clinical records, in clinical-note-file order.
    patients_csv : str
        Patients serialized with the fixed patient column order.
    medical_records_csv : str
        Clinical records serialized with the fixed record column order.
    stats : PipelineStats
        Summary counts.
    """

    patients: List[PatientRecord]
    medical_records: List[MedicalRecord]
    patients_csv: str
    medical_records_csv: str
    stats: PipelineStats
