"""Integration tests for the legacy import contracts.

Tests verify that parsing, lookup, transformation and serialization agree
with one another when run together through process_legacy_files:
- The reference scenario produces the documented records and stats
- Professionals never appear as patients
- Every exported record carries a name and a well-formed date
- Notes that cannot be linked are absent, linked notes carry the right name
- Stats stay consistent with the records returned

Real-world significance:
- These are the guarantees the import screen relies on when it shows the
  stats and loads the two CSVs
"""

from __future__ import annotations

import re

import pytest

from legacy_import import legacy_csv
from legacy_import.normalizers import clean_html
from legacy_import.orchestrator import process_legacy_files
from legacy_import.sections import extract_sections
from legacy_import.transform import NOTE_COLUMNS, PERSON_COLUMNS
from tests.fixtures import sample_input

BR_DATE = re.compile(r"[0-9]{2}/[0-9]{2}/[0-9]{4}")


@pytest.mark.integration
class TestReferenceScenario:
    """The documented one-patient, one-professional example."""

    def test_records_and_stats(self) -> None:
        result = process_legacy_files(
            sample_input.EXAMPLE_PERSON_TEXT, sample_input.EXAMPLE_NOTE_TEXT
        )

        assert len(result.patients) == 1
        assert result.patients[0].nome == "Maria Silva"
        assert result.patients[0].cpf == "123.456.789-01"

        assert len(result.medical_records) == 1
        record = result.medical_records[0]
        assert record.nome_paciente == "Maria Silva"
        assert record.cpf_paciente == "123.456.789-01"
        assert record.nome_profissional == "Dr. João"
        assert record.data_registro == "15/03/2024"
        assert record.queixa == "dor de cabeça"
        assert record.observacoes == "Queixa principal: dor de cabeça"

        assert result.stats.as_dict() == {
            "totalPessoas": 2,
            "totalPacientes": 1,
            "totalProfissionais": 1,
            "totalProntuarios": 1,
            "prontuariosVinculados": 1,
        }

    def test_exports_read_back(self) -> None:
        result = process_legacy_files(
            sample_input.EXAMPLE_PERSON_TEXT, sample_input.EXAMPLE_NOTE_TEXT
        )

        patients = legacy_csv.read_export(result.patients_csv)
        records = legacy_csv.read_export(result.medical_records_csv)

        assert patients[0]["nome"] == "Maria Silva"
        assert patients[0]["telefone"] == ""
        assert records[0]["nome_profissional"] == "Dr. João"
        assert records[0]["data_registro"] == "15/03/2024"


@pytest.mark.integration
class TestFixtureExports:
    """Mixed exports with linked, unlinked and dateless notes."""

    def test_stats(self, person_text: str, note_text: str) -> None:
        result = process_legacy_files(person_text, note_text)

        assert result.stats.as_dict() == {
            "totalPessoas": 4,
            "totalPacientes": 3,
            "totalProfissionais": 1,
            "totalProntuarios": 4,
            "prontuariosVinculados": 2,
        }

    def test_linked_records(self, person_text: str, note_text: str) -> None:
        result = process_legacy_files(person_text, note_text)
        first, second = result.medical_records

        assert first.nome_paciente == "Maria Silva"
        assert first.cpf_paciente == "000.000.000-01"
        assert first.nome_profissional == "Dr. Profissional 1"
        assert first.diagnostico == "lombalgia mecânica"

        assert second.nome_paciente == "João Souza"
        assert second.nome_profissional == ""
        assert second.observacoes == "Retorno sem queixas."

    def test_bom_and_quoted_legacy_fields(self) -> None:
        """Verify Excel-style exports (BOM, every field quoted) still link.

        Real-world significance:
        - Exports re-saved from a spreadsheet wrap fields in quotes and add a BOM
        """
        person_text = sample_input.rows_to_legacy_text(
            sample_input.create_person_rows(1, 1),
            PERSON_COLUMNS,
            bom=True,
            quote=True,
        )
        note_text = sample_input.rows_to_legacy_text(
            [sample_input.create_note_row(id_cliente="1", id_profissional="2")],
            NOTE_COLUMNS,
            bom=True,
            quote=True,
        )

        result = process_legacy_files(person_text, note_text)

        assert result.stats.prontuarios_vinculados == 1
        assert result.medical_records[0].nome_profissional == "Dr. Profissional 1"


@pytest.mark.integration
class TestInvariants:
    """Invariants that must hold for any input."""

    PERSON_VARIANTS = [
        sample_input.create_person_row("1", "Maria", tipo="cliente"),
        sample_input.create_person_row("2", "Dr. A", tipo="profissional"),
        sample_input.create_person_row("3", "Dr. B", tipo="PROFISSIONAL"),
        sample_input.create_person_row("4", "", tipo="cliente"),
        sample_input.create_person_row("5", "Sem tipo", tipo=""),
        sample_input.create_person_row("6", "", tipo="Profissional"),
    ]

    NOTE_VARIANTS = [
        sample_input.create_note_row("1", id_cliente="1", data="2024-01-01"),
        sample_input.create_note_row("2", id_cliente="2", data="01/02/2024"),
        sample_input.create_note_row("3", id_cliente="4", data="2024-01-01"),
        sample_input.create_note_row("4", id_cliente="5", data="invalid"),
        sample_input.create_note_row("5", id_cliente="77", data="2024-01-01"),
        sample_input.create_note_row("6", id_cliente="5", data="2024-12-31 08:00"),
        sample_input.create_note_row("7", id_cliente="", data="2024-01-01"),
    ]

    def run(self):
        person_text = sample_input.rows_to_legacy_text(
            self.PERSON_VARIANTS, PERSON_COLUMNS
        )
        note_text = sample_input.rows_to_legacy_text(
            self.NOTE_VARIANTS, NOTE_COLUMNS
        )
        return process_legacy_files(person_text, note_text)

    def test_professionals_never_exported_as_patients(self) -> None:
        names = [patient.nome for patient in self.run().patients]
        assert "Dr. A" not in names
        assert "Dr. B" not in names
        assert names == ["Maria", "Sem tipo"]

    def test_names_are_never_empty(self) -> None:
        result = self.run()
        assert all(patient.nome for patient in result.patients)
        assert all(record.nome_paciente for record in result.medical_records)

    def test_dates_are_always_br_formatted(self) -> None:
        records = self.run().medical_records
        assert all(BR_DATE.fullmatch(record.data_registro) for record in records)

    def test_only_resolvable_notes_are_linked(self) -> None:
        """Notes 3 (unnamed client), 4 (bad date), 5 and 7 (unknown client)
        are dropped; note 2 links to a professional acting as client."""
        records = self.run().medical_records
        assert [(r.nome_paciente, r.data_registro) for r in records] == [
            ("Maria", "01/01/2024"),
            ("Dr. A", "01/02/2024"),
            ("Sem tipo", "31/12/2024"),
        ]

    def test_stats_are_consistent(self) -> None:
        stats = self.run().stats

        assert stats.total_pessoas == 6
        assert stats.total_profissionais == 3
        assert stats.total_pacientes == 2
        assert stats.total_pacientes <= stats.total_pessoas - stats.total_profissionais
        assert stats.prontuarios_vinculados <= stats.total_prontuarios
        assert stats.prontuarios_nao_vinculados == 4

    def test_section_fallback_keeps_whole_note(self) -> None:
        html = "Paciente estável.<br>Manter conduta &amp; retornar em 30 dias."
        assert extract_sections(html) == {"observacoes": clean_html(html)}


@pytest.mark.integration
class TestExportRoundTrip:
    """Exported values survive a quote-aware reader."""

    def test_note_with_separators_and_quotes(self) -> None:
        person_text = sample_input.EXAMPLE_PERSON_TEXT
        note_text = (
            "id;id_cliente;id_profissional;data;descricao\n"
            '1;1;2;2024-03-15;<b>Prescrição:</b> tomar "1 cp"<br>à noite<p>\n'
        )

        result = process_legacy_files(person_text, note_text)
        rows = legacy_csv.read_export(result.medical_records_csv)

        assert rows[0]["prescricao"] == 'tomar "1 cp"\nà noite'
        assert rows[0]["prescricao"] == result.medical_records[0].prescricao
