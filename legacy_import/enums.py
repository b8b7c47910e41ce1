"""Enumerations for the legacy import pipeline."""

from enum import Enum


class PersonType(Enum):
    """Value of the ``tipo`` column in the legacy PESSOA export.

    The legacy system keeps patients and staff in the same table. Only the
    ``profissional`` value is meaningful to the import: those rows feed the
    person lookup (so clinical notes can name their author) but are never
    exported as patients. Any other value, including an empty cell, is
    treated as a client.
    """

    CLIENTE = "cliente"
    PROFISSIONAL = "profissional"

    @classmethod
    def from_string(cls, value: str | None) -> "PersonType":
        """Convert a raw ``tipo`` cell to PersonType.

        Parameters
        ----------
        value : str | None
            Raw cell value. Case-insensitive.

        Returns
        -------
        PersonType
            PROFISSIONAL when the value matches exactly (ignoring case),
            CLIENTE otherwise.

        Examples
        --------
        >>> PersonType.from_string("Profissional")
        <PersonType.PROFISSIONAL: 'profissional'>

        >>> PersonType.from_string("")
        <PersonType.CLIENTE: 'cliente'>
        """
        if value is not None and value.lower() == cls.PROFISSIONAL.value:
            return cls.PROFISSIONAL
        return cls.CLIENTE


class RecordSection(Enum):
    """Bold-label sections recognised inside a clinical note.

    Each member's value is the key used in the extracted sections dict; the
    ``label`` property is the literal text found between ``<b>`` tags in the
    legacy HTML.
    """

    QUEIXA = "queixa"
    HISTORIA = "historia"
    DIAGNOSTICO = "diagnostico"
    TRATAMENTO = "tratamento"
    PRESCRICAO = "prescricao"

    @property
    def label(self) -> str:
        labels = {
            RecordSection.QUEIXA: "Queixa principal:",
            RecordSection.HISTORIA: "História:",
            RecordSection.DIAGNOSTICO: "Diagnóstico:",
            RecordSection.TRATAMENTO: "Tratamento:",
            RecordSection.PRESCRICAO: "Prescrição:",
        }
        return labels[self]
