"""Shared pytest fixtures for unit, integration, and e2e tests.

This module provides:
- Temporary directory fixtures for file I/O testing
- Legacy export text and files generated from tests.fixtures.sample_input
- Configuration fixtures for parameter testing
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
import yaml

from tests.fixtures import sample_input


@pytest.fixture
def tmp_test_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after each test.

    Real-world significance:
    - Isolates file I/O tests from each other
    - Prevents test exports from polluting the project output directory

    Yields
    ------
    Path
        Absolute path to temporary directory (automatically deleted after test)
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def default_config() -> Dict[str, Any]:
    """Provide a complete runner configuration for testing.

    Real-world significance:
    - Matches the shipped config/parameters.yaml schema
    - Tests can toggle BOM, summary and overwrite behavior from here

    Returns
    -------
    Dict[str, Any]
        Configuration dict with all standard sections
    """
    return {
        "input": {
            "encodings": ["utf-8-sig", "latin-1", "cp1252"],
        },
        "output": {
            "patients_filename": "pacientes_importacao.csv",
            "medical_records_filename": "prontuarios_importacao.csv",
            "summary_filename": "resumo_importacao.json",
            "write_bom": True,
            "write_summary": True,
        },
        "pipeline": {
            "before_run": {
                "overwrite_existing": False,
            },
        },
    }


@pytest.fixture
def config_dir(tmp_test_dir: Path, default_config: Dict[str, Any]) -> Path:
    """Create a config directory holding parameters.yaml.

    Returns
    -------
    Path
        Directory to pass as ``--config``
    """
    directory = tmp_test_dir / "config"
    directory.mkdir()
    with open(directory / "parameters.yaml", "w", encoding="utf-8") as f:
        yaml.safe_dump(default_config, f)
    return directory


@pytest.fixture
def run_id() -> str:
    """Provide a consistent run ID in the format used by the runner."""
    return "20250101T120000"


@pytest.fixture
def person_text() -> str:
    """PESSOA export with three patients and one professional."""
    return sample_input.create_person_text(num_patients=3, num_professionals=1)


@pytest.fixture
def note_text() -> str:
    """PRONTUARIO export with linked, unlinked and dateless notes.

    Real-world significance:
    - Legacy exports reference deleted persons and contain notes without dates
    - The runner must import the linkable subset and report the rest
    """
    rows = [
        sample_input.create_note_row("10", id_cliente="1", id_profissional="4"),
        sample_input.create_note_row(
            "11", id_cliente="2", id_profissional="", descricao="Retorno sem queixas."
        ),
        sample_input.create_note_row("12", id_cliente="99"),
        sample_input.create_note_row("13", id_cliente="3", data=""),
    ]
    return sample_input.create_note_text(rows)


@pytest.fixture
def legacy_files(
    tmp_test_dir: Path, person_text: str, note_text: str
) -> tuple[Path, Path]:
    """Write the sample exports to disk as the legacy tool would (Latin-1).

    Returns
    -------
    tuple[Path, Path]
        Person file path and clinical note file path
    """
    return sample_input.write_legacy_files(
        tmp_test_dir / "input", person_text, note_text, encoding="latin-1"
    )


@pytest.fixture(autouse=True)
def reset_root_logger() -> Generator[None, None, None]:
    """Drop file handlers installed by configure_logging after each test."""
    root_logger = logging.getLogger()
    original_level = root_logger.level
    yield
    for handler in list(root_logger.handlers):
        if isinstance(handler, logging.FileHandler):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(original_level)
