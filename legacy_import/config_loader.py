"""Configuration loading utilities for the legacy import pipeline.

Provides a centralized way to load and validate the parameters.yaml
configuration file used by the command-line runner.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

SCRIPT_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = SCRIPT_DIR.parent / "config" / "parameters.yaml"

DEFAULT_ENCODINGS = ["utf-8-sig", "latin-1", "cp1252"]

DEFAULT_OUTPUT = {
    "patients_filename": "pacientes_importacao.csv",
    "medical_records_filename": "prontuarios_importacao.csv",
    "summary_filename": "resumo_importacao.json",
    "write_bom": True,
    "write_summary": True,
}

FILENAME_KEYS = ("patients_filename", "medical_records_filename", "summary_filename")
BOOLEAN_KEYS = ("write_bom", "write_summary")


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load and parse the parameters.yaml configuration file.

    Automatically validates the configuration after loading.

    Parameters
    ----------
    config_path : Path, optional
        Path to the configuration file. If not provided, uses the default
        location (config/parameters.yaml in the project root).

    Returns
    -------
    Dict[str, Any]
        Parsed and validated YAML configuration as a nested dictionary.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    yaml.YAMLError
        If the configuration file is invalid YAML.
    ValueError
        If the configuration fails validation (see validate_config).
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    validate_config(config)
    return config


def _section(parent: Dict[str, Any], key: str, name: str) -> Dict[str, Any]:
    """Return a config section, treating a missing or empty one as {}."""
    section = parent.get(key) or {}
    if not isinstance(section, dict):
        raise ValueError(
            f"{name} must be a mapping of settings, got {type(section).__name__}"
        )
    return section


def validate_config(config: Dict[str, Any]) -> None:
    """Validate the configuration for consistency and required values.

    Parameters
    ----------
    config : Dict[str, Any]
        Configuration dictionary (result of load_config).

    Raises
    ------
    ValueError
        If configuration is missing or invalid.

    Notes
    -----
    **Validation checks:**

    - **Input:** input.encodings, when set, is a non-empty list of strings
    - **Output:** filenames are non-empty strings without path separators
      and distinct from one another; write_bom/write_summary are booleans
    - **Sections:** input, output, pipeline and pipeline.before_run, when
      present, are mappings
    - **Before run:** pipeline.before_run.overwrite_existing is a boolean
    """
    if not isinstance(config, dict):
        raise ValueError(
            f"Configuration must be a mapping, got {type(config).__name__}"
        )

    # Validate input config
    input_config = _section(config, "input", "input")
    encodings = input_config.get("encodings", DEFAULT_ENCODINGS)
    if not isinstance(encodings, list) or not encodings:
        raise ValueError("input.encodings must be a non-empty list of encoding names")
    for encoding in encodings:
        if not isinstance(encoding, str) or not encoding.strip():
            raise ValueError(
                f"input.encodings entries must be non-empty strings, got {encoding!r}"
            )

    # Validate output config
    output_config = _section(config, "output", "output")
    filenames = []
    for key in FILENAME_KEYS:
        filename = output_config.get(key, DEFAULT_OUTPUT[key])
        if not isinstance(filename, str) or not filename.strip():
            raise ValueError(f"output.{key} must be a non-empty string")
        if "/" in filename or "\\" in filename:
            raise ValueError(
                f"output.{key} cannot contain path separators: {filename}\n"
                f"Expected a simple file name like '{DEFAULT_OUTPUT[key]}'."
            )
        filenames.append(filename)

    if len(set(filenames)) != len(filenames):
        raise ValueError(f"output filenames must be distinct, got {filenames}")

    for key in BOOLEAN_KEYS:
        flag = output_config.get(key, DEFAULT_OUTPUT[key])
        if not isinstance(flag, bool):
            raise ValueError(
                f"output.{key} must be a boolean, got {type(flag).__name__}"
            )

    # Validate before_run config
    pipeline_config = _section(config, "pipeline", "pipeline")
    before_run = _section(pipeline_config, "before_run", "pipeline.before_run")
    overwrite = before_run.get("overwrite_existing", False)
    if not isinstance(overwrite, bool):
        raise ValueError(
            f"pipeline.before_run.overwrite_existing must be a boolean, "
            f"got {type(overwrite).__name__}"
        )


def get_output_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return the output section with defaults filled in."""
    settings = dict(DEFAULT_OUTPUT)
    settings.update(config.get("output", {}) or {})
    return settings


def get_input_encodings(config: Dict[str, Any]) -> list[str]:
    return list((config.get("input", {}) or {}).get("encodings", DEFAULT_ENCODINGS))


def get_overwrite_existing(config: Dict[str, Any]) -> bool:
    before_run = (config.get("pipeline", {}) or {}).get("before_run", {}) or {}
    return bool(before_run.get("overwrite_existing", False))
