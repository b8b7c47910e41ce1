"""File handling for the legacy import runner.

The transformation core never touches the file system. This module is the
boundary around it: it reads the legacy exports from disk, writes the
normalized exports and the run summary, and sets up the run log.

**Input Contract:**
- Legacy exports are text files in one of the configured encodings
  (UTF-8 with or without BOM, Latin-1, Windows-1252)

**Output Contract:**
- Normalized exports are written as UTF-8, by default with a BOM so that
  spreadsheet tools open them with the right encoding
- The run summary is a JSON document with the run id, inputs, stats and
  warnings

**Error Handling:**
- Missing inputs raise FileNotFoundError; undecodable inputs raise ValueError
- Existing exports raise FileExistsError unless overwriting is enabled
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Sequence

from .data_models import PipelineStats
from .legacy_csv import BOM

LOG = logging.getLogger(__name__)


def configure_logging(output_dir: Path, run_id: str) -> Path:
    """Configure file logging for an import run.

    Parameters
    ----------
    output_dir : Path
        Root output directory where logs subdirectory will be created.
    run_id : str
        Unique run identifier used in log filename.

    Returns
    -------
    Path
        Path to the created log file.
    """
    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"legacy_import_{run_id}.log"

    handler = logging.FileHandler(log_path, encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
        existing.close()
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(handler)

    return log_path


def read_legacy_file(file_path: Path, encodings: Sequence[str]) -> str:
    """Read a legacy export, trying each encoding in turn.

    Parameters
    ----------
    file_path : Path
        Path to the PESSOA or PRONTUARIO export.
    encodings : Sequence[str]
        Encodings to try, in order.

    Returns
    -------
    str
        Decoded file contents.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If none of the encodings can decode the file.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    raw = file_path.read_bytes()
    for enc in encodings:
        try:
            text = raw.decode(enc)
        except (UnicodeDecodeError, LookupError):
            continue
        LOG.info("Read %s (%d bytes) as %s", file_path, len(raw), enc)
        return text

    raise ValueError(
        f"Could not decode {file_path} with encodings: {', '.join(encodings)}"
    )


def check_existing_exports(
    output_dir: Path, filenames: Iterable[str], overwrite: bool
) -> List[Path]:
    """Make sure a run will not silently replace earlier exports.

    Parameters
    ----------
    output_dir : Path
        Directory the exports will be written to.
    filenames : Iterable[str]
        Export file names for this run.
    overwrite : bool
        When True, existing files are allowed (and returned).

    Returns
    -------
    List[Path]
        Paths that already exist.

    Raises
    ------
    FileExistsError
        If any export exists and overwrite is False.
    """
    existing = [output_dir / name for name in filenames if (output_dir / name).exists()]
    if existing and not overwrite:
        raise FileExistsError(
            "Export file(s) already exist: "
            + ", ".join(str(path) for path in existing)
            + "\nRemove them or set pipeline.before_run.overwrite_existing to true."
        )
    for path in existing:
        LOG.info("Overwriting existing export %s", path)
    return existing


def write_export(content: str, path: Path, bom: bool = True) -> Path:
    """Write CSV text to disk as UTF-8, optionally with a leading BOM."""
    path.parent.mkdir(parents=True, exist_ok=True)
    text = BOM + content if bom else content
    # newline="" keeps the "\n" row separator on every platform.
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(text)
    LOG.info("Wrote export %s", path)
    return path


def write_summary(
    path: Path,
    run_id: str,
    stats: PipelineStats,
    warnings: List[str],
    person_file: Path,
    clinical_note_file: Path,
) -> Path:
    """Write the run summary JSON next to the exports."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "run_id": run_id,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "person_file": str(person_file),
        "clinical_note_file": str(clinical_note_file),
        "stats": stats.as_dict(),
        "warnings": warnings,
    }
    path.write_text(
        json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    LOG.info("Wrote run summary to %s", path)
    return path
