"""Legacy Import Orchestrator.

Converts the legacy PESSOA and PRONTUARIO exports into the patient and
clinical-record CSVs accepted by the clinic import screen.

``process_legacy_files`` is the transformation core: it works on two text
documents in memory and has no side effects, so it can be called from any
caller that already holds the file contents. ``main`` is the command-line
runner around it, which reads the files, writes the exports and reports what
was dropped.

**Error Handling Philosophy:**

- **Dirty data** never fails the run. Persons without a name and clinical
  notes without a resolvable patient or date are dropped; the counts are
  reported as warnings and written to the run summary.
- **Infrastructure errors** (missing input, undecodable file, invalid
  configuration, exports already present) fail fast before anything is
  written.

**Exit Codes:**
- 0: Import files written successfully
- 1: Run failed (infrastructure or configuration error)
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import yaml

from . import files
from .config_loader import (
    get_input_encodings,
    get_output_settings,
    get_overwrite_existing,
    load_config,
)
from .data_models import MedicalRecord, PatientRecord, PipelineResult, PipelineStats
from .legacy_csv import parse_csv, to_csv
from .lookup import build_person_lookup
from .transform import (
    count_professionals,
    transform_medical_records,
    transform_patients,
)

SCRIPT_DIR = Path(__file__).resolve().parent
ROOT_DIR = SCRIPT_DIR.parent
DEFAULT_OUTPUT_DIR = ROOT_DIR / "output"
DEFAULT_CONFIG_DIR = ROOT_DIR / "config"

PATIENT_HEADERS = PatientRecord.field_names()
MEDICAL_RECORD_HEADERS = MedicalRecord.field_names()

LOG = logging.getLogger(__name__)


def process_legacy_files(
    person_content: str, clinical_note_content: str
) -> PipelineResult:
    """Transform the two legacy exports into import-ready records.

    Parameters
    ----------
    person_content : str
        Text of the PESSOA export.
    clinical_note_content : str
        Text of the PRONTUARIO export.

    Returns
    -------
    PipelineResult
        Patients, linked clinical records, their CSV serializations and the
        run stats. Either collection may be empty.

    Raises
    ------
    TypeError
        If either argument is not a string.
    """
    person_data = parse_csv(person_content)
    note_data = parse_csv(clinical_note_content)

    lookup = build_person_lookup(person_data.rows)
    total_professionals = count_professionals(person_data.rows)

    patients = transform_patients(person_data.rows)
    medical_records = transform_medical_records(note_data.rows, lookup)

    stats = PipelineStats(
        total_pessoas=len(person_data.rows),
        total_pacientes=len(patients),
        total_profissionais=total_professionals,
        total_prontuarios=len(note_data.rows),
        prontuarios_vinculados=len(medical_records),
    )
    LOG.info("Legacy import stats: %s", stats.as_dict())

    return PipelineResult(
        patients=patients,
        medical_records=medical_records,
        patients_csv=to_csv(patients, PATIENT_HEADERS),
        medical_records_csv=to_csv(medical_records, MEDICAL_RECORD_HEADERS),
        stats=stats,
    )


def collect_warnings(stats: PipelineStats) -> List[str]:
    """Describe the rows a run dropped, for the console and the summary."""
    warnings: List[str] = []
    if stats.pacientes_descartados:
        warnings.append(
            f"{stats.pacientes_descartados} person row(s) were not exported "
            "as patients (missing name)."
        )
    if stats.prontuarios_nao_vinculados:
        warnings.append(
            f"{stats.prontuarios_nao_vinculados} clinical note(s) were not linked "
            "(patient not found in person file, or missing/invalid date)."
        )
    return warnings


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Convert legacy PESSOA/PRONTUARIO exports into import CSVs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s PESSOA.csv PRONTUARIO.csv
  %(prog)s exports/PESSOA.csv exports/PRONTUARIO.csv --output import_files
        """,
    )

    parser.add_argument(
        "person_file",
        type=Path,
        help="Legacy person export (e.g., PESSOA.csv)",
    )
    parser.add_argument(
        "clinical_note_file",
        type=Path,
        help="Legacy clinical note export (e.g., PRONTUARIO.csv)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        dest="output_dir",
        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_DIR,
        dest="config_dir",
        help=f"Config directory (default: {DEFAULT_CONFIG_DIR})",
    )

    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments and raise errors if invalid."""
    for path in (args.person_file, args.clinical_note_file):
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {path}")
        if path.is_dir():
            raise IsADirectoryError(f"Input path is a directory: {path}")

    if args.person_file.resolve() == args.clinical_note_file.resolve():
        raise ValueError(
            "Person file and clinical note file must be different files: "
            f"{args.person_file}"
        )


def print_header(person_file: Path, clinical_note_file: Path) -> None:
    """Print the run header."""
    print()
    print("🚀 Starting legacy import")
    print(f"🗂️  Person file:        {person_file}")
    print(f"🗂️  Clinical note file: {clinical_note_file}")
    print()


def print_step(step_num: int, description: str) -> None:
    """Print a step header."""
    print()
    print(f"{'=' * 60}")
    print(f"Step {step_num}: {description}")
    print(f"{'=' * 60}")


def print_step_complete(step_num: int, description: str, duration: float) -> None:
    """Print step completion message."""
    print(f"✅ Step {step_num}: {description} complete in {duration:.1f} seconds.")


def run_step_1_prepare_output(
    output_dir: Path, output_settings: Dict[str, Any], overwrite: bool
) -> None:
    """Step 1: Check the output directory for earlier exports."""
    print_step(1, "Preparing output directory")

    filenames = [
        output_settings["patients_filename"],
        output_settings["medical_records_filename"],
    ]
    if output_settings["write_summary"]:
        filenames.append(output_settings["summary_filename"])

    output_dir.mkdir(parents=True, exist_ok=True)
    existing = files.check_existing_exports(output_dir, filenames, overwrite)
    if existing:
        print(f"Overwriting {len(existing)} existing file(s) in {output_dir}")


def run_step_2_read_inputs(
    person_file: Path, clinical_note_file: Path, encodings: List[str]
) -> tuple[str, str]:
    """Step 2: Read both legacy exports."""
    print_step(2, "Reading legacy exports")

    person_content = files.read_legacy_file(person_file, encodings)
    note_content = files.read_legacy_file(clinical_note_file, encodings)
    print(f"📄 {person_file.name}: {len(person_content)} characters")
    print(f"📄 {clinical_note_file.name}: {len(note_content)} characters")
    return person_content, note_content


def run_step_3_transform(person_content: str, note_content: str) -> PipelineResult:
    """Step 3: Normalize patients and link clinical records."""
    print_step(3, "Transforming records")

    result = process_legacy_files(person_content, note_content)
    print(f"👥 Patients normalized:      {result.stats.total_pacientes}")
    print(f"🩺 Clinical records linked:  {result.stats.prontuarios_vinculados}")
    return result


def run_step_4_write_exports(
    result: PipelineResult,
    output_dir: Path,
    output_settings: Dict[str, Any],
    run_id: str,
    person_file: Path,
    clinical_note_file: Path,
) -> List[str]:
    """Step 4: Write the import CSVs and the run summary.

    Returns:
        Warnings about dropped rows.
    """
    print_step(4, "Writing import files")

    bom = output_settings["write_bom"]
    patients_path = files.write_export(
        result.patients_csv, output_dir / output_settings["patients_filename"], bom
    )
    records_path = files.write_export(
        result.medical_records_csv,
        output_dir / output_settings["medical_records_filename"],
        bom,
    )
    print(f"📄 Patients export:        {patients_path}")
    print(f"📄 Clinical records export: {records_path}")

    warnings = collect_warnings(result.stats)
    for warning in warnings:
        LOG.warning(warning)

    if output_settings["write_summary"]:
        summary_path = files.write_summary(
            output_dir / output_settings["summary_filename"],
            run_id,
            result.stats,
            warnings,
            person_file,
            clinical_note_file,
        )
        print(f"📋 Run summary:            {summary_path}")

    if warnings:
        print("Warnings detected during import:")
        for warning in warnings:
            print(f" - {warning}")
    return warnings


def print_summary(
    step_times: list[tuple[str, float]],
    total_duration: float,
    stats: PipelineStats,
) -> None:
    """Print the run summary."""
    print()
    print(f"{'=' * 60}")
    print("🎉 Legacy import completed successfully!")
    print(f"{'=' * 60}")
    print()
    print("🕒 Time Summary:")
    for step_name, duration in step_times:
        print(f"  - {step_name:<25} {duration:.1f}s")
    print(f"  - {'─' * 25} {'─' * 6}")
    print(f"  - {'Total Time':<25} {total_duration:.1f}s")
    print()
    print(f"👤 Persons read:           {stats.total_pessoas}")
    print(f"🧑‍⚕️ Professionals:          {stats.total_profissionais}")
    print(f"👥 Patients exported:      {stats.total_pacientes}")
    print(f"📚 Clinical notes read:    {stats.total_prontuarios}")
    print(f"🔗 Clinical records linked: {stats.prontuarios_vinculados}")


def main(argv: List[str] | None = None) -> int:
    """Run the legacy import."""
    try:
        args = parse_args(argv)
        validate_args(args)
    except (FileNotFoundError, IsADirectoryError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    output_dir = args.output_dir.resolve()
    config_dir = args.config_dir.resolve()
    run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")

    try:
        config = load_config(config_dir / "parameters.yaml")
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    output_settings = get_output_settings(config)

    print_header(args.person_file, args.clinical_note_file)

    total_start = time.time()
    step_times = []

    try:
        step_start = time.time()
        run_step_1_prepare_output(
            output_dir, output_settings, get_overwrite_existing(config)
        )
        log_path = files.configure_logging(output_dir, run_id)
        step_duration = time.time() - step_start
        step_times.append(("Output Preparation", step_duration))
        print_step_complete(1, "Output directory prepared", step_duration)

        step_start = time.time()
        person_content, note_content = run_step_2_read_inputs(
            args.person_file, args.clinical_note_file, get_input_encodings(config)
        )
        step_duration = time.time() - step_start
        step_times.append(("Reading Inputs", step_duration))
        print_step_complete(2, "Reading legacy exports", step_duration)

        step_start = time.time()
        result = run_step_3_transform(person_content, note_content)
        step_duration = time.time() - step_start
        step_times.append(("Transformation", step_duration))
        print_step_complete(3, "Transformation", step_duration)

        step_start = time.time()
        run_step_4_write_exports(
            result,
            output_dir,
            output_settings,
            run_id,
            args.person_file,
            args.clinical_note_file,
        )
        step_duration = time.time() - step_start
        step_times.append(("Writing Exports", step_duration))
        print_step_complete(4, "Writing import files", step_duration)

        total_duration = time.time() - total_start
        print_summary(step_times, total_duration, result.stats)
        print(f"Import log written to {log_path}")
        return 0

    except Exception as exc:
        LOG.error("Legacy import failed: %s", exc)
        print(f"\n❌ Legacy import failed: {exc}", file=sys.stderr)
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
