"""Legacy PESSOA/PRONTUARIO export normalization for the clinic import."""

from .orchestrator import process_legacy_files

__all__ = ["process_legacy_files"]
