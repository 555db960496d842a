"""Pipelines - End-to-end spectrogram computation for a file."""

from .file_spectrogram import (
    FileSpectrogramPipeline,
    FileSpectrogramResult,
    GroupSpectrogram,
    compute_file_spectrogram,
)

__all__ = [
    "FileSpectrogramPipeline",
    "FileSpectrogramResult",
    "GroupSpectrogram",
    "compute_file_spectrogram",
]
