"""Utility modules for result I/O and plotting."""

from .io import ensure_output_dir, load_frame, save_frame

__all__ = [
    # I/O
    "ensure_output_dir",
    "load_frame",
    "save_frame",
]
