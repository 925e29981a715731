"""I/O utilities for solver result tables."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

_WRITERS = {
    ".parquet": lambda df, path: df.to_parquet(path, index=False),
    ".pkl": lambda df, path: df.to_pickle(path),
}
_READERS = {
    ".parquet": pd.read_parquet,
    ".pkl": pd.read_pickle,
}


def save_frame(df: pd.DataFrame, output_path: Path | str, verbose: bool = False) -> Path:
    """Write a result table, choosing the format from the file suffix.

    Parameters
    ----------
    df : pd.DataFrame
        Table to save (config, results or residual history)
    output_path : Path or str
        Target file, ending in ``.parquet`` or ``.pkl``
    verbose : bool, default False
        Print the output path

    Returns
    -------
    Path
        The written file

    Raises
    ------
    ValueError
        If the suffix is not a supported format

    """
    output_path = Path(output_path)
    writer = _WRITERS.get(output_path.suffix)
    if writer is None:
        raise ValueError(
            f"Unsupported format: {output_path.suffix!r}. Use one of {list(_WRITERS)}"
        )

    writer(df, output_path)
    if verbose:
        print(f"Saved {output_path.suffix[1:]} data → {output_path} ({df.shape})")
    return output_path


def load_frame(data_dir: Path | str, filename_base: str) -> pd.DataFrame:
    """Load a result table saved by save_frame, preferring parquet over pickle.

    Raises
    ------
    FileNotFoundError
        If neither ``<filename_base>.parquet`` nor ``.pkl`` exists

    """
    data_dir = Path(data_dir)
    for suffix, reader in _READERS.items():
        path = data_dir / f"{filename_base}{suffix}"
        if path.exists():
            return reader(path)

    raise FileNotFoundError(
        f"No results found at {data_dir / filename_base}.{{parquet,pkl}}. "
        f"Run the solver with save_results() first."
    )


def ensure_output_dir(path: Path | str) -> Path:
    """Ensure output directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
