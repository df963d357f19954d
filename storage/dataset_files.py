from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional, TextIO

from settings import get_settings


class DatasetDirectory:
    """Read-only view over the directory holding the SWaT CSV exports."""

    def __init__(self, root_path: Path, dataset_file: str, attack_file: str) -> None:
        self.root_path = root_path
        self.dataset_file = dataset_file
        self.attack_file = attack_file

    def path_for(self, name: str) -> Path:
        return self.root_path / name

    @contextmanager
    def open_text(
        self, name: str, encoding: str = "utf-8-sig", newline: Optional[str] = ""
    ) -> Iterator[TextIO]:
        """Yield a streaming text handle for one of the dataset files."""

        path = self.path_for(name)
        if not path.is_file():
            raise FileNotFoundError(
                f"Dataset file {name!r} not found under {str(self.root_path)!r}."
            )

        with path.open("r", encoding=encoding, newline=newline) as handle:
            yield handle


@lru_cache
def build_default_directory(
    root_path: Optional[str] = None,
) -> DatasetDirectory:
    settings = get_settings()
    data_root = settings.data_dir if root_path is None else root_path
    return DatasetDirectory(
        root_path=Path(data_root),
        dataset_file=settings.dataset_file,
        attack_file=settings.attack_file,
    )
