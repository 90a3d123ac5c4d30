"""JSON file storage for function definitions."""

import json
import logging
import os
from pathlib import Path
from typing import List

from pydantic import ValidationError

from sheetpoet.schemas.function_definition import FunctionDefinition

logger = logging.getLogger(__name__)


class FileFunctionStore:
    """Stores all definitions in one JSON document.

    Writes go to a temp file that is then renamed over the target, so a
    crash mid-write never leaves a truncated document behind.

    Usage:
        store = FileFunctionStore(Path("output/functions.json"))
        store.save_all([FunctionDefinition(name="clean_row", code=code)])
        definitions = store.load()
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[FunctionDefinition]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.error(f"Failed to read function store {self.path}: {e}")
            raise IOError(f"Failed to read function store: {e}") from e

        definitions = []
        for item in data if isinstance(data, list) else []:
            try:
                definitions.append(FunctionDefinition.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed function entry in {self.path}: {e}")
        return definitions

    def save_all(self, definitions: List[FunctionDefinition]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".json.tmp")
        payload = [d.model_dump(mode="json") for d in definitions]

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(self.path)
            logger.debug(f"Wrote {len(definitions)} function(s) to {self.path}")
        except IOError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise IOError(f"Failed to save functions: {e}") from e
