"""Load checklists from YAML files."""

import asyncio
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from onboarding_preflight.models.definition import Checklist


async def load_checklist(path: Path) -> Checklist:
    """Load and validate a checklist file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty, is not valid YAML or does not match
            the checklist schema

    """
    if not path.is_file():
        raise FileNotFoundError(f"Test file not found: {path}")

    text = await asyncio.to_thread(path.read_text, encoding="utf-8")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        raise ValueError(f"Empty test file: {path}")

    try:
        return Checklist.model_validate(data)
    except PydanticValidationError as exc:
        raise ValueError(f"Invalid test definition schema in {path}: {exc}") from exc
