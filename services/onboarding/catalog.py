"""
Onboarding Catalog and Stores

Loads the step catalog from YAML and reads employee records and document
templates from disk. The catalog is validated once at startup and is
immutable afterwards.
"""

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from jsonschema import Draft7Validator

from utils import to_display
from .exceptions import (
    ConfigurationError,
    TemplateNotFound,
    TemplateRequestError,
)
from .types import Employee, OnboardingStep, TemplateDocument

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent / 'schema'
STEP_CATALOG_SCHEMA = SCHEMA_DIR / 'onboarding_steps.json'


def _load_schema() -> dict:
    try:
        return json.loads(STEP_CATALOG_SCHEMA.read_text())
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot load step catalog schema {STEP_CATALOG_SCHEMA}: {e}")


def _safe_name(name: str) -> bool:
    """Reject names that could escape their directory."""
    return bool(name) and Path(name).name == name and name not in ('.', '..')


class StepCatalog:
    """
    The fixed list of onboarding steps.

    Usage:
        catalog = StepCatalog.load('onboarding_steps.yml')
        catalog.template_for('handbook-ack')
    """

    def __init__(self, steps: List[OnboardingStep]):
        self._steps = tuple(sorted(steps, key=lambda s: s.id))
        self._by_key = {s.key: s for s in self._steps}

    @classmethod
    def load(cls, path) -> 'StepCatalog':
        """
        Load and validate the catalog.

        1. Schema validation of the raw YAML
        2. Business rules: step keys are unique

        Raises:
            ConfigurationError: Unreadable YAML or invalid steps, all errors listed
        """
        path = Path(path)
        try:
            raw = yaml.safe_load(path.read_text())
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot load step catalog {path}: {e}")

        validator = Draft7Validator(_load_schema())
        errors = [
            f"{'/'.join(str(p) for p in error.absolute_path) or '(root)'}: {error.message}"
            for error in validator.iter_errors(raw)
        ]

        raw_steps = raw.get('steps') if isinstance(raw, dict) else None
        if isinstance(raw_steps, list):
            keys = [s['key'] for s in raw_steps if isinstance(s, dict) and isinstance(s.get('key'), str)]
            duplicates = {k for k in keys if keys.count(k) > 1}
            if duplicates:
                errors.append(f"duplicate step keys: {sorted(duplicates)}")

        if errors:
            error_msg = "Step catalog errors:\n" + "\n".join(f"  - {e}" for e in errors)
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

        steps = [OnboardingStep.from_dict(data) for data in raw_steps]
        logger.info(f"Loaded {len(steps)} onboarding step(s)")
        return cls(steps)

    def all(self) -> List[OnboardingStep]:
        return list(self._steps)

    def get(self, key: str) -> Optional[OnboardingStep]:
        return self._by_key.get(key)

    def live_steps(self) -> List[OnboardingStep]:
        return [s for s in self._steps if s.is_live]

    def template_for(self, step_key: Optional[str]) -> Optional[str]:
        step = self._by_key.get(step_key) if step_key else None
        return step.template if step else None


class TemplateStore:
    """Named binary document templates in one directory."""

    def __init__(self, directory, catalog: StepCatalog):
        self.directory = Path(directory)
        self.catalog = catalog

    def read(self, name: str) -> TemplateDocument:
        """
        Raises:
            TemplateNotFound: No such template file
        """
        if not _safe_name(name):
            raise TemplateNotFound(f"Template not found: {name}")
        path = self.directory / name
        if not path.is_file():
            raise TemplateNotFound(f"Template not found: {name}")
        return TemplateDocument(filename=name, content=path.read_bytes())

    def resolve(self, step_key: Optional[str] = None, template_name: Optional[str] = None,
                base64_file: Optional[str] = None, inline_name: str = 'template.docx') -> TemplateDocument:
        """
        Resolve a request's template.

        Order: inline base64, explicit template name, step mapping.

        Raises:
            TemplateRequestError: Nothing to resolve, or invalid base64
            TemplateNotFound: Named template missing on disk
        """
        if base64_file:
            try:
                content = base64.b64decode(base64_file)
            except (binascii.Error, ValueError) as e:
                raise TemplateRequestError(f"base64FileString is not valid base64: {e}")
            return TemplateDocument(filename=inline_name, content=content)

        filename = template_name or self.catalog.template_for(step_key)
        if not filename:
            raise TemplateRequestError(
                'templateName or stepKey (mapped) is required when base64FileString is not provided'
            )
        return self.read(filename)


class EmployeeStore:
    """One JSON file per employee, keyed by filename."""

    def __init__(self, directory):
        self.directory = Path(directory)

    def list(self) -> List[Dict[str, str]]:
        if not self.directory.is_dir():
            return []
        keys = sorted(
            p.name[:-len('.json')] for p in self.directory.iterdir()
            if p.is_file() and p.name.lower().endswith('.json')
        )
        return [{'key': key, 'name': to_display(key)} for key in keys]

    def get(self, key: Optional[str]) -> Optional[Employee]:
        """Return the employee, or None when missing or unreadable."""
        if not key or not _safe_name(f"{key}.json"):
            return None
        path = self.directory / f"{key}.json"
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read employee {key}: {e}")
            return None
        if not isinstance(data, dict):
            return None
        return Employee(key=key, attributes=data)
