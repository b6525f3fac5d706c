"""
Test catalog: orderable investigations grouped by category.

The catalog is loaded once from ``data/test_catalog.yaml`` and consulted only
for display metadata when a request is created.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from wardcare.config import DATA_DIR
from wardcare.core.models import TestDefinition

logger = logging.getLogger(__name__)

CATALOG_YAML_PATH = DATA_DIR / "test_catalog.yaml"


class TestCatalog:
    """Read-only lookup over the test definitions."""

    __test__ = False

    def __init__(self, file_path: Path = CATALOG_YAML_PATH):
        self.file_path = file_path
        self.labels: Dict[str, str] = {}
        self.tests: Dict[str, List[TestDefinition]] = {}
        self._load()

    def _load(self) -> None:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.error(f"Test catalog not found at {self.file_path}")
            raise
        except yaml.YAMLError as e:
            logger.error(f"Error parsing test catalog {self.file_path}: {e}")
            raise

        for category, block in data.items():
            self.labels[category] = block.get("label", category.title())
            self.tests[category] = [
                TestDefinition(category=category, **entry) for entry in block.get("tests", [])
            ]
        logger.debug(
            f"Loaded {sum(len(t) for t in self.tests.values())} tests in {len(self.tests)} categories"
        )

    def all_tests(self) -> List[TestDefinition]:
        return [test for tests in self.tests.values() for test in tests]

    def get_test_definition(self, id_or_name: str) -> Optional[TestDefinition]:
        """Find a test by exact id or case-insensitive name."""
        lowered = id_or_name.lower()
        for test in self.all_tests():
            if test.id == id_or_name or test.name.lower() == lowered:
                return test
        return None

    def tests_by_category(self, category: str) -> List[TestDefinition]:
        return list(self.tests.get(category, []))

    def categories(self) -> List[Dict[str, str]]:
        return [{"category": category, "label": label} for category, label in self.labels.items()]


_default_catalog: Optional[TestCatalog] = None


def get_catalog() -> TestCatalog:
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = TestCatalog()
    return _default_catalog


def get_test_definition(id_or_name: str) -> Optional[TestDefinition]:
    return get_catalog().get_test_definition(id_or_name)


def tests_by_category(category: str) -> List[TestDefinition]:
    return get_catalog().tests_by_category(category)


def categories() -> List[Dict[str, str]]:
    return get_catalog().categories()
