import sys
import os

import pytest

# Add backend/ to path so tests can import backend modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

# Add scripts/ to path so tests can import script modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "scripts"))


@pytest.fixture
def scenario_catalog():
    """
    INF101 (3cr) ─┬─> INF102 (4cr) ─┬─> INF104 (6cr)
                  └─> INF103 (4cr) ─┘
    Old-plan codes OLD1xx map one-to-one onto INF1xx.
    """
    from catalog import Course, CurriculumCatalog, EquivalencyRule

    courses = [
        Course("INF101", "Introducción a la programación", 3),
        Course("INF102", "Estructuras de datos", 4, frozenset({"INF101"})),
        Course("INF103", "Bases de datos", 4, frozenset({"INF101"})),
        Course("INF104", "Ingeniería de software", 6, frozenset({"INF102", "INF103"})),
    ]
    rules = [
        EquivalencyRule("INF101", source_code="OLD101", source_name="Algoritmos I"),
        EquivalencyRule("INF102", source_code="OLD102", source_name="Algoritmos II"),
        EquivalencyRule("INF103", source_code="OLD103", source_name="Sistemas de información"),
        EquivalencyRule("INF104", source_code="OLD104", source_name="Proyecto de software"),
    ]
    return CurriculumCatalog(courses, rules)


@pytest.fixture(scope="session")
def bundled_catalog():
    """The 14-course transition catalog shipped in data/."""
    from data_loader import load_data

    data_dir = os.path.join(os.path.dirname(__file__), "..", "data")
    return load_data(data_dir)["catalog"]
