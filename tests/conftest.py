"""Shared pytest fixtures for the notasolver test suite.

Fixtures:
    sample_strokes: Three strokes around the default snipping region
    default_region: The default snipping rectangle
    pipeline: Pipeline wired to instant fake services
    flask_client: Flask test client with the fake pipeline installed

Markers:
    slow: Mark test as slow-running (skip with -m "not slow")
    integration: Mark test as integration test
"""

import sys
from pathlib import Path

import pytest

# Make the package and the shared fakes importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import InstantOcr, InstantSolver, make_document  # noqa: E402


@pytest.fixture
def default_region():
    from notasolver.domain import Region
    return Region(200, 450, 400, 150)


@pytest.fixture
def sample_strokes():
    """Strokes fully inside, crossing, and outside the default region."""
    from notasolver.domain import Stroke
    return [
        Stroke.from_tuples([(250, 500), (260, 510), (270, 520)]),
        Stroke.from_tuples([(150, 500), (210, 500), (220, 505), (700, 505)]),
        Stroke.from_tuples([(10, 10), (20, 20)]),
    ]


@pytest.fixture
def pipeline():
    from notasolver.pipeline import EquationRequestPipeline

    p = EquationRequestPipeline(InstantOcr('x^2=4'), InstantSolver(make_document()))
    yield p
    p.shutdown(timeout=5)


@pytest.fixture
def flask_client(pipeline):
    """Flask test client with the fake pipeline installed."""
    from notasolver.web import app
    import notasolver.routes  # noqa: F401 - registers routes

    app.config['TESTING'] = True
    app.config['PIPELINE'] = pipeline

    with app.test_client() as client:
        yield client

    app.config['PIPELINE'] = None
