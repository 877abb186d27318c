import pytest

_LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "integration": pytest.mark.integration,
    "bdd": pytest.mark.bdd,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="PROTEAN_ENV the storefront domain is initialised with",
    )


def pytest_collection_modifyitems(config, items):
    """Mark each test with the layer its directory belongs to."""
    for item in items:
        layer = next((part for part in item.path.parts if part in _LAYER_MARKERS), None)
        if layer is None:
            continue
        item.add_marker(_LAYER_MARKERS[layer])
        if layer == "integration" and item.get_closest_marker("fast") is None:
            item.add_marker(pytest.mark.slow)
