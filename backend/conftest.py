"""Root conftest: configure structlog for tests."""

import pytest
import structlog

from shared.logging import _event_processors

# Same processor chain as production, rendered by stdlib so caplog sees every event.
structlog.configure(
    processors=_event_processors(),
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)


@pytest.fixture(autouse=True)
def _clear_log_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
