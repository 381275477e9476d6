"""Root conftest for all tests - shared trees, contexts and capture appenders."""

import sys
from pathlib import Path

import pytest

# Add src/ to sys.path so tests run without an editable install
src_root = Path(__file__).parent.parent / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from hierlog.appenders.base import Appender  # noqa: E402
from hierlog.appenders.layouts import PatternLayout  # noqa: E402
from hierlog.config.configurator import release_context  # noqa: E402
from hierlog.core.tree import LoggerTree  # noqa: E402


class CaptureAppender(Appender):
    """Appender that keeps formatted lines and events in memory."""

    def __init__(self, layout=None, immediate_flush=False):
        super().__init__(layout or PatternLayout("%p [%c] %m"), immediate_flush)
        self.lines: list[str] = []
        self.events = []
        self.flushes = 0

    def _write(self, text, event):
        self.lines.append(text)
        self.events.append(event)

    def _flush(self):
        self.flushes += 1


@pytest.fixture
def tree():
    """Private logger tree (INFO fallback)."""
    return LoggerTree()


@pytest.fixture
def ctx(tree):
    """Fresh hierarchy context, released after the test."""
    context = tree.new_context()
    yield context
    release_context(context, tree)


@pytest.fixture
def capture():
    return CaptureAppender()


def attach(tree, ctx, name, appender, additive=True):
    """Attach ``appender`` directly to the state of ``name`` (test helper)."""
    node = tree.get_or_create(name)
    with tree.lock(ctx):
        state = node.state(ctx)
        state.appenders.append(appender)
        state.additive = additive
    return node
