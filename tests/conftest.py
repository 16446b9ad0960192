import pytest

from midi_factory import midi_bytes


@pytest.fixture
def make_midi():
    return midi_bytes
