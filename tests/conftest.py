# P4Sync Test Fixtures
# Pytest fixtures for P4Sync tests

import tempfile
import threading
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import yaml


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("P4SYNC_CONFIG", raising=False)
    monkeypatch.delenv("P4SYNC_THREADS", raising=False)
    return home


@pytest.fixture
def sample_config() -> dict:
    """Create sample configuration dict."""
    return {
        "depot_root": "//metr/Game/Main/",
        "threads": 4,
        "idle_interval": 0.001,
        "poll_interval": 0.01,
        "p4": {"executable": "p4", "workspace": None},
        "output": {"verbose": False, "colored": False},
    }


@pytest.fixture
def config_file(temp_home: Path, sample_config: dict) -> Path:
    """Create a configuration file."""
    config_dir = temp_home / ".config" / "p4sync"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "config.yaml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    return config_path


class FakeP4:
    """
    Stand-in for the external sync invocation.

    Records every call and answers from a per-target table, falling back
    to a plain "updating" line.
    """

    def __init__(
        self,
        outputs: dict[str, str] | None = None,
        forced_outputs: dict[str, str] | None = None,
        on_call: Callable[[str, bool], None] | None = None,
    ):
        self.outputs = outputs or {}
        self.forced_outputs = forced_outputs or {}
        self.on_call = on_call
        self.calls: list[tuple[str, bool]] = []
        self._lock = threading.Lock()

    def __call__(self, target: str, force: bool) -> str:
        with self._lock:
            self.calls.append((target, force))
        if self.on_call:
            self.on_call(target, force)
        if force:
            return self.forced_outputs.get(target, f"{target}#1 - refreshing /ws/{target}")
        return self.outputs.get(target, f"info: {target}#1 - updating /ws/{target}\nexit: 0")

    def normal_calls(self) -> list[str]:
        return [t for t, force in self.calls if not force]

    def forced_calls(self) -> list[str]:
        return [t for t, force in self.calls if force]


@pytest.fixture
def fake_p4() -> FakeP4:
    return FakeP4()


@pytest.fixture
def fake_p4_factory() -> type[FakeP4]:
    """FakeP4 class, for tests that need per-target outputs."""
    return FakeP4
