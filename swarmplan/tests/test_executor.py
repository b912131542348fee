import pytest

from swarmplan.modules.swarm import executor as executor_module
from swarmplan.modules.swarm.executor import AnsibleExecutor


class FakeRunner:
    def __init__(self, status="successful", rc=0, events=()):
        self.status = status
        self.rc = rc
        self.events = list(events)


@pytest.fixture
def runs(monkeypatch):
    """Replaces ansible_runner.run, records its kwargs and returns the queued runner."""
    calls = []
    queued = []

    def fake_run(**kwargs):
        calls.append(kwargs)
        return queued.pop(0)

    monkeypatch.setattr(executor_module.ansible_runner, "run", fake_run)
    return calls, queued


@pytest.fixture
def executor(tmp_path):
    return AnsibleExecutor(str(tmp_path / "hosts-demo.ini"), private_data_dir=str(tmp_path / "runner"), timeout=60)


def test_run_returns_stdout(runs, executor, tmp_path):
    calls, queued = runs
    queued.append(FakeRunner(events=[
        {"event": "playbook_on_start"},
        {"event": "runner_on_ok", "event_data": {"res": {"stdout": "SWMTKN-1-abc", "rc": 0}}},
    ]))
    assert executor.run("demo-manager-0", "docker swarm join-token -q worker") == "SWMTKN-1-abc"
    assert calls[0]["host_pattern"] == "demo-manager-0"
    assert calls[0]["module"] == "shell"
    assert calls[0]["module_args"] == "docker swarm join-token -q worker"
    assert calls[0]["inventory"] == str(tmp_path / "hosts-demo.ini")
    assert calls[0]["private_data_dir"] == str(tmp_path / "runner")
    assert calls[0]["timeout"] == 60


def test_run_without_ok_event_returns_empty(runs, executor):
    _, queued = runs
    queued.append(FakeRunner(events=[{"event": "playbook_on_stats"}]))
    assert executor.run("demo-manager-0", "true") == ""


def test_nonzero_rc_raises_with_stderr(runs, executor):
    _, queued = runs
    queued.append(FakeRunner(status="failed", rc=2, events=[
        {"event": "runner_on_failed", "event_data": {"res": {"stderr": "Error response from daemon: This node is not a swarm manager.", "rc": 1}}},
    ]))
    with pytest.raises(RuntimeError) as excinfo:
        executor.run("demo-manager-0", "docker swarm join-token -q worker")
    assert "status=failed" in str(excinfo.value)
    assert "not a swarm manager" in str(excinfo.value)


def test_unreachable_host_raises(runs, executor):
    _, queued = runs
    queued.append(FakeRunner(status="failed", rc=4, events=[
        {"event": "runner_on_unreachable", "event_data": {"res": {"msg": "Failed to connect to the host via ssh", "unreachable": True}}},
    ]))
    with pytest.raises(RuntimeError) as excinfo:
        executor.run("demo-worker-0", "true")
    assert "demo-worker-0" in str(excinfo.value)
    assert "Failed to connect" in str(excinfo.value)


def test_ping_uses_ping_module(runs, executor):
    calls, queued = runs
    queued.append(FakeRunner(events=[{"event": "runner_on_ok", "event_data": {"res": {"ping": "pong"}}}]))
    executor.ping("demo-edge-0")
    assert calls[0]["module"] == "ping"
    assert calls[0]["host_pattern"] == "demo-edge-0"


def test_ping_unreachable_raises(runs, executor):
    _, queued = runs
    queued.append(FakeRunner(status="failed", rc=4, events=[
        {"event": "runner_on_unreachable", "event_data": {"res": {"msg": "No route to host"}}},
    ]))
    with pytest.raises(RuntimeError):
        executor.ping("demo-edge-0")
