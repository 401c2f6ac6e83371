"""ScanController job submission and retrieval bookkeeping."""

from __future__ import annotations

import pytest

from probescan.config import ProbeConfig, RotaryScanParameters, ScanParameters
from probescan.controller import ScanController
from probescan.decoder import NotReady, Ok
from probescan.errors import HostConfigError, ScanBusyError, ValidationError
from probescan.host import MockHost


class ReentrantHost(MockHost):
    """Tries to start a second job while the first one is being submitted."""

    controller = None
    seen_busy = False

    def submit_program(self, text: str) -> None:
        self.seen_busy = self.controller.busy
        with pytest.raises(ScanBusyError):
            self.controller.run_z_probe()
        super().submit_program(text)


@pytest.fixture()
def messages():
    return []


@pytest.fixture()
def controller(probe_config, messages) -> ScanController:
    host = MockHost(answers={"KNOWNHEIGHT": 1.0, "CYLINDERRADIUS": 2.0})
    return ScanController(host=host, config=probe_config, status_cb=messages.append)


def test_surface_scan_fills_session(controller, small_grid, messages) -> None:
    submitted = controller.run_surface_scan(small_grid)
    assert submitted.ok
    assert submitted.total_points == 9
    assert submitted.line_count > 9
    assert submitted.to_dict()["error"] is None
    assert "3x3 grid (9 points)" in messages[0]

    result = controller.retrieve_surface()
    assert isinstance(result, Ok)
    session = controller.session("surface")
    assert session.points == result.points
    assert session.start_time is not None and session.end_time is not None
    summary = session.summary()
    assert summary["count"] == 9
    assert summary["min_z"] == pytest.approx(1.0)
    assert summary["range_z"] == pytest.approx(0.0)


def test_rotary_scan_fills_session(controller) -> None:
    params = RotaryScanParameters(start=0, end=1, spacing=0.5, angle_step=120)
    submitted = controller.run_rotary_scan(params)
    assert submitted.ok and submitted.total_points == 9
    assert isinstance(controller.retrieve_rotary(), Ok)
    assert len(controller.session("rotary").points) == 9


def test_z_probe_updates_last_probe(controller) -> None:
    assert controller.run_z_probe().ok
    assert controller.last_probe is None
    result = controller.retrieve_z_probe()
    assert isinstance(result, Ok)
    assert controller.last_probe.probe_z == pytest.approx(0.0)


def test_invalid_parameters_never_reach_host(controller) -> None:
    with pytest.raises(ValidationError):
        controller.run_surface_scan(ScanParameters(0, 0, 100, 100, 0.1))
    assert controller.host.programs == []


def test_rejected_submission_reports_failure(probe_config, small_grid, messages) -> None:
    controller = ScanController(
        host=MockHost(reject_with="engine is busy"), config=probe_config, status_cb=messages.append
    )
    result = controller.run_surface_scan(small_grid)
    assert not result.ok
    assert result.error == "engine is busy"
    assert "failed" in messages[-1]
    assert not controller.busy


def test_concurrent_submission_is_rejected(probe_config, small_grid) -> None:
    host = ReentrantHost(answers={"KNOWNHEIGHT": 1.0})
    controller = ScanController(host=host, config=probe_config)
    host.controller = controller
    assert controller.run_surface_scan(small_grid).ok
    assert host.seen_busy
    assert not controller.busy
    assert len(host.programs) == 1


def test_not_ready_keeps_previous_session(controller, small_grid) -> None:
    controller.run_surface_scan(small_grid)
    controller.retrieve_surface()
    previous = list(controller.session("surface").points)

    controller.host.variables["COMPLETE"] = 0
    assert isinstance(controller.retrieve_surface(), NotReady)
    assert controller.session("surface").points == previous


def test_new_submission_clears_session(controller, small_grid) -> None:
    controller.run_surface_scan(small_grid)
    controller.retrieve_surface()
    controller.host.auto_run = False
    controller.run_surface_scan(small_grid)
    assert controller.session("surface").points == []


def test_missing_variable_store_propagates(controller) -> None:
    controller.host.has_store = False
    with pytest.raises(HostConfigError):
        controller.retrieve_surface()


def test_set_config_validates(controller) -> None:
    with pytest.raises(ValidationError):
        controller.set_config(ProbeConfig(probe_speed=-1))
    controller.set_config(ProbeConfig(probe_speed=2.0))
    assert controller.emitter().config.probe_speed == 2.0
