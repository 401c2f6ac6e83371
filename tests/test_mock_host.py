"""Generated programs run end to end against the in-memory host."""

from __future__ import annotations

import pytest

from probescan.config import RotaryScanParameters
from probescan.decoder import Malformed, NotReady, Ok, retrieve_rotary, retrieve_surface, retrieve_z_probe
from probescan.errors import HostError
from probescan.geometry import ZProbeReading
from probescan.host import MockHost
from probescan.rendering import ProgramEmitter


def tilted(x: float, y: float, a: float, b: float) -> float:
    return 0.1 * x - 0.05 * y


def test_surface_scan_round_trip(probe_config, small_grid) -> None:
    program = ProgramEmitter(probe_config).surface_program(small_grid)
    host = MockHost(surface=tilted, answers={"KNOWNHEIGHT": 1.0})
    host.submit_program(program.text)

    assert host.probe_count == 10
    assert host.messages[0].startswith("Position the probe")
    assert host.messages[-1] == "Complete"

    result = retrieve_surface(host.get_config())
    assert isinstance(result, Ok)
    assert [p.index for p in result.points] == list(range(1, 10))
    planned = [(0, 0), (0.5, 0), (1, 0), (1, 0.5), (0.5, 0.5), (0, 0.5), (0, 1), (0.5, 1), (1, 1)]
    for point, (x, y) in zip(result.points, planned):
        assert point.x == pytest.approx(x)
        assert point.y == pytest.approx(y)
        assert point.z == pytest.approx(1.0 + tilted(x, y, 0, 0))


def test_program_leaves_metadata(probe_config, small_grid) -> None:
    host = MockHost(answers={"KNOWNHEIGHT": 0.75})
    host.submit_program(ProgramEmitter(probe_config).surface_program(small_grid).text)
    assert host.variables["TOTALPOINTS"] == 9
    assert host.variables["SCANCOMPLETE"] == 1
    assert host.variables["KNOWNHEIGHT"] == pytest.approx(0.75)
    assert host.variables["SAFEZ"] == pytest.approx(1.25)
    assert host.location("Z") == pytest.approx(1.25)


def test_aborted_run_is_not_ready(probe_config, small_grid) -> None:
    program = ProgramEmitter(probe_config).surface_program(small_grid)
    host = MockHost(surface=tilted, answers={"KNOWNHEIGHT": 1.0}, auto_run=False)
    host.submit_program(program.text)
    assert host.variables == {}

    stop = next(n for n, line in enumerate(program.lines) if '",&quot;i&quot;:" + 5' in line) + 1
    host.run(program.text, stop_after=stop)

    snapshot = host.get_config()
    assert isinstance(retrieve_surface(snapshot), NotReady)
    partial = retrieve_surface(snapshot, require_complete=False)
    assert isinstance(partial, Malformed)
    assert partial.raw_text.startswith("[{&quot;x&quot;:")


def test_automatic_rotary_scan_round_trip(probe_config) -> None:
    params = RotaryScanParameters(start=0, end=1, spacing=0.5, angle_step=90)
    host = MockHost(surface=lambda x, y, a, b: 0.001 * a, answers={"CYLINDERRADIUS": 2.0})
    host.submit_program(ProgramEmitter(probe_config).rotary_program(params).text)

    result = retrieve_rotary(host.get_config())
    assert isinstance(result, Ok)
    assert len(result.points) == 12
    assert [p.a for p in result.points] == [0] * 3 + [90] * 3 + [180] * 3 + [270] * 3
    for point in result.points:
        assert point.b == 0
        assert point.y == 0
        assert point.z == pytest.approx(2.0 + 0.001 * point.a)
    assert host.location("A") == 0


def test_manual_rotary_scan_records_operator_angle(probe_config) -> None:
    params = RotaryScanParameters(
        start=0, end=1, spacing=1, angle_step=90, axis="Y", rotary_axis="B", manual_rotary=True
    )
    host = MockHost(answers={"CYLINDERRADIUS": 1.5})
    host.submit_program(ProgramEmitter(probe_config).rotary_program(params).text)

    assert "Rotate the B-axis to 270.0000 degrees, then press OK" in host.messages
    assert host.machine["B"] == 0
    result = retrieve_rotary(host.get_config())
    assert isinstance(result, Ok)
    assert [(p.y, p.b) for p in result.points] == [
        (0, 0), (1, 0), (0, 90), (1, 90), (0, 180), (1, 180), (0, 270), (1, 270),
    ]
    assert all(p.a == 0 and p.z == pytest.approx(1.5) for p in result.points)


def test_z_probe_round_trip(probe_config) -> None:
    host = MockHost(surface=lambda x, y, a, b: -0.25)
    host.submit_program(ProgramEmitter(probe_config).z_probe_program().text)
    assert retrieve_z_probe(host.get_config()) == Ok([ZProbeReading(probe_z=-0.25, complete=True)])
    assert host.location("Z") == pytest.approx(0.5)


def test_probe_stops_at_max_depth(probe_config, small_grid) -> None:
    host = MockHost(surface=lambda x, y, a, b: -10.0, answers={"KNOWNHEIGHT": 0.0})
    host.submit_program(ProgramEmitter(probe_config).surface_program(small_grid).text)
    result = retrieve_surface(host.get_config())
    assert isinstance(result, Ok)
    assert all(p.z == pytest.approx(-2.0) for p in result.points)


def test_unknown_statement_rejected() -> None:
    with pytest.raises(ValueError):
        MockHost().execute("G0 X1")


def test_rejecting_host() -> None:
    host = MockHost(reject_with="engine busy")
    with pytest.raises(HostError, match="engine busy"):
        host.submit_program("ZZ")
    assert host.programs == []


def test_abandoned_scan_stays_not_ready_after_z_probe(probe_config, small_grid) -> None:
    emitter = ProgramEmitter(probe_config)
    surface = emitter.surface_program(small_grid)
    host = MockHost(answers={"KNOWNHEIGHT": 1.0})
    host.run(surface.text, stop_after=len(surface.lines) // 2)
    host.run(emitter.z_probe_program().text)

    assert host.variables["COMPLETE"] == 1
    assert isinstance(retrieve_surface(host.get_config()), NotReady)
    assert isinstance(retrieve_z_probe(host.get_config()), Ok)


def test_other_kind_is_not_ready_after_surface_run(probe_config, small_grid) -> None:
    host = MockHost(answers={"KNOWNHEIGHT": 1.0})
    host.submit_program(ProgramEmitter(probe_config).surface_program(small_grid).text)
    snapshot = host.get_config()
    assert isinstance(retrieve_surface(snapshot), Ok)
    assert isinstance(retrieve_rotary(snapshot), NotReady)
    assert isinstance(retrieve_z_probe(snapshot), NotReady)
