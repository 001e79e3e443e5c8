"""
Testes do Driver de Frames (SimulationDriver).
"""

import pytest

from convection.config import create_duplex_scenario
from convection.driver import SimulationDriver
from convection.model import ConvectionModel


@pytest.fixture
def driver():
    model = ConvectionModel(create_duplex_scenario(ac_active=False, baseline_particles=0), seed=1)
    return SimulationDriver(model)


def test_first_tick_only_records_clock(driver):
    assert not driver.tick(10.0)
    assert driver.model.frame_count == 0
    assert driver.last_time == 10.0


def test_tick_steps_with_wall_clock_delta(driver):
    driver.tick(0.0)
    assert driver.tick(0.05)
    assert driver.model.frame_count == 1
    assert driver.model.elapsed == pytest.approx(0.05)


def test_large_delta_is_capped(driver):
    driver.tick(0.0)
    driver.tick(2.5)
    assert driver.model.elapsed == pytest.approx(0.1)


def test_flow_speed_scales_dt(driver):
    driver.model.set_flow_speed(2.0)
    assert driver.frame_dt(0.02) == pytest.approx(0.04)
    assert driver.frame_dt(1.0) == pytest.approx(0.2)


def test_non_positive_delta_is_ignored(driver):
    driver.tick(5.0)
    assert not driver.tick(5.0)
    assert not driver.tick(4.0)
    assert driver.model.frame_count == 0


def test_zero_flow_speed_never_steps(driver):
    driver.model.set_flow_speed(0.0)
    driver.tick(0.0)
    assert not driver.tick(0.05)
    assert driver.model.frame_count == 0


def test_pause_and_resume(driver):
    driver.tick(0.0)
    driver.pause()
    assert not driver.tick(0.05)

    assert driver.toggle_pause()
    assert driver.tick(0.1)
    assert driver.model.frame_count == 1
    # O tempo pausado não se acumula no frame seguinte
    assert driver.model.elapsed == pytest.approx(0.05)


def test_run_frames(driver):
    driver.run_frames(4, dt=0.01)
    assert driver.model.frame_count == 4
    assert driver.model.elapsed == pytest.approx(0.04)

    driver.pause()
    driver.run_frames(4, dt=0.01)
    assert driver.model.frame_count == 4
