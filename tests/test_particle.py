"""
Testes Unitários da Partícula de Ar (AirParticle).

Objetivo:
    Validar a cinemática de um passo (empuxo, arrasto, integração, mistura
    térmica), o teto de velocidade e a resolução de fronteiras: paredes,
    laje do piso, janelas, divisória do quarto e dutos.
"""

import random

import numpy as np
import pytest
from mesa import Model

from convection.config import (
    get_default_apartment_config,
    OpeningConfig,
    OpeningKind,
    ParticleParams,
    RectConfig,
    OUTSIDE,
)
from convection.geometry import Apartment
from convection.particle import AirParticle, calculate_mass, temperature_color

DT = 1.0 / 60.0
AMBIENT = 22.0

# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def model():
    """Modelo mesa mínimo apenas para registrar os agentes."""
    return Model(seed=7)


@pytest.fixture
def apartment():
    return Apartment(get_default_apartment_config())


def make(model, x, y, temperature=AMBIENT, velocity=(0.0, 0.0)):
    return AirParticle(model, x, y, temperature, velocity)

# ============================================================================
# MASSA E TEMPERATURA
# ============================================================================

def test_mass_has_floor_and_never_increases_with_temperature():
    temps = np.linspace(-40.0, 120.0, 321)
    masses = [calculate_mass(t) for t in temps]
    assert min(masses) >= ParticleParams.MIN_MASS
    assert all(b <= a for a, b in zip(masses, masses[1:]))


def test_mass_strictly_decreasing_above_floor():
    temps = np.linspace(-20.0, 35.0, 111)
    masses = [calculate_mass(t) for t in temps]
    assert all(b < a for a, b in zip(masses, masses[1:]))
    assert calculate_mass(20.0) == pytest.approx(1.0)


def test_set_temperature_updates_mass(model):
    particle = make(model, 1.0, 1.0, temperature=20.0)
    particle.set_temperature(10.0)
    assert particle.temperature == 10.0
    assert particle.mass == pytest.approx(1.5)

# ============================================================================
# TETO DE VELOCIDADE
# ============================================================================

def test_add_force_respects_speed_ceiling(model):
    rng = random.Random(3)
    particle = make(model, 1.0, 1.0)
    for _ in range(500):
        particle.add_force(rng.uniform(-4, 4), rng.uniform(-4, 4))
        assert particle.speed <= ParticleParams.MAX_SPEED + 1e-9


def test_add_force_below_ceiling_is_plain_sum(model):
    particle = make(model, 1.0, 1.0, velocity=(0.5, 0.0))
    particle.add_force(0.5, 1.0)
    assert particle.vx == pytest.approx(1.0)
    assert particle.vy == pytest.approx(1.0)

# ============================================================================
# CINEMÁTICA DE UM PASSO
# ============================================================================

def test_warm_particle_step(model, apartment):
    particle = make(model, 2.0, 1.5, temperature=30.0)
    alive = particle.advance(0.1, apartment, AMBIENT)

    expected_vy = (AMBIENT - 30.0) * 0.02 * 0.1 * 0.99
    assert alive
    assert particle.age == 1
    assert particle.vy == pytest.approx(expected_vy)
    assert particle.y == pytest.approx(1.5 + expected_vy * 0.1)
    assert particle.temperature == pytest.approx(30.0 + (AMBIENT - 30.0) * 0.001)
    assert particle.zone == "lower_floor"


def test_cold_particle_gets_extra_downward_pull(model, apartment):
    particle = make(model, 2.0, 1.5, temperature=10.0)
    particle.advance(0.1, apartment, AMBIENT)

    expected_vy = ((AMBIENT - 10.0) * 0.02 * 0.1 - 0.1 * 0.1) * 0.99
    assert particle.vy == pytest.approx(expected_vy)


def test_fast_particles_damp_buoyancy(model, apartment):
    """Velocidade 1.0 -> momentum_factor 0.5."""
    particle = make(model, 2.0, 1.5, temperature=30.0, velocity=(1.0, 0.0))
    particle.advance(0.1, apartment, AMBIENT)

    expected_vy = (AMBIENT - 30.0) * 0.02 * 0.5 * 0.1 * 0.99
    assert particle.vy == pytest.approx(expected_vy)
    assert particle.vx == pytest.approx(0.99)


def test_particle_dies_at_max_age(model, apartment):
    particle = make(model, 2.0, 1.5)
    particle.age = particle.max_age - 2
    assert particle.advance(DT, apartment, AMBIENT)
    assert not particle.advance(DT, apartment, AMBIENT)


def test_color_is_deterministic():
    assert temperature_color(10.0) == (255, 255, 255)
    assert temperature_color(30.0) == (255, 0, 0)
    assert temperature_color(20.0) == (0, 0, 255)
    assert temperature_color(-50.0) == (255, 255, 255)
    assert temperature_color(80.0) == (255, 0, 0)
    assert temperature_color(17.3) == temperature_color(17.3)

# ============================================================================
# FRONTEIRAS
# ============================================================================

def test_outer_wall_bounce(model, apartment):
    particle = make(model, 0.01, 2.5, velocity=(-3.0, 0.0))
    particle.advance(DT, apartment, AMBIENT)

    assert particle.x == 0.0
    assert particle.vx == pytest.approx(3.0 * 0.99 * 0.3)


def test_floor_blocks_upward_crossing_outside_gap(model, apartment):
    particle = make(model, 2.0, 2.97, velocity=(0.0, 0.6))
    particle.advance(DT, apartment, AMBIENT)

    assert particle.y == pytest.approx(2.95)
    assert particle.vy == pytest.approx(-0.6 * 0.99 * 0.3)


def test_floor_blocks_downward_crossing_outside_gap(model, apartment):
    particle = make(model, 2.0, 3.03, velocity=(0.0, -0.6))
    particle.advance(DT, apartment, AMBIENT)

    assert particle.y == pytest.approx(3.05)
    assert particle.vy > 0


@pytest.mark.parametrize("start_y, vy", [(2.9, 3.0), (2.97, 0.6), (3.1, -3.0), (3.03, -0.6)])
def test_particle_never_straddles_floor_band(model, apartment, start_y, vy):
    particle = make(model, 2.0, start_y, velocity=(0.0, vy))
    for _ in range(10):
        particle.advance(DT, apartment, AMBIENT)
        assert not (2.95 < particle.y < 3.05)


def test_stair_gap_lets_particles_through(model, apartment):
    particle = make(model, 5.5, 3.02, velocity=(0.0, -0.6))
    for _ in range(5):
        particle.advance(DT, apartment, AMBIENT)
    assert particle.y < 3.0
    assert particle.zone == "lower_floor"


def test_closed_window_does_not_kill(model, apartment):
    particle = make(model, 0.05, 1.0)
    assert particle.advance(DT, apartment, AMBIENT)
    assert particle.age == 1


def test_open_window_marks_particle_for_removal(model, apartment):
    apartment.set_opening_state("left_window", True)
    particle = make(model, 0.05, 1.0)
    alive = particle.advance(DT, apartment, AMBIENT)

    assert not alive
    assert particle.age == particle.max_age


def test_window_margin_extends_horizontally(model, apartment):
    apartment.set_opening_state("right_window", True)
    particle = make(model, 8.85, 1.0)
    assert not particle.advance(DT, apartment, AMBIENT)


def test_closed_bedroom_door_blocks(model, apartment):
    apartment.set_opening_state("bedroom_door", False)
    particle = make(model, 5.95, 4.0, velocity=(1.0, 0.0))
    particle.advance(DT, apartment, AMBIENT)

    assert particle.x == pytest.approx(5.9)
    assert particle.vx == pytest.approx(-0.99 * 0.3)


def test_open_bedroom_door_passes_inside_door_span(model, apartment):
    particle = make(model, 5.95, 4.0, velocity=(1.0, 0.0))
    particle.advance(DT, apartment, AMBIENT)

    assert particle.x == pytest.approx(5.95 + 0.99 * DT)
    assert particle.vx > 0


def test_wall_above_door_blocks_even_when_open(model, apartment):
    particle = make(model, 6.05, 5.5, velocity=(-1.0, 0.0))
    particle.advance(DT, apartment, AMBIENT)

    assert particle.x == pytest.approx(6.1)
    assert particle.vx == pytest.approx(0.99 * 0.3)

# ============================================================================
# DUTOS
# ============================================================================

def test_ac_tube_forces_outlet_speed(model, apartment):
    particle = make(model, 1.0, 4.15)
    particle.advance(DT, apartment, AMBIENT)
    assert particle.vx == pytest.approx(2.5)
    assert particle.vy == pytest.approx(0.0)


def test_ac_tube_recenters_particle(model, apartment):
    particle = make(model, 1.0, 4.22)
    particle.advance(DT, apartment, AMBIENT)
    assert particle.vy == pytest.approx((4.15 - 4.22) * 0.8)


def test_ac_housing_entry_face_kicks_forward(model, apartment):
    particle = make(model, 0.2, 4.15)
    particle.advance(DT, apartment, AMBIENT)

    assert particle.x == pytest.approx(0.21)
    assert particle.vx == pytest.approx(2.5 * 1.5)


def test_active_fan_duct_pushes_along_direction(model, apartment):
    apartment.set_fan_active("bedroom_fan", True)
    particle = make(model, 8.25, 4.65)
    particle.advance(DT, apartment, AMBIENT)

    assert particle.vx == pytest.approx(-3.0)
    assert particle.vy == pytest.approx(0.0)


def test_inactive_fan_duct_does_nothing(model, apartment):
    particle = make(model, 8.25, 4.65)
    particle.advance(DT, apartment, AMBIENT)
    assert particle.vx == 0.0


def test_fan_duct_recenters_particle(model, apartment):
    apartment.set_fan_active("bedroom_fan", True)
    particle = make(model, 8.25, 4.72)
    particle.advance(DT, apartment, AMBIENT)
    assert particle.vy == pytest.approx((4.65 - 4.72) * 0.5)


def test_open_inbound_opening_does_not_remove_particle(model):
    config = get_default_apartment_config()
    config.openings.append(OpeningConfig(
        "supply_vent", OUTSIDE, "lower_floor", RectConfig(0.0, 2.2, 0.1, 0.5), True, OpeningKind.WINDOW
    ))
    particle = make(model, 0.05, 2.4)

    assert particle.advance(DT, Apartment(config), AMBIENT)
