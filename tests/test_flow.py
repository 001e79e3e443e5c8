"""
Testes Unitários do Agregador de Fluxo (FlowSolver).

Objetivo:
    Validar a reatribuição de zonas, a suavização de temperatura das zonas,
    o transporte entre zonas, os efeitos do AC e a
    interação entre pares.
"""

import math

import numpy as np
import pytest

from convection.config import create_duplex_scenario, SimulationLimits
from convection.model import ConvectionModel

DT = 1.0 / 60.0

# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def model():
    """Modelo vazio, AC desligado, para isolar cada regra."""
    config = create_duplex_scenario(ac_active=False, baseline_particles=0)
    return ConvectionModel(config, seed=11)


def place(model, x, y, temperature=22.0, velocity=(0.0, 0.0)):
    particle = model.create_particle(x, y, temperature, velocity)
    model.particles.append(particle)
    return particle

# ============================================================================
# 1-3. ZONAS
# ============================================================================

def test_zone_lists_rebuilt_every_frame(model):
    a = place(model, 1.0, 1.0)
    b = place(model, 7.5, 4.5)
    orphan = place(model, 2.0, 3.0)

    for _ in range(3):
        model.flow.update(model.particles, DT)

    zones = model.apartment.zones
    assert zones["lower_floor"].particles == [a]
    assert zones["upper_bedroom"].particles == [b]
    assert zones["upper_mezzanine"].particles == []
    assert all(orphan not in z.particles for z in zones.values())
    assert a.zone == "lower_floor"
    assert orphan.zone is None


def test_zone_temperature_blends_with_particles(model):
    place(model, 1.0, 1.0, temperature=30.0)
    model.flow.update(model.particles, DT)
    assert model.apartment.zones["lower_floor"].temperature == pytest.approx(22.0 * 0.95 + 30.0 * 0.05)


def test_empty_zone_relaxes_monotonically_to_ambient(model):
    zone = model.apartment.zones["upper_bedroom"]
    zone.temperature = 30.0

    previous = zone.temperature
    for _ in range(2000):
        model.flow.update(model.particles, DT)
        assert 22.0 < zone.temperature < previous
        previous = zone.temperature
    assert zone.temperature < 30.0 - 0.8 * 8.0


def test_empty_zone_below_ambient_warms_without_overshoot(model):
    zone = model.apartment.zones["lower_floor"]
    zone.temperature = 15.0

    previous = zone.temperature
    for _ in range(500):
        model.flow.update(model.particles, DT)
        assert previous < zone.temperature < 22.0
        previous = zone.temperature

# ============================================================================
# 4-5. TRANSPORTE ENTRE ZONAS
# ============================================================================

def test_flow_area(model):
    flow = model.flow
    assert flow.flow_area("upper_mezzanine", "upper_bedroom") == pytest.approx(0.8 * 2.1)
    assert flow.flow_area("lower_floor", "upper_mezzanine") == pytest.approx(1.0)

    model.set_opening_state("bedroom_door", False)
    assert flow.flow_area("upper_mezzanine", "upper_bedroom") == 0.0


def _cold_lower_floor(model, count=50, temperature=10.0):
    particles = []
    for i in range(count):
        x = 0.5 + (i % 10) * 0.8
        y = 0.4 + (i // 10) * 0.5
        particles.append(place(model, x, y, temperature=temperature))
    model.apartment.zones["lower_floor"].temperature = temperature
    model.apartment.zones["upper_mezzanine"].temperature = 30.0
    return particles


def test_transport_moves_cold_air_toward_warm_zone(model):
    particles = _cold_lower_floor(model)
    model.flow.update(model.particles, 10.0)

    actions = model.flow.last_transport_counts
    assert actions
    assert all(src == "lower_floor" and dst == "upper_mezzanine" for src, dst, _ in actions)

    # Somente empurrões rumo ao centróide do mezanino (3.0, 4.5)
    nudged = [p for p in particles if p.vx != 0.0 or p.vy != 0.0]
    assert nudged
    assert all(p.vy > 0 for p in nudged)


def test_transport_never_exceeds_cap(model):
    n = 50
    _cold_lower_floor(model, count=n)
    model.flow.update(model.particles, 10.0)

    cap = max(1, math.floor(n * 0.05))
    for _, _, moved in model.flow.last_transport_counts:
        assert 1 <= moved <= cap


def test_no_transport_below_temperature_threshold(model):
    _cold_lower_floor(model, temperature=22.0)
    model.apartment.zones["upper_mezzanine"].temperature = 22.3
    model.flow.update(model.particles, 10.0)
    assert model.flow.last_transport_counts == []


def test_transport_needs_open_area(model):
    model.set_opening_state("bedroom_door", False)
    for i in range(20):
        place(model, 6.5 + (i % 5) * 0.5, 3.5 + (i // 5) * 0.5, temperature=10.0)
    model.apartment.zones["upper_bedroom"].temperature = 10.0
    model.apartment.zones["upper_mezzanine"].temperature = 30.0
    model.apartment.zones["lower_floor"].temperature = 30.0

    model.flow.update(model.particles, 10.0)
    assert all(src != "upper_bedroom" for src, _, _ in model.flow.last_transport_counts)

# ============================================================================
# 6. DISPOSITIVOS
# ============================================================================

def test_ac_spawns_narrow_beam_at_outlet(model):
    model.set_ac_active(True)
    model.set_ac_flow_percent(50)
    model.flow.update(model.particles, DT)

    assert len(model.particles) == 1
    particle = model.particles[0]
    assert (particle.x, particle.y) == pytest.approx((0.8, 4.15))
    assert particle.temperature == 16.0
    assert particle.vx > 0
    assert abs(math.atan2(particle.vy, particle.vx)) <= math.radians(1.0) + 1e-12
    assert particle.speed == pytest.approx(0.75)


def test_ac_spawn_rate_scales_with_strength(model):
    model.set_ac_active(True)
    model.set_ac_flow_percent(100)
    model.flow.update(model.particles, DT)
    assert len(model.particles) == 2


def test_ac_spawn_respects_hard_cap(model):
    model.set_ac_active(True)
    for i in range(SimulationLimits.HARD_PARTICLE_CAP):
        model.particles.append(model.create_particle(0.1 + (i % 90) * 0.1, 0.2 + (i // 90) * 0.2, 22.0))
    model.flow.update(model.particles, DT)
    assert len(model.particles) == SimulationLimits.HARD_PARTICLE_CAP


def test_ac_cools_and_pushes_particles_in_envelope(model):
    model.set_ac_active(True)
    particle = place(model, 1.5, 4.15, temperature=22.0)
    model.flow.update(model.particles, DT)

    proximity = (2.0 - 0.7) / 2.0
    cooling = proximity * 0.5 * DT * 0.8
    assert particle.temperature == pytest.approx(22.0 * (1 - cooling) + 16.0 * cooling)
    assert particle.vx == pytest.approx(0.5 * 0.3 * proximity)
    assert particle.vy == 0.0


def test_ac_ignores_particles_outside_envelope(model):
    model.set_ac_active(True)
    particle = place(model, 1.5, 4.6, temperature=22.0)
    model.flow.update(model.particles, DT)
    assert particle.temperature == 22.0


def test_inactive_ac_has_no_effect(model):
    particle = place(model, 1.5, 4.15, temperature=22.0)
    model.flow.update(model.particles, DT)
    assert len(model.particles) == 1
    assert particle.temperature == 22.0


def test_solver_does_not_spawn_fan_particles(model):
    model.set_fan_active("stair_fan", True)
    for _ in range(3):
        model.flow.update(model.particles, DT)
    assert model.particles == []

# ============================================================================
# 7. INTERAÇÃO ENTRE PARES
# ============================================================================

def test_close_pair_mixes_and_repels(model):
    a = place(model, 2.0, 1.0, temperature=20.0)
    b = place(model, 2.1, 1.0, temperature=30.0)
    model.flow.update(model.particles, 1.0)

    assert a.temperature == pytest.approx(21.0)
    assert b.temperature == pytest.approx(29.0)
    assert a.vx == pytest.approx(-0.05)
    assert b.vx == pytest.approx(0.05)


def test_far_pair_does_not_interact(model):
    a = place(model, 2.0, 1.0, temperature=20.0)
    b = place(model, 2.5, 1.0, temperature=30.0)
    model.flow.update(model.particles, 1.0)

    assert a.temperature == 20.0
    assert b.temperature == 30.0


def test_coincident_pair_mixes_without_repulsion(model):
    a = place(model, 2.0, 1.0, temperature=20.0)
    b = place(model, 2.0, 1.0, temperature=30.0)
    model.flow.update(model.particles, 1.0)

    assert a.temperature == pytest.approx(21.0)
    assert np.isfinite(a.vx) and a.vx == 0.0
    assert b.vx == 0.0


def test_set_ambient_temperature(model):
    model.flow.set_ambient_temperature(25.0)
    zone = model.apartment.zones["upper_bedroom"]
    model.flow.update(model.particles, DT)
    assert zone.temperature == pytest.approx(22.0 * 0.999 + 25.0 * 0.001)
