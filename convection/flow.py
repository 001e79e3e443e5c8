"""
Agregador de Fluxo (FlowSolver) - um passo por frame.

Responsabilidade:
- Reatribuir partículas às zonas (listas transitórias reconstruídas a cada frame).
- Suavizar a temperatura de cada zona.
- Transporte entre zonas guiado pela diferença de temperatura (proxy de pressão).
- Efeitos do AC: geração de partículas na face de saída,
  resfriamento e empurrão no envelope do AC.
- Interação de curto alcance partícula-partícula (varredura O(n²)).

Ordem do frame (cada etapa depende da anterior):
    1. Limpar listas das zonas.
    2. Atribuir partículas às zonas.
    3. Temperatura das zonas.
    4-5. Transporte entre zonas.
    6. AC (geração, resfriamento e empurrão).
    7. Interação entre pares.

Dependências:
- numpy: recortes e valores limitados.
- scipy.spatial.distance: matriz de distâncias par-a-par.
"""

import logging
import math
import random
from typing import Callable, List, Tuple, Optional

import numpy as np
from scipy.spatial.distance import pdist, squareform

from .config import FlowParams, SimulationLimits, DEFAULT_AMBIENT_TEMP
from .geometry import Apartment, Zone
from .particle import AirParticle

logger = logging.getLogger(__name__)

# Assinatura: (x, y, temperatura, (vx, vy)) -> AirParticle
ParticleFactory = Callable[[float, float, float, Tuple[float, float]], AirParticle]


class FlowSolver:
    """
    Orquestra as interações coletivas de um frame.
    Não move partículas diretamente: apenas altera velocidades/temperaturas
    e acrescenta novas partículas à coleção.
    """

    def __init__(
        self,
        apartment: Apartment,
        particle_factory: ParticleFactory,
        rng: Optional[random.Random] = None,
        ambient_temperature: float = DEFAULT_AMBIENT_TEMP
    ):
        """
        Args:
            apartment: Geometria compartilhada.
            particle_factory: Cria (e registra) novas partículas.
            rng: Gerador aleatório (o do mesa.Model, para reprodutibilidade).
            ambient_temperature: Temperatura ambiente global inicial.
        """
        self.apartment = apartment
        self.particle_factory = particle_factory
        self.random = rng if rng is not None else random.Random()
        self.ambient_temperature = ambient_temperature
        self.last_transport_counts: List[Tuple[str, str, int]] = []

        logger.info(f"FlowSolver iniciado. Ambiente: {self.ambient_temperature:.1f}°C")

    def set_ambient_temperature(self, temperature: float):
        self.ambient_temperature = float(temperature)

    def update(self, particles: List[AirParticle], dt: float):
        """
        Executa o passo coletivo do frame.

        Args:
            particles: Coleção viva (novas partículas são anexadas nela).
            dt: Passo de tempo (s).
        """
        self._assign_zones(particles)
        self._update_zone_temperatures()
        self._calculate_inter_zone_flows(dt)
        self._apply_ac_effects(particles, dt)
        self._handle_particle_interactions(particles, dt)

    # ========================================================================
    # 1-3. ZONAS
    # ========================================================================

    def _assign_zones(self, particles: List[AirParticle]):
        for zone in self.apartment.zones.values():
            zone.particles = []

        for particle in particles:
            zone = self.apartment.zone_at(particle.x, particle.y)
            if zone is not None:
                zone.particles.append(particle)
                particle.zone = zone.id

    def _update_zone_temperatures(self):
        for zone in self.apartment.zones.values():
            if zone.particles:
                avg_temp = sum(p.temperature for p in zone.particles) / len(zone.particles)
                zone.temperature = (zone.temperature * FlowParams.ZONE_BLEND_OLD +
                                    avg_temp * FlowParams.ZONE_BLEND_NEW)
            else:
                rate = FlowParams.EMPTY_ZONE_RELAXATION
                zone.temperature = zone.temperature * (1.0 - rate) + self.ambient_temperature * rate

    # ========================================================================
    # 4-5. TRANSPORTE ENTRE ZONAS
    # ========================================================================

    def flow_area(self, zone_a: str, zone_b: str) -> float:
        """Área aberta total entre duas zonas (m²)."""
        total = sum(o.rect.area for o in self.apartment.openings_between(zone_a, zone_b) if o.is_open)

        # O poço da escada sempre oferece algum caminho convectivo
        if total == 0 and self.apartment.is_stair_connection(zone_a, zone_b):
            total = FlowParams.STAIR_DEFAULT_AREA
        return total

    def _calculate_inter_zone_flows(self, dt: float):
        self.last_transport_counts = []
        for zone in self.apartment.zones.values():
            for connected in self.apartment.connected_zones(zone.id):
                area = self.flow_area(zone.id, connected.id)
                if area > 0:
                    self._create_inter_zone_flow(zone, connected, area, dt)

    def _create_inter_zone_flow(self, zone_a: Zone, zone_b: Zone, flow_area: float, dt: float):
        temp_diff = zone_a.temperature - zone_b.temperature
        if abs(temp_diff) <= FlowParams.MIN_TEMP_DIFF:
            return

        pressure_diff = temp_diff * FlowParams.PRESSURE_COEFF
        flow_strength = abs(pressure_diff) * flow_area * dt * FlowParams.FLOW_SCALE
        if flow_strength <= FlowParams.MIN_FLOW:
            return

        # Ar frio desloca-se em direção à zona quente
        if temp_diff < 0:
            source, target = zone_a, zone_b
        else:
            source, target = zone_b, zone_a
        self._nudge_particles(source, target, flow_strength)

    def _nudge_particles(self, source: Zone, target: Zone, flow_strength: float) -> int:
        """Enviesa a trajetória de algumas partículas rumo ao centróide do alvo."""
        count = len(source.particles)
        if count == 0:
            return 0

        to_move = min(
            math.floor(count * flow_strength * FlowParams.TRANSPORT_FRACTION),
            max(1, math.floor(count * FlowParams.TRANSPORT_CAP_FRACTION))
        )
        if to_move <= 0:
            return 0

        target_x, target_y = target.rect.center
        force = flow_strength * FlowParams.TRANSPORT_FORCE
        for particle in self.random.sample(source.particles, to_move):
            dx = target_x - particle.x
            dy = target_y - particle.y
            distance = math.hypot(dx, dy)
            if distance > 0:
                particle.add_force((dx / distance) * force, (dy / distance) * force)

        self.last_transport_counts.append((source.id, target.id, to_move))
        logger.debug(f"Transporte {source.id} -> {target.id}: {to_move} partículas")
        return to_move

    # ========================================================================
    # 6. DISPOSITIVOS
    # ========================================================================

    def _apply_ac_effects(self, particles: List[AirParticle], dt: float):
        ac = self.apartment.ac_unit
        if not ac.is_active:
            return

        ac_zone = self.apartment.zones.get(ac.zone)
        if ac_zone is None:
            return

        spawn_count = math.floor(ac.flow_strength * FlowParams.AC_SPAWN_RATE)
        for _ in range(spawn_count):
            if len(particles) < SimulationLimits.HARD_PARTICLE_CAP:
                particles.append(self._create_ac_particle())

        outlet_x, outlet_y = ac.outlet
        radius = FlowParams.AC_INFLUENCE_RADIUS
        tube = ac.tube
        for particle in ac_zone.particles:
            in_envelope = (
                ac.housing.x <= particle.x <= tube.right + FlowParams.AC_ENVELOPE_REACH and
                tube.y - FlowParams.AC_ENVELOPE_BAND <= particle.y <= tube.top + FlowParams.AC_ENVELOPE_BAND
            )
            if not in_envelope:
                continue

            distance = math.hypot(particle.x - outlet_x, particle.y - outlet_y)
            if distance >= radius:
                continue

            proximity = max(0.0, (radius - distance) / radius)
            cooling = float(np.clip(proximity * ac.flow_strength * dt * FlowParams.AC_COOLING_GAIN, 0.0, 1.0))
            particle.set_temperature(
                particle.temperature * (1.0 - cooling) + ac.target_temperature * cooling
            )

            # Empurrão puramente horizontal
            particle.add_force(ac.flow_strength * FlowParams.AC_PUSH_GAIN * proximity, 0.0)

    def _create_ac_particle(self) -> AirParticle:
        """Feixe estreito (±1°) saindo do centro da face de saída."""
        ac = self.apartment.ac_unit
        x, y = ac.outlet
        angle = (self.random.random() - 0.5) * 2 * math.radians(FlowParams.AC_JITTER_DEG)
        speed = ac.flow_strength * FlowParams.AC_SPAWN_SPEED
        return self.particle_factory(
            x, y, ac.target_temperature,
            (speed * math.cos(angle), speed * math.sin(angle))
        )

    # ========================================================================
    # 7. INTERAÇÃO ENTRE PARES
    # ========================================================================

    def _handle_particle_interactions(self, particles: List[AirParticle], dt: float):
        """
        Mistura térmica e repulsão mútua para pares a menos de 0.3 m.
        As posições não mudam neste passo, então a matriz de distâncias
        calculada uma vez vale para toda a varredura; os pares são aplicados
        sequencialmente na ordem (i, j) com i < j.
        """
        n = len(particles)
        if n < 2:
            return

        positions = np.array([(p.x, p.y) for p in particles], dtype=np.float64)
        distances = squareform(pdist(positions))
        rows, cols = np.nonzero(np.triu(distances < FlowParams.INTERACTION_RADIUS, k=1))

        mixing_rate = float(np.clip(FlowParams.INTERACTION_MIXING * dt, 0.0, 1.0))
        repulsion = FlowParams.REPULSION

        for i, j in zip(rows.tolist(), cols.tolist()):
            a = particles[i]
            b = particles[j]

            temp_diff = a.temperature - b.temperature
            a.temperature -= temp_diff * mixing_rate
            b.temperature += temp_diff * mixing_rate

            distance = distances[i, j]
            if distance == 0:
                continue
            dx = (a.x - b.x) / distance
            dy = (a.y - b.y) / distance
            a.add_force(dx * repulsion, dy * repulsion)
            b.add_force(-dx * repulsion, -dy * repulsion)
