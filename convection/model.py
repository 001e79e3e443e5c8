"""
Orquestrador da Simulação (ConvectionModel).

Responsabilidade:
- Integrar Configuração, Geometria (Apartment), Agregador (FlowSolver) e Partículas.
- Executar o frame na ordem contratual: FlowSolver primeiro, depois o avanço
  de cada partícula sobre o estado recém-alterado.
- Expor os mutadores de configuração, a injeção de ar e o reset.
- Coletar telemetria (temperatura por zona, população) para análise.

Arquitetura:
- Herda de mesa.Model; as partículas são mesa.Agent.
- O gerador aleatório semeado do modelo (self.random) é a única fonte de
  aleatoriedade, garantindo reprodutibilidade por semente.
"""

import logging
import math
from typing import Dict, List, Any, Optional, Tuple

import numpy as np
import pandas as pd
from mesa import Model
from mesa.datacollection import DataCollector

from .config import (
    ScenarioConfig,
    SimulationLimits,
    SpawnParams,
    MAX_OPENING_HEIGHT,
    get_default_scenario_config,
)
from .geometry import Apartment
from .flow import FlowSolver
from .particle import AirParticle

logger = logging.getLogger(__name__)

SNAPSHOT_COLUMNS = ["x", "y", "vx", "vy", "temperature"]


class ConvectionModel(Model):
    """
    Modelo de convecção e mistura térmica em um apartamento de várias zonas.
    Avança em frames discretos; o dt é fornecido pelo chamador.
    """

    def __init__(self, scenario_config: Optional[ScenarioConfig] = None, seed: Optional[int] = None):
        """
        Inicializa o modelo com base no cenário fornecido.

        Args:
            scenario_config: Cenário (geometria + ajustes). Padrão: duplex.
            seed: Semente do gerador; sobrescreve a do cenário se informada.
        """
        config = scenario_config if scenario_config is not None else get_default_scenario_config()
        super().__init__(seed=seed if seed is not None else config.seed)
        self.config = config
        self.settings = config.settings
        self.frame_count = 0
        self.elapsed = 0.0  # segundos simulados

        # 1. Geometria (fonte única de verdade)
        self.apartment = Apartment(config.apartment)

        # 2. Coleção viva de partículas (ordem = idade, mais antigas primeiro)
        self.particles: List[AirParticle] = []

        # 3. Agregador de fluxo
        self.flow = FlowSolver(
            apartment=self.apartment,
            particle_factory=self.create_particle,
            rng=self.random,
            ambient_temperature=self.settings.ambient_temp
        )

        self.apartment.reset_zones(self.settings.ambient_temp)
        self._initialize_particles()

        # 4. Coletores de Dados
        self.metrics_history: List[Dict[str, Any]] = []
        reporters = {"Particles": lambda m: len(m.particles)}
        for zone_id in self.apartment.zones:
            reporters[zone_id] = (lambda m, z=zone_id: m.apartment.average_temperature(z))
        self.datacollector = DataCollector(model_reporters=reporters)

        logger.info(f"Modelo inicializado: {self.config.name}. Partículas: {len(self.particles)}")

    # ========================================================================
    # CICLO DE VIDA
    # ========================================================================

    def create_particle(
        self,
        x: float,
        y: float,
        temperature: float,
        velocity: Tuple[float, float] = (0.0, 0.0)
    ) -> AirParticle:
        """Cria uma partícula registrada neste modelo (não a insere na coleção)."""
        return AirParticle(self, x, y, temperature, velocity)

    def _initialize_particles(self):
        """População base de ar ambiente em posições aleatórias válidas."""
        for _ in range(self.settings.baseline_particles):
            x = self.random.random() * self.apartment.width
            y = self.random.random() * self.apartment.height
            if self.apartment.is_valid_position(x, y):
                self.particles.append(self.create_particle(x, y, self.settings.ambient_temp))

    def _discard(self, particle: AirParticle):
        particle.remove()

    @property
    def soft_particle_cap(self) -> int:
        return max(
            SimulationLimits.SOFT_CAP_FLOOR,
            self.settings.particle_density * SimulationLimits.SOFT_CAP_PER_DENSITY
        )

    def step(self, dt: float = 1.0 / 60.0):
        """
        Executa um frame completo.

        Ordem:
        1. Corte pelo limite suave (mais antigas primeiro).
        2. FlowSolver (zonas, transporte, dispositivos, pares).
        3. advance() de cada partícula; as mortas saem da coleção.
        4. Geração do AC (frames pares) e dos ventiladores (a cada 3 frames);
           as novas partículas só avançam no frame seguinte.
        5. Contadores e telemetria.
        """
        overflow = len(self.particles) - self.soft_particle_cap
        if overflow > 0:
            for particle in self.particles[:overflow]:
                self._discard(particle)
            del self.particles[:overflow]

        self.flow.update(self.particles, dt)

        ambient = self.flow.ambient_temperature
        survivors = []
        for particle in self.particles:
            if particle.advance(dt, self.apartment, ambient):
                survivors.append(particle)
            else:
                self._discard(particle)
        self.particles = survivors

        if self.apartment.ac_unit.is_active and self.frame_count % SpawnParams.AC_BURST_EVERY == 0:
            self._spawn_ac_burst()
        if self.frame_count % SpawnParams.FAN_SPAWN_EVERY == 0:
            self._spawn_fan_particles()

        self.frame_count += 1
        self.elapsed += dt
        self._update_metrics()
        self.datacollector.collect(self)

    def _spawn_ac_burst(self):
        """
        Rajada horizontal a partir do fundo da carcaça do AC.
        Uma partícula a cada 12% de vazão, até 95% do limite suave.
        """
        ac = self.apartment.ac_unit
        flow_percent = round(ac.flow_strength * 100.0, 6)
        count = math.floor(flow_percent / SpawnParams.AC_BURST_PERCENT_PER_PARTICLE)
        limit = self.soft_particle_cap * SpawnParams.AC_BURST_CAP_FRACTION

        x = ac.housing.x + SpawnParams.AC_BURST_BACK_OFFSET
        y = ac.housing.y + ac.housing.height / 2
        speed = max(SpawnParams.AC_BURST_MIN_SPEED, ac.flow_strength * SpawnParams.AC_BURST_SPEED)

        spawned = 0
        for _ in range(count):
            if len(self.particles) >= limit:
                break
            self.particles.append(self.create_particle(x, y, ac.target_temperature, (speed, 0.0)))
            spawned += 1

        if spawned < count:
            logger.debug(f"Rajada do AC limitada: {spawned}/{count} partículas ({len(self.particles)} vivas)")

    def _spawn_fan_particles(self):
        """Ventiladores movem ar ambiente em feixe estreito (±2°), até 90% do limite suave."""
        limit = self.soft_particle_cap * SpawnParams.FAN_CAP_FRACTION
        ambient = self.flow.ambient_temperature

        for fan in self.apartment.fans.values():
            if not fan.is_active:
                continue

            count = math.floor(fan.flow_strength * SpawnParams.FAN_SPAWN_RATE)
            x, y = fan.housing.center
            base_angle = math.atan2(fan.direction[1], fan.direction[0])
            speed = fan.flow_strength * SpawnParams.FAN_SPAWN_SPEED

            for _ in range(count):
                if len(self.particles) >= limit:
                    return
                jitter = (self.random.random() - 0.5) * 2 * math.radians(SpawnParams.FAN_JITTER_DEG)
                angle = base_angle + jitter
                self.particles.append(self.create_particle(
                    x, y, ambient, (speed * math.cos(angle), speed * math.sin(angle))
                ))

    def reset(self):
        """Descarta as partículas, restaura as zonas e recria a população base."""
        for particle in self.particles:
            self._discard(particle)
        self.particles = []
        self.apartment.reset_zones(self.flow.ambient_temperature)
        self._initialize_particles()
        logger.info(f"Simulação reiniciada. Partículas: {len(self.particles)}")

    # ========================================================================
    # INJEÇÃO
    # ========================================================================

    def inject_air(
        self,
        x: float,
        y: float,
        temperature: float,
        velocity: Tuple[float, float] = (0.0, 0.0),
        count: int = SimulationLimits.INJECTION_COUNT
    ) -> bool:
        """
        Injeta um pequeno aglomerado de partículas perto do ponto.

        Returns:
            bool: False (sem efeito) se o ponto não for uma posição válida.
        """
        if not self.apartment.is_valid_position(x, y):
            logger.warning(f"Injeção rejeitada em posição inválida ({x:.2f}, {y:.2f}).")
            return False

        spread = SimulationLimits.INJECTION_SPREAD
        v_spread = SimulationLimits.INJECTION_VELOCITY_SPREAD
        for _ in range(count):
            self.particles.append(self.create_particle(
                x + (self.random.random() - 0.5) * spread,
                y + (self.random.random() - 0.5) * spread,
                temperature,
                (velocity[0] + (self.random.random() - 0.5) * v_spread,
                 velocity[1] + (self.random.random() - 0.5) * v_spread)
            ))
        return True

    # ========================================================================
    # MUTADORES DE CONFIGURAÇÃO
    # ========================================================================

    def set_ambient_temperature(self, temperature: float):
        self.settings.ambient_temp = float(temperature)
        self.flow.set_ambient_temperature(temperature)

    def set_ac_temperature(self, temperature: float):
        ac = self.apartment.ac_unit
        self.apartment.set_ac_settings(temperature, ac.flow_strength)

    def set_ac_flow_percent(self, percent: float):
        """Escala 0-100% mapeada para 0-1."""
        ac = self.apartment.ac_unit
        self.apartment.set_ac_settings(ac.target_temperature, percent / 100.0)

    def set_ac_active(self, is_active: bool):
        self.apartment.set_ac_active(is_active)

    def set_opening_state(self, name: str, is_open: bool):
        self.apartment.set_opening_state(name, is_open)

    def set_opening_height(self, name: str, height: float):
        self.apartment.set_opening_height(name, height)

    def set_window_height_percent(self, percent: float):
        """Altura de todas as janelas como fração da altura máxima."""
        for opening in self.apartment.outside_openings():
            self.apartment.set_opening_height(opening.name, (percent / 100.0) * MAX_OPENING_HEIGHT)

    def set_fan_active(self, fan_id: str, is_active: bool):
        self.apartment.set_fan_active(fan_id, is_active)

    def set_fan_strength(self, fan_id: str, flow_strength: float):
        self.apartment.set_fan_strength(fan_id, flow_strength)

    def set_fans_strength_percent(self, percent: float):
        for fan_id in self.apartment.fans:
            self.apartment.set_fan_strength(fan_id, percent / 100.0)

    def set_particle_density(self, density: int):
        self.settings.particle_density = max(0, int(density))

    def set_flow_speed(self, multiplier: float):
        """Multiplicador usado pelo driver ao calcular dt."""
        self.settings.flow_speed = max(0.0, float(multiplier))

    # ========================================================================
    # API DE DADOS (somente leitura)
    # ========================================================================

    def zone_temperatures(self) -> Dict[str, float]:
        return {zone_id: self.apartment.average_temperature(zone_id) for zone_id in self.apartment.zones}

    def stair_temperature(self) -> float:
        gap = self.apartment.floor_gap
        upper = self.apartment.average_temperature(gap.upper_zone)
        lower = self.apartment.average_temperature(gap.lower_zone)
        return (upper + lower) / 2

    def particle_snapshot(self) -> np.ndarray:
        """Matriz (n, 5) com colunas x, y, vx, vy, temperature."""
        if not self.particles:
            return np.zeros((0, len(SNAPSHOT_COLUMNS)), dtype=np.float64)
        return np.array(
            [(p.x, p.y, p.vx, p.vy, p.temperature) for p in self.particles],
            dtype=np.float64
        )

    def particle_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame(self.particle_snapshot(), columns=SNAPSHOT_COLUMNS)
        df.insert(0, "id", [p.unique_id for p in self.particles])
        return df

    def device_states(self) -> Dict[str, bool]:
        states = {"ac": self.apartment.ac_unit.is_active}
        for fan_id, fan in self.apartment.fans.items():
            states[fan_id] = fan.is_active
        return states

    def opening_states(self) -> Dict[str, bool]:
        return {name: o.is_open for name, o in self.apartment.openings.items()}

    def _update_metrics(self):
        """Calcula estatísticas do frame atual e salva no histórico."""
        metric = {
            "frame": self.frame_count,
            "time_s": self.elapsed,
            "particles": len(self.particles),
            "stair_temp": self.stair_temperature(),
        }
        metric.update(self.zone_temperatures())
        self.metrics_history.append(metric)

    def get_metrics_dataframe(self) -> pd.DataFrame:
        """Exporta o histórico de métricas como DataFrame do Pandas."""
        return pd.DataFrame(self.metrics_history)
