"""
Módulo de Partículas de Ar (AirParticle).

Cada partícula é uma parcela leve de ar que carrega temperatura e velocidade,
é advectada por empuxo/arrasto simplificados e resolve sozinha as fronteiras
geométricas do apartamento (paredes, laje do piso, janelas, divisória,
dutos do AC e dos ventiladores).

Dependências:
- mesa: Framework de ABM (cada partícula é um Agent registrado no modelo).
- convection.config: Coeficientes da heurística.
"""

import logging
import math
from typing import Tuple, Optional, Any

from mesa import Agent

from .config import (
    ParticleParams,
    BoundaryParams,
    DuctParams,
    DEFAULT_AMBIENT_TEMP,
)
from .geometry import Apartment, ACUnit, Fan

logger = logging.getLogger(__name__)


def calculate_mass(temperature: float) -> float:
    """
    Ar frio é mais denso, ar quente é mais leve.
    Massa base a 20°C, 5% por grau, nunca abaixo de 0.1.
    """
    temp_effect = (ParticleParams.REFERENCE_TEMP - temperature) * ParticleParams.MASS_TEMP_COEFF
    return max(ParticleParams.MIN_MASS, ParticleParams.BASE_MASS + temp_effect)


def temperature_color(temperature: float) -> Tuple[int, int, int]:
    """Mapeia temperatura para RGB (azul = frio, vermelho/laranja = quente)."""
    normalized = (temperature - 10.0) / (30.0 - 10.0)

    if normalized <= 0.5:
        intensity = min(255, max(0, math.floor((1 - normalized * 2) * 255)))
        return (intensity, intensity, 255)

    intensity = min(255, max(0, math.floor((normalized - 0.5) * 2 * 255)))
    return (255, 255 - intensity, 0)


class AirParticle(Agent):
    """
    Parcela de ar.

    Atributos:
        unique_id (int): Identidade estável (atribuída pelo mesa).
        x, y (float): Posição em metros.
        vx, vy (float): Velocidade.
        temperature (float): Temperatura em °C.
        age (int): Idade em frames.
        zone (str): Última zona conhecida (apenas informativa).
    """

    def __init__(
        self,
        model: Any,
        x: float,
        y: float,
        temperature: float = DEFAULT_AMBIENT_TEMP,
        velocity: Tuple[float, float] = (0.0, 0.0)
    ):
        super().__init__(model)
        self.x = float(x)
        self.y = float(y)
        self.temperature = float(temperature)
        self.vx = float(velocity[0])
        self.vy = float(velocity[1])

        self.age = 0
        self.max_age = ParticleParams.MAX_AGE
        self.zone: Optional[str] = None

    # ========================================================================
    # ESTADO DERIVADO
    # ========================================================================

    @property
    def mass(self) -> float:
        # Sempre derivada da temperatura atual
        return calculate_mass(self.temperature)

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)

    @property
    def color(self) -> Tuple[int, int, int]:
        return temperature_color(self.temperature)

    @property
    def is_alive(self) -> bool:
        return self.age < self.max_age

    # ========================================================================
    # API PÚBLICA
    # ========================================================================

    def advance(self, dt: float, apartment: Apartment, ambient_temp: float = DEFAULT_AMBIENT_TEMP) -> bool:
        """
        Avança um passo de simulação.

        Ordem: idade -> empuxo -> arrasto -> integração de Euler ->
        mistura térmica com o ambiente -> fronteiras.

        Returns:
            bool: True enquanto age < max_age. O chamador descarta as demais.
        """
        self.age += 1

        # Partículas rápidas (jatos canalizados) quase ignoram o empuxo
        momentum_factor = max(
            ParticleParams.MIN_MOMENTUM_FACTOR,
            1.0 - self.speed * ParticleParams.MOMENTUM_DAMPING
        )

        buoyancy = (ambient_temp - self.temperature) * ParticleParams.BUOYANCY_COEFF * momentum_factor
        self.vy += buoyancy * dt

        if self.temperature < ambient_temp:
            self.vy -= ParticleParams.COLD_SINK_ACCEL * dt * momentum_factor

        self.vx *= ParticleParams.DRAG
        self.vy *= ParticleParams.DRAG

        self.x += self.vx * dt
        self.y += self.vy * dt

        self.temperature += (ambient_temp - self.temperature) * ParticleParams.AMBIENT_MIXING_RATE

        self.handle_boundaries(apartment)

        return self.is_alive

    def add_force(self, force_x: float, force_y: float):
        """Soma à velocidade e reescala para o teto de velocidade (5.0)."""
        self.vx += force_x
        self.vy += force_y

        speed = self.speed
        if speed > ParticleParams.MAX_SPEED:
            self.vx = (self.vx / speed) * ParticleParams.MAX_SPEED
            self.vy = (self.vy / speed) * ParticleParams.MAX_SPEED

    def set_temperature(self, temperature: float):
        self.temperature = float(temperature)

    def mark_escaped(self):
        """Força a remoção no próximo filtro de vida."""
        self.age = self.max_age

    # ========================================================================
    # FRONTEIRAS (ordem fixa)
    # ========================================================================

    def handle_boundaries(self, apartment: Apartment):
        zone = apartment.zone_at(self.x, self.y)
        if zone is None:
            self._bounce_from_walls(apartment)
        else:
            self.zone = zone.id

        if self._escape_through_window(apartment):
            return

        self._collide_with_partition(apartment)
        self._channel_through_ac(apartment.ac_unit)
        for fan in apartment.fans.values():
            self._channel_through_fan(fan)

    def _bounce_from_walls(self, apartment: Apartment):
        """Paredes externas e laje do piso (fora do vão da escada)."""
        restitution = BoundaryParams.WALL_RESTITUTION

        if self.x <= 0:
            self.x = 0.0
            self.vx = abs(self.vx) * restitution
        if self.x >= apartment.width:
            self.x = apartment.width
            self.vx = -abs(self.vx) * restitution
        if self.y <= 0:
            self.y = 0.0
            self.vy = abs(self.vy) * restitution
        if self.y >= apartment.height:
            self.y = apartment.height
            self.vy = -abs(self.vy) * restitution

        gap = apartment.floor_gap
        if gap.spans(self.x):
            return

        floor_y = gap.floor_y
        band = BoundaryParams.FLOOR_BAND
        leak = BoundaryParams.FLOOR_LEAK_DEPTH

        if floor_y - band < self.y < floor_y + band:
            if self.vy > 0:
                # Subindo do térreo
                self.y = floor_y - band
                self.vy = -abs(self.vy) * restitution
            else:
                # Descendo do andar superior
                self.y = floor_y + band
                self.vy = abs(self.vy) * restitution
        elif floor_y < self.y < floor_y + leak:
            self.y = floor_y + band
            self.vy = abs(self.vy) * BoundaryParams.LEAK_RESTITUTION
        elif floor_y - leak < self.y < floor_y:
            self.y = floor_y - band
            self.vy = -abs(self.vy) * BoundaryParams.LEAK_RESTITUTION

    def _escape_through_window(self, apartment: Apartment) -> bool:
        margin = BoundaryParams.WINDOW_MARGIN
        for opening in apartment.outside_openings():
            if not opening.is_open:
                continue
            rect = opening.rect
            if (rect.x - margin <= self.x <= rect.right + margin and
                    rect.y <= self.y <= rect.top):
                self.mark_escaped()
                return True
        return False

    def _collide_with_partition(self, apartment: Apartment):
        wall = apartment.partition
        if wall is None:
            return

        left = wall.x - wall.half_thickness
        right = wall.x + wall.half_thickness
        if not (left < self.x < right and wall.y_min <= self.y <= wall.y_max):
            return

        if apartment.is_door_open(wall.door):
            door = apartment.openings[wall.door]
            if door.rect.y <= self.y <= door.rect.top:
                return

        if self.vx > 0:
            self.x = left
            self.vx = -abs(self.vx) * BoundaryParams.WALL_RESTITUTION
        else:
            self.x = right
            self.vx = abs(self.vx) * BoundaryParams.WALL_RESTITUTION

    def _channel_through_ac(self, ac: ACUnit):
        """Jato dirigido e de baixa divergência dentro da carcaça e do tubo."""
        housing = ac.housing
        tube = ac.tube
        in_housing = housing.contains(self.x, self.y)
        in_tube = tube.contains(self.x, self.y)
        if not (in_housing or in_tube):
            return

        section = housing if in_housing else tube
        center_y = section.y + section.height / 2

        self.vx = max(self.vx, DuctParams.AC_OUTLET_SPEED)

        if in_tube:
            allowed = tube.height * DuctParams.AC_TUBE_DEVIATION
        else:
            allowed = housing.height * DuctParams.AC_HOUSING_DEVIATION
        if abs(self.y - center_y) > allowed:
            self.vy += (center_y - self.y) * DuctParams.AC_CENTERING_GAIN

        if self.y <= section.y:
            self.y = section.y + DuctParams.WALL_INSET
            self.vy = abs(self.vy) * DuctParams.AC_WALL_RESTITUTION
        elif self.y >= section.top:
            self.y = section.top - DuctParams.WALL_INSET
            self.vy = -abs(self.vy) * DuctParams.AC_WALL_RESTITUTION

        # Empurrada contra a face de entrada: acelera para frente
        if in_housing and self.x <= housing.x:
            self.x = housing.x + DuctParams.WALL_INSET
            self.vx = abs(self.vx) * DuctParams.AC_HOUSING_KICK
        elif in_tube and self.x <= tube.x:
            self.x = tube.x + DuctParams.WALL_INSET
            self.vx = abs(self.vx) * DuctParams.AC_TUBE_KICK

    def _channel_through_fan(self, fan: Fan):
        if not fan.is_active or fan.duct is None:
            return

        duct = fan.duct
        if not duct.contains(self.x, self.y):
            return

        self.add_force(fan.direction[0] * DuctParams.FAN_FORCE, fan.direction[1] * DuctParams.FAN_FORCE)

        # Rebatidas elásticas nas quatro paredes do duto
        inset = DuctParams.WALL_INSET
        if self.x <= duct.x:
            self.x = duct.x + inset
            self.vx = abs(self.vx)
        elif self.x >= duct.right:
            self.x = duct.right - inset
            self.vx = -abs(self.vx)

        if self.y <= duct.y:
            self.y = duct.y + inset
            self.vy = abs(self.vy)
        elif self.y >= duct.top:
            self.y = duct.top - inset
            self.vy = -abs(self.vy)

        center_x, center_y = duct.center
        if abs(self.x - center_x) > duct.width * DuctParams.FAN_DEVIATION:
            self.vx += (center_x - self.x) * DuctParams.FAN_CENTERING_GAIN
        if abs(self.y - center_y) > duct.height * DuctParams.FAN_DEVIATION:
            self.vy += (center_y - self.y) * DuctParams.FAN_CENTERING_GAIN
