"""
Módulo de Geometria e Zonas (Apartment Facade).

Responsabilidade:
- Ser a única fonte de verdade da geometria do apartamento.
- Resolver ponto -> zona respeitando a laje impermeável do piso.
- Responder consultas de conectividade (zonas vizinhas, aberturas entre zonas).
- Expor mutadores explícitos de configuração (abrir/fechar, AC, ventiladores).

As referências cruzadas (abertura -> zona, AC -> zona) são ids simples,
resolvidos por busca nos dicionários do Apartment.

Padrão de Projeto: Facade / Service Layer.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Any

from .config import (
    ApartmentConfig,
    RectConfig,
    OpeningKind,
    BoundaryParams,
    MAX_OPENING_HEIGHT,
    OUTSIDE,
    DEFAULT_AMBIENT_TEMP,
)

logger = logging.getLogger(__name__)

# ============================================================================
# ESTRUTURAS
# ============================================================================

@dataclass
class Rect:
    """Retângulo alinhado aos eixos, bordas inclusivas."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_config(cls, cfg: RectConfig) -> 'Rect':
        return cls(cfg.x, cfg.y, cfg.width, cfg.height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.top


@dataclass
class Zone:
    """
    Zona retangular com temperatura suavizada.

    'particles' é a lista transitória de membros do frame atual: reconstruída
    a cada frame pelo FlowSolver, sem posse sobre as partículas.
    """
    id: str
    rect: Rect
    connections: List[str]
    temperature: float = DEFAULT_AMBIENT_TEMP
    particles: List[Any] = field(default_factory=list)


@dataclass
class Opening:
    name: str
    from_zone: str
    to_zone: str
    rect: Rect
    is_open: bool
    kind: OpeningKind = OpeningKind.DOOR

    @property
    def leads_outside(self) -> bool:
        return self.to_zone == OUTSIDE

    def joins(self, zone_a: str, zone_b: str) -> bool:
        return ((self.from_zone == zone_a and self.to_zone == zone_b) or
                (self.from_zone == zone_b and self.to_zone == zone_a))


@dataclass
class FloorGap:
    """Vão da escada no plano horizontal do piso."""
    rect: Rect
    floor_y: float
    lower_zone: str
    upper_zone: str

    def spans(self, x: float) -> bool:
        return self.rect.x <= x <= self.rect.right


@dataclass
class PartitionWall:
    x: float
    y_min: float
    y_max: float
    half_thickness: float
    door: Optional[str] = None


@dataclass
class ACUnit:
    zone: str
    housing: Rect
    tube: Rect
    target_temperature: float
    flow_strength: float
    is_active: bool

    @property
    def outlet(self) -> Tuple[float, float]:
        """Centro da face de saída (borda direita da carcaça)."""
        return (self.housing.right, self.housing.y + self.housing.height / 2)


@dataclass
class Fan:
    id: str
    zone: str
    housing: Rect
    duct: Optional[Rect]
    direction: Tuple[float, float]
    flow_strength: float
    is_active: bool

# ============================================================================
# FACHADA
# ============================================================================

class Apartment:
    """
    Contêiner da geometria: zonas, aberturas, vão da escada, AC e ventiladores.
    Mutado apenas pelos setters explícitos; nenhuma física acontece aqui.
    """

    def __init__(self, config: ApartmentConfig):
        """
        Args:
            config: Geometria carregada (ApartmentConfig).
        """
        self.width = config.width
        self.height = config.height

        self.zones: Dict[str, Zone] = {
            z.id: Zone(z.id, Rect.from_config(z.rect), list(z.connections))
            for z in config.zones
        }
        self.openings: Dict[str, Opening] = {
            o.name: Opening(o.name, o.from_zone, o.to_zone, Rect.from_config(o.rect), o.is_open, o.kind)
            for o in config.openings
        }

        gap = config.floor_gap
        self.floor_gap = FloorGap(Rect.from_config(gap.rect), gap.floor_y, gap.lower_zone, gap.upper_zone)

        ac = config.ac_unit
        self.ac_unit = ACUnit(
            zone=ac.zone,
            housing=Rect.from_config(ac.housing),
            tube=Rect.from_config(ac.tube),
            target_temperature=ac.target_temperature,
            flow_strength=ac.flow_strength,
            is_active=ac.is_active
        )

        self.fans: Dict[str, Fan] = {
            f.id: Fan(
                id=f.id,
                zone=f.zone,
                housing=Rect.from_config(f.housing),
                duct=Rect.from_config(f.duct) if f.duct else None,
                direction=(f.direction[0], f.direction[1]),
                flow_strength=f.flow_strength,
                is_active=f.is_active
            )
            for f in config.fans
        }

        self.partition: Optional[PartitionWall] = None
        if config.partition is not None:
            p = config.partition
            self.partition = PartitionWall(p.x, p.y_min, p.y_max, p.half_thickness, p.door)

        logger.info(
            f"Apartamento inicializado: {self.width}x{self.height} m, "
            f"{len(self.zones)} zonas, {len(self.openings)} aberturas, {len(self.fans)} ventiladores."
        )

    # ========================================================================
    # CONSULTAS ESPACIAIS
    # ========================================================================

    def zone_at(self, x: float, y: float) -> Optional[Zone]:
        """
        Retorna a zona que contém o ponto, ou None.

        Na faixa do plano do piso (±0.05 m) o ponto só é válido dentro do vão
        da escada: abaixo do plano resolve para a zona inferior, no plano ou
        acima para a superior. Fora do vão, nessa altura, não há zona.
        """
        gap = self.floor_gap
        band = BoundaryParams.FLOOR_BAND
        if gap.floor_y - band < y < gap.floor_y + band:
            if gap.spans(x):
                zone_id = gap.lower_zone if y < gap.floor_y else gap.upper_zone
                return self.zones.get(zone_id)
            return None

        for zone in self.zones.values():
            if zone.rect.contains(x, y):
                return zone
        return None

    def in_bounds(self, x: float, y: float) -> bool:
        return 0.0 <= x <= self.width and 0.0 <= y <= self.height

    def is_valid_position(self, x: float, y: float) -> bool:
        """Dentro dos limites do apartamento E resolvido para alguma zona."""
        if not self.in_bounds(x, y):
            return False
        return self.zone_at(x, y) is not None

    def connected_zones(self, zone_id: str) -> List[Zone]:
        """Zonas vizinhas existentes (ids desconhecidos são ignorados)."""
        zone = self.zones.get(zone_id)
        if zone is None:
            return []
        return [self.zones[c] for c in zone.connections if c in self.zones]

    def openings_between(self, zone_a: str, zone_b: str) -> List[Opening]:
        return [o for o in self.openings.values() if o.joins(zone_a, zone_b)]

    def outside_openings(self) -> List[Opening]:
        """Aberturas que levam para fora (rotas de fuga)."""
        return [o for o in self.openings.values() if o.leads_outside]

    def is_stair_connection(self, zone_a: str, zone_b: str) -> bool:
        """O par de zonas unido pelo vão da escada."""
        return {zone_a, zone_b} == {self.floor_gap.lower_zone, self.floor_gap.upper_zone}

    def is_door_open(self, name: Optional[str]) -> bool:
        opening = self.openings.get(name) if name else None
        return opening is not None and opening.is_open

    def average_temperature(self, zone_id: str) -> Optional[float]:
        """
        Média de temperatura das partículas do frame atual na zona, ou a
        temperatura suavizada da zona se a lista estiver vazia.
        """
        zone = self.zones.get(zone_id)
        if zone is None:
            return None
        if not zone.particles:
            return zone.temperature
        return sum(p.temperature for p in zone.particles) / len(zone.particles)

    # ========================================================================
    # MUTADORES (somente efeito colateral, sem física)
    # ========================================================================

    def set_opening_state(self, name: str, is_open: bool):
        opening = self.openings.get(name)
        if opening is None:
            logger.warning(f"Abertura desconhecida: {name}. Ignorando.")
            return
        opening.is_open = bool(is_open)

    def set_opening_height(self, name: str, height: float):
        """Altera a altura de uma abertura, limitada a [0, MAX_OPENING_HEIGHT]."""
        opening = self.openings.get(name)
        if opening is None:
            logger.warning(f"Abertura desconhecida: {name}. Ignorando.")
            return
        opening.rect.height = min(MAX_OPENING_HEIGHT, max(0.0, height))

    def set_ac_settings(self, target_temperature: float, flow_strength: float):
        self.ac_unit.target_temperature = target_temperature
        self.ac_unit.flow_strength = min(1.0, max(0.0, flow_strength))

    def set_ac_active(self, is_active: bool):
        self.ac_unit.is_active = bool(is_active)

    def set_fan_active(self, fan_id: str, is_active: bool):
        fan = self.fans.get(fan_id)
        if fan is None:
            logger.warning(f"Ventilador desconhecido: {fan_id}. Ignorando.")
            return
        fan.is_active = bool(is_active)

    def set_fan_strength(self, fan_id: str, flow_strength: float):
        fan = self.fans.get(fan_id)
        if fan is None:
            logger.warning(f"Ventilador desconhecido: {fan_id}. Ignorando.")
            return
        fan.flow_strength = min(1.0, max(0.0, flow_strength))

    def reset_zones(self, temperature: float):
        """Restaura a temperatura de todas as zonas e limpa as listas."""
        for zone in self.zones.values():
            zone.temperature = temperature
            zone.particles = []
