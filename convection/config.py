"""
Módulo de Configuração e Definição de Tipos para o Simulador de Convecção.

ARQUITETURA:
Este módulo atua como o 'Schema Definition' do projeto.
Ele define as constantes físicas da heurística de partículas e as estruturas
de dados (Dataclasses) que descrevem a geometria do apartamento.
Implementa o padrão 'Data Transfer Object' (DTO) para converter JSONs brutos
em objetos Python tipados.

Responsabilidade:
- Centralizar coeficientes da cinemática das partículas e do agregador de fluxo.
- Definir Dataclasses para zonas, aberturas, piso, AC e ventiladores.
- Serialização e Deserialização (JSON <-> Python Object).
- Factories para o apartamento duplex padrão.
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional, Any, Union
from pathlib import Path

logger = logging.getLogger(__name__)

# ============================================================================
# 1. CONSTANTES GERAIS
# ============================================================================

OUTSIDE = "outside"  # Destino sentinela das aberturas externas (janelas)
DEFAULT_AMBIENT_TEMP = 22.0  # °C
MAX_OPENING_HEIGHT = 2.0  # m

# ============================================================================
# 2. ENUMS (Domínio Discreto)
# ============================================================================

class OpeningKind(str, Enum):
    """Tipos de abertura."""
    DOOR = "door"
    WINDOW = "window"

# ============================================================================
# 3. CONSTANTES DA HEURÍSTICA (valores fixos do modelo)
# ============================================================================

@dataclass(frozen=True)
class ParticleParams:
    """Cinemática de uma parcela de ar."""
    MAX_AGE: int = 1200              # frames (20 s a 60 fps)
    BASE_MASS: float = 1.0
    REFERENCE_TEMP: float = 20.0     # °C de massa base
    MASS_TEMP_COEFF: float = 0.05    # 5% por grau
    MIN_MASS: float = 0.1
    MAX_SPEED: float = 5.0           # teto rígido de add_force
    MOMENTUM_DAMPING: float = 0.5
    MIN_MOMENTUM_FACTOR: float = 0.1
    BUOYANCY_COEFF: float = 0.02
    COLD_SINK_ACCEL: float = 0.1
    DRAG: float = 0.99
    AMBIENT_MIXING_RATE: float = 0.001

@dataclass(frozen=True)
class BoundaryParams:
    """Paredes externas, laje do piso, janelas e divisória interna."""
    WALL_RESTITUTION: float = 0.3
    LEAK_RESTITUTION: float = 0.5
    FLOOR_BAND: float = 0.05         # meia-espessura da faixa do plano do piso
    FLOOR_LEAK_DEPTH: float = 0.1    # profundidade de vazamento tolerada
    WINDOW_MARGIN: float = 0.1       # expansão horizontal da janela

@dataclass(frozen=True)
class DuctParams:
    """Canalização dentro do AC e dos dutos dos ventiladores."""
    AC_OUTLET_SPEED: float = 2.5
    AC_TUBE_DEVIATION: float = 0.2   # fração da altura do tubo
    AC_HOUSING_DEVIATION: float = 0.3
    AC_CENTERING_GAIN: float = 0.8
    AC_WALL_RESTITUTION: float = 0.1
    AC_HOUSING_KICK: float = 1.5
    AC_TUBE_KICK: float = 1.2
    WALL_INSET: float = 0.01
    FAN_FORCE: float = 3.0
    FAN_DEVIATION: float = 0.3
    FAN_CENTERING_GAIN: float = 0.5

@dataclass(frozen=True)
class FlowParams:
    """Coeficientes do agregador de fluxo (um passo por frame)."""
    ZONE_BLEND_OLD: float = 0.95
    ZONE_BLEND_NEW: float = 0.05
    EMPTY_ZONE_RELAXATION: float = 0.001
    STAIR_DEFAULT_AREA: float = 1.0  # m²
    MIN_TEMP_DIFF: float = 0.5       # °C
    PRESSURE_COEFF: float = 0.1
    FLOW_SCALE: float = 0.1
    MIN_FLOW: float = 0.01
    TRANSPORT_FRACTION: float = 0.1
    TRANSPORT_CAP_FRACTION: float = 0.05
    TRANSPORT_FORCE: float = 0.5
    AC_SPAWN_RATE: float = 2.0
    AC_SPAWN_SPEED: float = 1.5
    AC_JITTER_DEG: float = 1.0
    AC_INFLUENCE_RADIUS: float = 2.0
    AC_COOLING_GAIN: float = 0.8
    AC_PUSH_GAIN: float = 0.3
    AC_ENVELOPE_REACH: float = 1.0   # m além do fim do tubo
    AC_ENVELOPE_BAND: float = 0.1    # m acima/abaixo do tubo
    INTERACTION_RADIUS: float = 0.3
    INTERACTION_MIXING: float = 0.1
    REPULSION: float = 0.05

@dataclass(frozen=True)
class SpawnParams:
    """Geração de partículas no fim do frame (depois do avanço)."""
    AC_BURST_EVERY: int = 2            # frames
    AC_BURST_PERCENT_PER_PARTICLE: float = 12.0  # vazão (%) por partícula
    AC_BURST_BACK_OFFSET: float = 0.05 # m a partir da face traseira da carcaça
    AC_BURST_MIN_SPEED: float = 1.2
    AC_BURST_SPEED: float = 1.5
    AC_BURST_CAP_FRACTION: float = 0.95
    FAN_SPAWN_EVERY: int = 3           # frames
    FAN_SPAWN_RATE: float = 2.0
    FAN_SPAWN_SPEED: float = 2.0
    FAN_JITTER_DEG: float = 2.0
    FAN_CAP_FRACTION: float = 0.9

@dataclass(frozen=True)
class SimulationLimits:
    """Limites populacionais e de injeção."""
    HARD_PARTICLE_CAP: int = 1000
    SOFT_CAP_FLOOR: int = 500
    SOFT_CAP_PER_DENSITY: int = 8
    BASELINE_ATTEMPTS: int = 50
    INJECTION_COUNT: int = 5
    INJECTION_SPREAD: float = 0.2    # largura total do jitter por eixo (m)
    INJECTION_VELOCITY_SPREAD: float = 0.5

# ============================================================================
# 4. DATA STRUCTURES (O Schema do Apartamento)
# ============================================================================

@dataclass
class RectConfig:
    """Retângulo alinhado aos eixos (metros)."""
    x: float
    y: float
    width: float
    height: float

@dataclass
class ZoneConfig:
    """Zona retangular e suas conexões."""
    id: str
    rect: RectConfig
    connections: List[str] = field(default_factory=list)

@dataclass
class OpeningConfig:
    """Porta ou janela entre duas zonas (ou zona e 'outside')."""
    name: str
    from_zone: str
    to_zone: str
    rect: RectConfig
    is_open: bool = False
    kind: OpeningKind = OpeningKind.DOOR

@dataclass
class FloorGapConfig:
    """Vão da escada: única região permeável do plano do piso."""
    rect: RectConfig
    floor_y: float
    lower_zone: str
    upper_zone: str

@dataclass
class PartitionWallConfig:
    """Parede vertical interna com uma porta."""
    x: float
    y_min: float
    y_max: float
    half_thickness: float
    door: Optional[str] = None

@dataclass
class ACUnitConfig:
    """Unidade de AC com tubo de extensão."""
    zone: str
    housing: RectConfig
    tube: RectConfig
    target_temperature: float = 16.0
    flow_strength: float = 0.5
    is_active: bool = True

@dataclass
class FanConfig:
    """Ventilador direcional com duto."""
    id: str
    zone: str
    housing: RectConfig
    duct: Optional[RectConfig]
    direction: List[float] = field(default_factory=lambda: [1.0, 0.0])
    flow_strength: float = 0.5
    is_active: bool = False

@dataclass
class ApartmentConfig:
    """Geometria completa do apartamento."""
    width: float
    height: float
    zones: List[ZoneConfig]
    openings: List[OpeningConfig]
    floor_gap: FloorGapConfig
    ac_unit: ACUnitConfig
    fans: List[FanConfig] = field(default_factory=list)
    partition: Optional[PartitionWallConfig] = None

@dataclass
class SimulationSettings:
    """Ajustes expostos aos controles externos."""
    ambient_temp: float = DEFAULT_AMBIENT_TEMP
    particle_density: int = 100
    flow_speed: float = 1.0  # interpretado pelo driver, não pelo núcleo
    baseline_particles: int = SimulationLimits.BASELINE_ATTEMPTS

@dataclass
class ScenarioConfig:
    """
    Objeto Raiz de Configuração.
    Representa o conteúdo completo de um arquivo .json de cenário.
    """
    name: str
    apartment: ApartmentConfig
    settings: SimulationSettings = field(default_factory=SimulationSettings)
    description: str = ""
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScenarioConfig':
        """
        Factory method que hidrata um dicionário (do JSON) em objetos tipados.
        Campos ausentes em 'apartment' caem no duplex padrão.
        """
        try:
            apartment_data = data.get('apartment')
            if apartment_data is None:
                apartment = get_default_apartment_config()
            else:
                apartment = _apartment_from_dict(apartment_data)

            settings_data = data.get('settings', {})
            settings = SimulationSettings(
                ambient_temp=float(settings_data.get('ambient_temp', DEFAULT_AMBIENT_TEMP)),
                particle_density=int(settings_data.get('particle_density', 100)),
                flow_speed=float(settings_data.get('flow_speed', 1.0)),
                baseline_particles=int(
                    settings_data.get('baseline_particles', SimulationLimits.BASELINE_ATTEMPTS)
                )
            )

            return cls(
                name=data['name'],
                apartment=apartment,
                settings=settings,
                description=data.get('description', ''),
                seed=data.get('seed')
            )
        except KeyError as e:
            raise ValueError(f"JSON de cenário inválido. Campo faltando: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Valor inválido no JSON: {e}")

    @classmethod
    def load_from_json(cls, filepath: Union[str, Path]) -> 'ScenarioConfig':
        """Carrega e valida um arquivo JSON do disco."""
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Arquivo de cenário não encontrado: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        return cls.from_dict(data)

    def save_to_json(self, filepath: Union[str, Path]):
        """Salva a configuração atual em JSON (útil para criar templates)."""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(asdict(self), f, indent=4, default=str)


def _rect(data: Dict[str, Any]) -> RectConfig:
    return RectConfig(
        x=float(data['x']),
        y=float(data['y']),
        width=float(data['width']),
        height=float(data['height'])
    )


def _apartment_from_dict(data: Dict[str, Any]) -> ApartmentConfig:
    """Hidrata a geometria. Aceita o formato gerado por save_to_json."""
    zones = [
        ZoneConfig(id=z['id'], rect=_rect(z['rect']), connections=list(z.get('connections', [])))
        for z in data['zones']
    ]

    openings = [
        OpeningConfig(
            name=o['name'],
            from_zone=o['from_zone'],
            to_zone=o['to_zone'],
            rect=_rect(o['rect']),
            is_open=bool(o.get('is_open', False)),
            kind=OpeningKind(o.get('kind', 'door'))
        )
        for o in data.get('openings', [])
    ]

    gap = data['floor_gap']
    zone_ids = {z.id for z in zones}
    for key in ('lower_zone', 'upper_zone'):
        if gap[key] not in zone_ids:
            raise ValueError(f"floor_gap.{key} '{gap[key]}' não corresponde a nenhuma zona")
    floor_gap = FloorGapConfig(
        rect=_rect(gap['rect']),
        floor_y=float(gap['floor_y']),
        lower_zone=gap['lower_zone'],
        upper_zone=gap['upper_zone']
    )

    ac = data['ac_unit']
    ac_unit = ACUnitConfig(
        zone=ac['zone'],
        housing=_rect(ac['housing']),
        tube=_rect(ac['tube']),
        target_temperature=float(ac.get('target_temperature', 16.0)),
        flow_strength=float(ac.get('flow_strength', 0.5)),
        is_active=bool(ac.get('is_active', True))
    )

    fans = []
    for fan in data.get('fans', []):
        duct = fan.get('duct')
        fans.append(FanConfig(
            id=fan['id'],
            zone=fan['zone'],
            housing=_rect(fan['housing']),
            duct=_rect(duct) if duct else None,
            direction=[float(c) for c in fan.get('direction', [1.0, 0.0])],
            flow_strength=float(fan.get('flow_strength', 0.5)),
            is_active=bool(fan.get('is_active', False))
        ))

    partition = None
    if data.get('partition'):
        p = data['partition']
        partition = PartitionWallConfig(
            x=float(p['x']),
            y_min=float(p['y_min']),
            y_max=float(p['y_max']),
            half_thickness=float(p['half_thickness']),
            door=p.get('door')
        )

    return ApartmentConfig(
        width=float(data['width']),
        height=float(data['height']),
        zones=zones,
        openings=openings,
        floor_gap=floor_gap,
        ac_unit=ac_unit,
        fans=fans,
        partition=partition
    )

# ============================================================================
# 5. PRESETS ESTÁTICOS (Geradores de Default)
# ============================================================================

def get_default_apartment_config() -> ApartmentConfig:
    """Duplex de 9 m x 6 m: térreo, mezanino e quarto no andar superior."""
    return ApartmentConfig(
        width=9.0,
        height=6.0,
        zones=[
            ZoneConfig("upper_mezzanine", RectConfig(0.0, 3.0, 6.0, 3.0),
                       ["upper_bedroom", "lower_floor"]),
            ZoneConfig("upper_bedroom", RectConfig(6.0, 3.0, 3.0, 3.0),
                       ["upper_mezzanine"]),
            ZoneConfig("lower_floor", RectConfig(0.0, 0.0, 9.0, 3.0),
                       ["upper_mezzanine"]),
        ],
        openings=[
            OpeningConfig("bedroom_door", "upper_mezzanine", "upper_bedroom",
                          RectConfig(6.0, 3.0, 0.8, 2.1), True, OpeningKind.DOOR),
            OpeningConfig("left_window", "lower_floor", OUTSIDE,
                          RectConfig(0.0, 0.5, 0.1, 1.5), False, OpeningKind.WINDOW),
            OpeningConfig("right_window", "lower_floor", OUTSIDE,
                          RectConfig(8.9, 0.5, 0.1, 1.5), False, OpeningKind.WINDOW),
        ],
        floor_gap=FloorGapConfig(
            rect=RectConfig(4.9, 2.9, 1.2, 0.2),
            floor_y=3.0,
            lower_zone="lower_floor",
            upper_zone="upper_mezzanine"
        ),
        ac_unit=ACUnitConfig(
            zone="upper_mezzanine",
            housing=RectConfig(0.2, 4.0, 0.6, 0.3),  # 1 m acima do piso
            tube=RectConfig(0.8, 4.05, 0.4, 0.2),
            target_temperature=16.0,
            flow_strength=0.5,
            is_active=True
        ),
        fans=[
            FanConfig("stair_fan", "upper_mezzanine",
                      housing=RectConfig(5.3, 5.5, 0.4, 0.4),  # acima do vão da escada
                      duct=RectConfig(5.35, 5.1, 0.3, 0.4),
                      direction=[0.0, -1.0]),
            FanConfig("bedroom_fan", "upper_bedroom",
                      housing=RectConfig(8.5, 4.5, 0.3, 0.3),  # parede do fundo do quarto
                      duct=RectConfig(8.0, 4.55, 0.5, 0.2),
                      direction=[-1.0, 0.0]),
        ],
        partition=PartitionWallConfig(x=6.0, y_min=3.0, y_max=6.0,
                                      half_thickness=0.1, door="bedroom_door")
    )


def get_default_scenario_config() -> ScenarioConfig:
    """Gera a configuração padrão em memória."""
    return ScenarioConfig(
        name="Duplex Padrão",
        description="Apartamento de dois níveis com AC no mezanino",
        apartment=get_default_apartment_config(),
        settings=SimulationSettings()
    )

# ============================================================================
# 6. DYNAMIC FACTORIES (Para Testes e CLI)
# ============================================================================

def create_duplex_scenario(
    ambient_temp: float = DEFAULT_AMBIENT_TEMP,
    ac_temperature: float = 16.0,
    ac_flow_percent: float = 50.0,
    ac_active: bool = True,
    open_openings: Optional[List[str]] = None,
    active_fans: Optional[List[str]] = None,
    baseline_particles: int = SimulationLimits.BASELINE_ATTEMPTS,
    seed: Optional[int] = None
) -> ScenarioConfig:
    """Cria o duplex com parâmetros customizáveis."""
    config = get_default_scenario_config()
    config.seed = seed
    config.settings.ambient_temp = ambient_temp
    config.settings.baseline_particles = baseline_particles

    ac = config.apartment.ac_unit
    ac.target_temperature = ac_temperature
    ac.flow_strength = min(1.0, max(0.0, ac_flow_percent / 100.0))
    ac.is_active = ac_active

    for opening in config.apartment.openings:
        if open_openings is not None and opening.name in open_openings:
            opening.is_open = True

    for fan in config.apartment.fans:
        if active_fans is not None and fan.id in active_fans:
            fan.is_active = True

    return config
