"""
Pacote principal do Simulador de Convecção.

Este pacote aproxima a convecção e a mistura térmica dentro de um pequeno
apartamento de várias zonas com um modelo de partículas discretas
("parcelas de ar") advectadas por empuxo/arrasto simplificados e canalizadas
por dispositivos mecânicos (AC e ventiladores).

Módulos:
    - config: Constantes da heurística, geometria e cenários.
    - geometry: Fachada do apartamento (zonas, aberturas, piso, dispositivos).
    - particle: Cinemática e fronteiras de cada parcela (AirParticle).
    - flow: Agregador de fluxo por frame (FlowSolver).
    - model: Orquestrador da simulação (ConvectionModel).
    - driver: Conversão de relógio em dt (SimulationDriver).
"""

# Expõe as classes principais para acesso direto
from .config import (
    ScenarioConfig,
    ApartmentConfig,
    SimulationSettings,
    get_default_apartment_config,
    get_default_scenario_config,
    create_duplex_scenario
)

from .geometry import Apartment
from .particle import AirParticle
from .flow import FlowSolver
from .model import ConvectionModel
from .driver import SimulationDriver

__all__ = [
    "ConvectionModel",
    "AirParticle",
    "FlowSolver",
    "Apartment",
    "SimulationDriver",
    "ScenarioConfig",
    "ApartmentConfig",
    "SimulationSettings",
    "get_default_apartment_config",
    "get_default_scenario_config",
    "create_duplex_scenario"
]

__version__ = "1.0.0"
