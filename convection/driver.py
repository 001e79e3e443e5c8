"""
Driver de frames (contrato do laço de animação externo).

Converte deltas de relógio de parede em dt de simulação:
    dt = min(delta, max_dt) * flow_speed

Deltas não positivos são ignorados e a pausa simplesmente não chama o
passo do modelo. O núcleo nunca interpreta flow_speed.
"""

import logging
from typing import Optional

from .model import ConvectionModel

logger = logging.getLogger(__name__)


class SimulationDriver:
    """Alimenta o ConvectionModel com um dt por frame."""

    def __init__(self, model: ConvectionModel, max_dt: float = 0.1):
        self.model = model
        self.max_dt = max_dt
        self.is_running = True
        self.last_time: Optional[float] = None

    def pause(self):
        self.is_running = False

    def resume(self):
        self.is_running = True

    def toggle_pause(self) -> bool:
        self.is_running = not self.is_running
        return self.is_running

    def frame_dt(self, delta: float) -> float:
        return min(delta, self.max_dt) * self.model.settings.flow_speed

    def tick(self, now: float) -> bool:
        """
        Processa um instante do relógio (segundos).

        Returns:
            bool: True se um frame foi simulado.
        """
        if self.last_time is None:
            self.last_time = now
            return False

        delta = now - self.last_time
        self.last_time = now

        if not self.is_running or delta <= 0:
            return False

        dt = self.frame_dt(delta)
        if dt <= 0:
            return False

        self.model.step(dt)
        return True

    def run_frames(self, frames: int, dt: float = 1.0 / 60.0):
        """Execução sem relógio: frames de dt fixo (headless/testes)."""
        for _ in range(frames):
            if self.is_running:
                self.model.step(dt * self.model.settings.flow_speed)
