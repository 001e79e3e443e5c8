#!/usr/bin/env python3
"""
Exemplo de Cenário Personalizado
Ajusta o duplex, aplica intervenções durante a execução e salva o cenário em JSON
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from convection.config import ScenarioConfig, create_duplex_scenario
from convection.model import ConvectionModel
from convection.driver import SimulationDriver


def create_custom_scenario():
    """Tarde quente: janelas abertas, depois AC e ventiladores."""

    print("🛠️  Criando cenário personalizado")
    print("=" * 70)

    scenario = create_duplex_scenario(
        ambient_temp=28.0,
        ac_temperature=17.0,
        ac_flow_percent=100.0,
        ac_active=False,
        open_openings=["left_window", "right_window"],
        seed=7
    )
    scenario.name = "TardeQuente"
    scenario.description = "Janelas abertas, AC ligado aos 10 s e ventiladores aos 20 s"

    model = ConvectionModel(scenario)
    driver = SimulationDriver(model)

    # Ar quente vindo da cozinha no térreo
    model.inject_air(7.0, 1.0, 35.0, velocity=(0.0, 0.5), count=20)

    print("\n▶️  Executando simulação...")

    interventions_applied = []
    dt = 1.0 / 60.0

    for frame in range(1, 1801):
        driver.run_frames(1, dt)

        if model.elapsed >= 10.0 and "ac_on" not in interventions_applied:
            model.set_window_height_percent(0.0)
            for name in ("left_window", "right_window"):
                model.set_opening_state(name, False)
            model.set_ac_active(True)
            interventions_applied.append("ac_on")
            print(f"\n  🕐 {model.elapsed:.1f}s: Janelas fechadas, AC ligado")

        if model.elapsed >= 20.0 and "fans_on" not in interventions_applied:
            for fan_id in model.apartment.fans:
                model.set_fan_active(fan_id, True)
            model.set_fans_strength_percent(80.0)
            interventions_applied.append("fans_on")
            print(f"\n  🕐 {model.elapsed:.1f}s: Ventiladores ligados")

        if frame % 300 == 0:
            print(f"\r⏱️  {model.elapsed:5.1f}s | "
                  f"Partículas: {len(model.particles):4d} | "
                  f"Escada: {model.stair_temperature():.2f}°C",
                  end="", flush=True)

    print("\n" + "=" * 70)
    print("✅ Simulação concluída!")

    print("\n📊 RESULTADOS")
    print("=" * 70)
    for zone_id, temp in model.zone_temperatures().items():
        print(f"{zone_id}: {temp:.2f}°C")
    print(f"Dispositivos: {model.device_states()}")

    print(f"\n🛡️  Intervenções aplicadas: {len(interventions_applied)}")
    for i, interv in enumerate(interventions_applied, 1):
        print(f"  {i}. {interv}")

    # Salvar cenário (recarregável com --scenario no CLI)
    results_dir = os.path.join("data", "results", "custom_scenario")
    os.makedirs(results_dir, exist_ok=True)
    path = os.path.join(results_dir, "custom_scenario.json")
    scenario.save_to_json(path)

    reloaded = ScenarioConfig.load_from_json(path)
    print(f"\n💾 Cenário '{reloaded.name}' salvo em: {path}")
    print("\n🎉 Cenário personalizado concluído!")


if __name__ == "__main__":
    create_custom_scenario()
