#!/usr/bin/env python3
"""
Exemplo de Simulação Básica
Duplex padrão com o AC ligado no mezanino
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from convection.config import create_duplex_scenario
from convection.model import ConvectionModel


def run_basic_simulation():
    """Executa 20 s simulados com configurações padrão."""

    print("🚀 Iniciando simulação básica de convecção")
    print("=" * 60)

    # 1. Configurar cenário
    print("1. Configurando cenário...")
    scenario = create_duplex_scenario(
        ambient_temp=24.0,
        ac_temperature=16.0,
        ac_flow_percent=70.0,
        seed=42
    )

    # 2. Criar modelo
    print("2. Criando modelo de simulação...")
    model = ConvectionModel(scenario)

    # 3. Executar simulação
    print("\n▶️  Executando simulação...")
    print("-" * 60)

    dt = 1.0 / 60.0
    total_frames = 1200
    for frame in range(1, total_frames + 1):
        model.step(dt)

        if frame % 100 == 0:
            temps = model.zone_temperatures()
            print(f"\r⏱️  Progresso: {frame / total_frames * 100:5.1f}% | "
                  f"Partículas: {len(model.particles):4d} | "
                  f"Mezanino: {temps['upper_mezzanine']:.2f}°C",
                  end="", flush=True)

    print("\n" + "=" * 60)
    print("✅ Simulação concluída!")

    # 4. Exibir resultados
    print("\n📊 TEMPERATURA POR ZONA")
    print("=" * 60)
    for zone_id, temp in model.zone_temperatures().items():
        print(f"  🌡️  {zone_id:<16}: {temp:.2f} °C")
    print(f"  🪜 {'escada':<16}: {model.stair_temperature():.2f} °C")

    # 5. Partículas frias perto do AC
    df = model.particle_dataframe()
    cold = df[df["temperature"] < scenario.settings.ambient_temp - 1.0]
    print(f"\n❄️  Partículas com mais de 1°C abaixo do ambiente: {len(cold)}")

    print("\n🎉 Simulação básica concluída com sucesso!")


if __name__ == "__main__":
    run_basic_simulation()
