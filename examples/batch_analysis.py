#!/usr/bin/env python3
"""
Exemplo de Análise em Lote
Varre vazão do AC e ventiladores e compara o resfriamento do quarto
"""

import sys
import os
import pandas as pd
import numpy as np
from datetime import datetime

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from convection.config import create_duplex_scenario
from convection.model import ConvectionModel


def run_batch_analysis():
    """Executa múltiplas simulações com diferentes configurações."""

    print("📋 Executando análise em lote do simulador de convecção")
    print("=" * 70)

    ac_flows = [30.0, 60.0, 100.0]
    fan_setups = [[], ["stair_fan"], ["stair_fan", "bedroom_fan"]]
    door_states = [True, False]

    results = []
    total = len(ac_flows) * len(fan_setups) * len(door_states)
    current = 0

    print(f"Total de simulações planejadas: {total}")
    print("-" * 70)

    for ac_flow in ac_flows:
        for fans in fan_setups:
            for door_open in door_states:
                current += 1

                print(f"\n🎬 Simulação {current}/{total}")
                print(f"  Config: AC={ac_flow:.0f}%, ventiladores={fans or 'nenhum'}, porta={'aberta' if door_open else 'fechada'}")

                try:
                    scenario = create_duplex_scenario(
                        ambient_temp=26.0,
                        ac_flow_percent=ac_flow,
                        active_fans=fans,
                        seed=123
                    )
                    model = ConvectionModel(scenario)
                    model.set_opening_state("bedroom_door", door_open)

                    for _ in range(900):
                        model.step(1.0 / 60.0)

                    history = model.get_metrics_dataframe()
                    bedroom_drop = history["upper_bedroom"].iloc[0] - history["upper_bedroom"].iloc[-1]
                    mezzanine_min = history["upper_mezzanine"].min()

                    results.append({
                        'ac_flow': ac_flow,
                        'fans': "+".join(fans) or "none",
                        'door_open': door_open,
                        'bedroom_drop': bedroom_drop,
                        'mezzanine_min': mezzanine_min,
                        'stair_final': history["stair_temp"].iloc[-1],
                        'peak_particles': int(history["particles"].max())
                    })

                    print(f"  ✅ Concluído | Queda no quarto: {bedroom_drop:.3f}°C")

                except Exception as e:
                    print(f"  ❌ Erro: {str(e)}")

    if not results:
        print("\n❌ Nenhuma simulação concluída")
        return

    df = pd.DataFrame(results)
    df['bedroom_drop'] = np.round(df['bedroom_drop'], 4)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    results_dir = os.path.join("data", "results", f"batch_{timestamp}")
    os.makedirs(results_dir, exist_ok=True)

    csv_file = os.path.join(results_dir, "batch_results.csv")
    df.to_csv(csv_file, index=False)

    print("\n" + "=" * 70)
    print("📊 ANÁLISE ESTATÍSTICA")
    print("=" * 70)

    by_door = df.groupby('door_open')['bedroom_drop'].agg(['mean', 'std'])
    print("\nQueda média no quarto por estado da porta:")
    print(by_door.to_string())

    best = df.loc[df['bedroom_drop'].idxmax()]
    print(f"\n🏆 MELHOR CONFIGURAÇÃO (queda {best['bedroom_drop']:.3f}°C):")
    print(f"  AC: {best['ac_flow']:.0f}%")
    print(f"  Ventiladores: {best['fans']}")
    print(f"  Porta aberta: {best['door_open']}")

    print(f"\n💾 Resultados salvos em: {csv_file}")
    print("\n✅ Análise em lote concluída!")


if __name__ == "__main__":
    run_batch_analysis()
