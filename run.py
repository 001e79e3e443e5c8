#!/usr/bin/env python3
"""
CLI para o Simulador de Convecção.

Ferramenta de linha de comando para executar a simulação sem interface
gráfica, gerar relatórios JSON e exportar a telemetria por zona.

Uso Exemplo:
    python run.py --frames 600 --ac-flow 80 --open left_window --csv zonas.csv
"""

import argparse
import json
import sys
import logging
from datetime import datetime

import pandas as pd

# Importações do Projeto
try:
    from convection.config import ScenarioConfig, create_duplex_scenario
    from convection.model import ConvectionModel
    from convection.driver import SimulationDriver
except ImportError as e:
    print(f"Erro crítico de importação: {e}")
    print("Instale o pacote com 'pip install -e .' na raiz do projeto.")
    sys.exit(1)

# Configuração de Logs simples para o terminal
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger("CONVECTION-CLI")


def parse_arguments(argv=None):
    """Configura e processa os argumentos da linha de comando."""
    parser = argparse.ArgumentParser(
        description="Simulador de Convecção em Apartamento (Partículas de Ar)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Parâmetros de Simulação
    parser.add_argument('--frames', type=int, default=600, help="Número de frames a simular.")
    parser.add_argument('--dt', type=float, default=1.0 / 60.0, help="Passo de tempo por frame (s).")
    parser.add_argument('--seed', type=int, default=None, help="Semente do gerador aleatório.")
    parser.add_argument('--scenario', type=str, help="Arquivo JSON de cenário.")

    # Ajustes
    parser.add_argument('--ambient', type=float, default=22.0, help="Temperatura ambiente (°C).")
    parser.add_argument('--ac-temp', type=float, default=16.0, help="Temperatura alvo do AC (°C).")
    parser.add_argument('--ac-flow', type=float, default=50.0, help="Vazão do AC (0-100%%).")
    parser.add_argument('--no-ac', action='store_true', help="Desliga o AC.")
    parser.add_argument('--open', action='append', default=[], help="Abertura a abrir (repetível).")
    parser.add_argument('--fan', action='append', default=[], help="Ventilador a ligar (repetível).")
    parser.add_argument('--fan-speed', type=float, default=50.0, help="Velocidade dos ventiladores (0-100%%).")
    parser.add_argument('--flow-speed', type=float, default=1.0, help="Multiplicador de velocidade do fluxo.")

    # Saídas
    parser.add_argument('--output', type=str, help="Caminho para salvar relatório JSON.")
    parser.add_argument('--csv', type=str, help="Caminho para salvar a telemetria por frame (CSV).")

    return parser.parse_args(argv)


def build_model(args) -> ConvectionModel:
    """Fábrica do modelo baseada nos argumentos."""
    if args.scenario:
        config = ScenarioConfig.load_from_json(args.scenario)
    else:
        config = create_duplex_scenario(
            ambient_temp=args.ambient,
            ac_temperature=args.ac_temp,
            ac_flow_percent=args.ac_flow,
            ac_active=not args.no_ac,
            open_openings=args.open,
            active_fans=args.fan
        )

    model = ConvectionModel(config, seed=args.seed)

    # Aplicados via mutadores para que também valham para cenários em JSON
    for name in args.open:
        model.set_opening_state(name, True)
    for fan_id in args.fan:
        model.set_fan_active(fan_id, True)
    model.set_fans_strength_percent(args.fan_speed)
    model.set_flow_speed(args.flow_speed)
    return model


def run_simulation_loop(model: ConvectionModel, frames: int, dt: float):
    """Executa o loop principal com feedback periódico."""
    logger.info(f"Iniciando simulação: {model.config.name} ({frames} frames, dt={dt:.4f}s)")

    driver = SimulationDriver(model)
    report_every = max(1, frames // 10)

    for frame in range(frames):
        driver.run_frames(1, dt)
        if (frame + 1) % report_every == 0:
            temps = " ".join(f"{k}={v:.2f}" for k, v in model.zone_temperatures().items())
            logger.info(f"Frame {frame + 1}: partículas={len(model.particles)} {temps}")

    logger.info("Simulação concluída.")


def summarize(model: ConvectionModel) -> dict:
    """Resumo final da simulação."""
    history = model.get_metrics_dataframe()
    zone_ids = list(model.apartment.zones)

    return {
        "frames": model.frame_count,
        "simulated_seconds": model.elapsed,
        "final_particles": len(model.particles),
        "peak_particles": int(history["particles"].max()) if not history.empty else 0,
        "zone_temperatures": model.zone_temperatures(),
        "stair_temperature": model.stair_temperature(),
        "min_zone_temperatures": {z: float(history[z].min()) for z in zone_ids} if not history.empty else {},
        "devices": model.device_states(),
        "openings": model.opening_states(),
    }


def save_json_results(path: str, summary: dict):
    """Salva o resumo em formato JSON estruturado."""
    output_data = {
        "timestamp": datetime.now().isoformat(),
        "results": summary,
    }
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(output_data, f, indent=4)
        logger.info(f"Relatório salvo em: {path}")
    except IOError as e:
        logger.error(f"Erro ao salvar JSON: {e}")


def save_csv_history(path: str, history: pd.DataFrame):
    try:
        history.to_csv(path, index=False)
        logger.info(f"Telemetria salva em: {path}")
    except IOError as e:
        logger.error(f"Erro ao salvar CSV: {e}")


def main(argv=None):
    try:
        args = parse_arguments(argv)
        model = build_model(args)
        run_simulation_loop(model, args.frames, args.dt)
        summary = summarize(model)

        print("\n" + "=" * 40)
        print(f" RESULTADOS: {model.config.name}")
        print("=" * 40)
        print(f" Tempo Simulado : {summary['simulated_seconds']:.2f} s")
        print(f" Partículas     : {summary['final_particles']}")
        for zone_id, temp in summary['zone_temperatures'].items():
            print(f" {zone_id:<15}: {temp:.2f}°C")
        print(f" {'escada':<15}: {summary['stair_temperature']:.2f}°C")
        print("=" * 40 + "\n")

        if args.output:
            save_json_results(args.output, summary)
        if args.csv:
            save_csv_history(args.csv, model.get_metrics_dataframe())

    except KeyboardInterrupt:
        print("\nSimulação interrompida pelo usuário.")
        sys.exit(0)
    except Exception:
        logger.exception("Erro inesperado durante a execução.")
        sys.exit(1)


if __name__ == "__main__":
    main()
