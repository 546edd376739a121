# main.py
import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from rider_sim.app.build import build
from rider_sim.config.models import ScenarioModel


def load_scenario(path: str | None, seed: int) -> ScenarioModel:
    if path:
        return ScenarioModel.model_validate_json(Path(path).read_text())
    return ScenarioModel.model_validate(
        {"name": "default", "run_id": "local", "sim": {"seed": seed}}
    )


def run(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Run the rider traffic micro-simulation.")
    p.add_argument("scenario", nargs="?", help="scenario JSON file (defaults if omitted)")
    p.add_argument("--seed", type=int, default=7)
    p.add_argument("--ticks", type=int, help="override sim.ticks")
    args = p.parse_args(argv)

    model = load_scenario(args.scenario, args.seed)
    if args.ticks is not None:
        model = model.model_copy(update={"sim": model.sim.model_copy(update={"ticks": args.ticks})})

    # logs and analytics events go to stderr; stdout carries only the final statistics
    app = build(model, stream=sys.stderr)
    app.run()
    stats = asdict(app.engine.statistics)
    stats["by_type"] = {k.value: v for k, v in stats["by_type"].items()}
    json.dump(stats, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(run())
