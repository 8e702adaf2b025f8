import argparse
from pathlib import Path

from hivacsim import Scenario, Simulator
from hivacsim.simulator import NotificationKind
from hivacsim.simulator.scenario import default_config_path

parser = argparse.ArgumentParser(description="Simulate an STD outbreak on a sexual network")

parser.add_argument(
    "-c",
    "--config",
    help="Scenario configuration file",
    required=False,
    default=default_config_path,
)
parser.add_argument(
    "-r",
    "--runs",
    help="Number of trials, overrides the scenario",
    required=False,
    type=int,
    default=None,
)
parser.add_argument(
    "-s",
    "--seed",
    help="Random seed, disables automatic seeding",
    required=False,
    type=int,
    default=None,
)
parser.add_argument(
    "-p",
    "--save_path",
    help="Directory where the results are saved",
    required=False,
    default="results",
)
args = parser.parse_args()
args.save_path = Path(args.save_path)
args.save_path.mkdir(parents=True, exist_ok=True)

scenario = Scenario.from_file(args.config)
if args.runs is not None:
    scenario.runs = args.runs
if args.seed is not None:
    scenario.auto_seed = False
    scenario.seed = args.seed
# no animation delay when running from the command line
scenario.speed = 100
scenario.max_delay = 0


def report(notification):
    if notification.kind == NotificationKind.END_RUN:
        print(f"Run {notification.run + 1}: {notification.message}")
    elif notification.kind == NotificationKind.ERROR:
        print(f"Error: {notification.message}")


simulator = Simulator(scenario)
simulator.subscribe(report)
simulator.run()
simulator.join()
print(f"Simulation finished in {simulator.elapsed:.1f} seconds")

results = simulator.results
results.to_dataframe().to_csv(args.save_path / "results.csv", index=False)
results.to_dataframe(network=True).to_csv(args.save_path / "network.csv", index=False)
for index, name in enumerate(results.group_names):
    summary = results.summary("std_prevalence", index)
    print(f"{name}: final prevalence {summary.amean:.4f} +- {summary.std:.4f}")
