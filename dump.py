# dump.py
import dataclasses
import json

from dynaconf import Dynaconf

from poller import Poller
from sources import get_source

config = Dynaconf(
    settings_files=['config/settings.toml'],
    envvar_prefix="NEIGHWATCH",
)


def main():
    """Fetches and merges the published snapshots once and prints them as JSON."""

    source = get_source(config)
    state = Poller(source, suffix=config.general.get("snapshot_suffix", ".json")).run_cycle()
    if state.error:
        print(json.dumps({"error": state.error}))
        return 1

    view = state.view
    print(json.dumps({
        "neighbours": [dataclasses.asdict(n) for n in view.neighbours],
        "timestamps": dict(view.timestamps),
        "interface_info": {name: dataclasses.asdict(info) for name, info in view.interface_info.items()},
    }, indent=4))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
