import json
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional

from cashplan import config
from cashplan.logging_setup import get_logger
from cashplan.models import Transaction
from cashplan.scenarios import Planification, Scenario
from cashplan.store import TransactionStore


logger = get_logger("cashplan.storage")


class EnhancedJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, Transaction):
            return {
                "id": obj.id,
                "label": obj.label,
                "amount": obj.amount,
                "direction": obj.direction,
                "recurrence": obj.recurrence,
                "month": obj.month,
                "category_id": obj.category_id,
            }
        return super().default(obj)


def _saves_dir(saves_dir: Optional[Path]) -> Path:
    return Path(saves_dir) if saves_dir is not None else config.SAVES_DIR


def list_save_files(saves_dir: Optional[Path] = None) -> list[str]:
    return sorted(f.stem for f in _saves_dir(saves_dir).glob("*.json"))


def save_data(planification: Planification, save_name: str = "default", saves_dir: Optional[Path] = None) -> bool:
    data = {
        "metadata": {
            "version": config.SAVE_FORMAT_VERSION,
            "created": date.today(),
        },
        "planification": {
            "name": planification.name,
            "current_scenario_id": planification.current_scenario_id,
        },
        "scenarios": [
            {
                "id": s.id,
                "name": s.name,
                "starting_balance": s.starting_balance,
                "starting_month": s.starting_month,
                "horizon_months": s.horizon_months,
                "transactions": s.store.transactions,
            } for s in planification.scenarios
        ],
    }

    directory = _saves_dir(saves_dir)
    try:
        json_str = json.dumps(data, cls=EnhancedJSONEncoder, indent=2)
        directory.mkdir(parents=True, exist_ok=True)
        save_path = directory / f"{save_name}.json"
        save_path.write_text(json_str)
    except (OSError, TypeError, ValueError) as e:
        logger.error("Error saving %r: %s", save_name, e)
        return False

    count = sum(len(s.store) for s in planification.scenarios)
    logger.info("Saved %d scenarios (%d transactions) to %s", len(planification.scenarios), count, save_path)
    return True


def _load_scenario(s_data: dict) -> Scenario:
    transactions = []
    for t_data in s_data.get("transactions", []):
        try:
            transactions.append(Transaction(**t_data))
        except (TypeError, ValueError) as e:
            logger.warning("Skipping invalid transaction %s: %s", t_data.get("id"), e)

    return Scenario(
        s_data["name"],
        starting_balance=s_data.get("starting_balance", 0.0),
        starting_month=s_data.get("starting_month"),
        horizon_months=s_data.get("horizon_months", config.DEFAULT_HORIZON),
        store=TransactionStore(transactions),
        id=s_data.get("id"),
    )


def load_data(save_name: str = "default", saves_dir: Optional[Path] = None) -> Optional[Planification]:
    filepath = _saves_dir(saves_dir) / f"{save_name}.json"
    if not filepath.exists():
        logger.error("Save file %r not found", save_name)
        return None

    try:
        data = json.loads(filepath.read_text())
        plan_data = data.get("planification", {})
        scenarios = [_load_scenario(s_data) for s_data in data.get("scenarios", [])]
    except (OSError, KeyError, TypeError, ValueError) as e:
        logger.error("Error loading %r: %s", save_name, e)
        return None

    planification = Planification(plan_data.get("name", save_name), scenarios)
    planification.set_current(plan_data.get("current_scenario_id", ""))

    logger.info("Loaded %d scenarios from %s", len(planification.scenarios), filepath)
    return planification
