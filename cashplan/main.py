import sys

from cashplan.cli import CashPlanCLI
from cashplan.logging_setup import configure_logging
from cashplan.storage import load_data


def main(argv=None):
    """Start the interactive shell, optionally opening a saved plan: cashplan [save_name]"""
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()

    plan = None
    if argv:
        plan = load_data(argv[0])
        if plan is None:
            print(f"Could not load '{argv[0]}', starting with an empty plan")

    CashPlanCLI(plan).cmdloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
