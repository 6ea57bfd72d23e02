import cmd
from dataclasses import asdict
from typing import Optional

from cashplan.config import HORIZON_CHOICES
from cashplan.logic import parse_month, validate_transaction
from cashplan.models import DEFAULT_CATEGORIES, Direction, Recurrence, Transaction
from cashplan.scenarios import Planification, Scenario
from cashplan.storage import save_data, load_data, list_save_files


class CashPlanCLI(cmd.Cmd):
    prompt = "(cashplan) "

    def __init__(self, planification: Optional[Planification] = None):
        super().__init__()
        self.intro = "Welcome to Cash Planner. Type 'help' for commands."
        self.plan = planification or Planification("default")

    @property
    def scenario(self) -> Scenario:
        return self.plan.current

    # ===== CORE COMMANDS =====
    def do_add(self, arg):
        """Add a transaction: add <amount> <income|expense> [YYYY-MM] [--recur <monthly|yearly>] [--category ID] --label <text>"""
        try:
            args = self._parse_tx_args(arg.split(), require_core=True)
            transaction = validate_transaction(Transaction(
                label=args.get('label', ''),
                amount=args['amount'],
                direction=args['direction'],
                recurrence=args.get('recurrence', Recurrence.NONE),
                month=args.get('month'),
                category_id=args.get('category_id'),
            ))
            t_id = self.scenario.store.add_transaction(transaction)
            confirmation = f"✓ Added {transaction.direction.value} of {transaction.amount:.2f} [{t_id[:8]}]"
            if transaction.recurrence is not Recurrence.NONE:
                confirmation += f" (recurring {transaction.recurrence.value})"
            print(confirmation)
        except ValueError as e:
            print(f"Invalid input: {e}")

    def do_edit(self, arg):
        """Edit a transaction: edit <ID> [--amount X] [--type income|expense] [--month YYYY-MM] [--recur none|monthly|yearly] [--category ID] [--label text]"""
        args = arg.split()
        if not args:
            print("Usage: edit <ID> [--amount X] [--type T] [--month M] [--recur R] [--category C] [--label text]")
            return

        try:
            t_id = self._resolve_id(args[0])
            updates = self._parse_tx_args(args[1:], require_core=False)
            if not updates:
                print("Nothing to change")
                return
            store = self.scenario.store
            validate_transaction(Transaction(**{**asdict(store.get_transaction(t_id)), **updates}))
            store.update_transaction(t_id, updates)
            print(f"✓ Updated transaction {t_id[:8]}")
        except ValueError as e:
            print(f"Invalid input: {e}")

    def do_delete(self, arg):
        """Delete a transaction: delete <ID>"""
        if not arg.strip():
            print("Usage: delete <ID>")
            return
        try:
            t_id = self._resolve_id(arg.strip())
            self.scenario.store.delete_transaction(t_id)
            print(f"✓ Deleted transaction {t_id[:8]}")
        except ValueError as e:
            print(f"Invalid input: {e}")

    def do_list(self, arg):
        """List transactions of the current scenario"""
        transactions = self.scenario.store.transactions
        if not transactions:
            print("No transactions")
            return
        labels = {c.id: c.label for c in DEFAULT_CATEGORIES}
        print(f"\nTransactions in '{self.scenario.name}':")
        for t in transactions:
            when = t.month or "every month"
            if t.recurrence is Recurrence.YEARLY:
                when = f"every year from {t.month}"
            category = labels.get(t.category_id, t.category_id or "-")
            sign = "+" if t.direction is Direction.INCOME else "-"
            print(f"  {t.id[:8]}  {sign}{t.amount:,.2f}  {t.label}  ({when}, {category})")

    # ===== HISTORY =====
    def do_undo(self, arg):
        """Undo the last change"""
        store = self.scenario.store
        if not store.can_undo:
            print("Nothing to undo")
            return
        action = store.undo_stack[0]
        store.undo()
        print(f"✓ Undid {action.type.value} of '{action.inverse_data.label}'")

    def do_redo(self, arg):
        """Redo the last undone change"""
        store = self.scenario.store
        if not store.can_redo:
            print("Nothing to redo")
            return
        action = store.redo_stack[0]
        store.redo()
        print(f"✓ Redid {action.type.value} of '{action.data.label}'")

    # ===== PROJECTION =====
    def do_start(self, arg):
        """Set starting point: start <balance> [YYYY-MM]"""
        args = arg.split()
        if not args:
            print(f"Starting balance {self.scenario.starting_balance:,.2f} in {self.scenario.starting_month}")
            return
        try:
            balance = float(args[0])
            if len(args) > 1:
                self.scenario.starting_month = args[1]
            self.scenario.starting_balance = balance
            print(f"✓ Starting balance {balance:,.2f} in {self.scenario.starting_month}")
        except ValueError as e:
            print(f"Invalid input: {e}")

    def do_horizon(self, arg):
        """Set projection length: horizon <12|18|24>"""
        try:
            self.scenario.horizon_months = int(arg.strip())
            print(f"✓ Projecting {self.scenario.horizon_months} months")
        except ValueError:
            print(f"Invalid input: horizon must be one of {', '.join(map(str, HORIZON_CHOICES))}")

    def do_project(self, arg):
        """Show the month-by-month projection of the current scenario"""
        projection = self.scenario.projection()
        if not projection:
            print("Nothing to project")
            return
        print(f"\n{' Projection: ' + self.scenario.name + ' ':-^58}")
        print(f"{'Month':<10}{'Income':>16}{'Expense':>16}{'Balance':>16}")
        for row in projection:
            print(f"{row.month:<10}{row.income:>16,.2f}{row.expense:>16,.2f}{row.balance:>16,.2f}")

    def do_summary(self, arg):
        """Show projection totals, end balance and lowest point"""
        summary = self.scenario.summary()
        if summary is None:
            print("Nothing to project")
            return
        print(f"\nOver {summary['months']} months:")
        print(f"  Income:   {summary['totals']['income']:,.2f}")
        print(f"  Expenses: {summary['totals']['expense']:,.2f}")
        print(f"  Net:      {summary['totals']['net']:,.2f}")
        print(f"\n  First month balance: {summary['current_balance']:,.2f}")
        print(f"  Final balance:       {summary['ending_balance']:,.2f}")
        print(f"  Lowest point:        {summary['lowest_balance']:,.2f} ({summary['lowest_month']})")
        if summary['at_risk']:
            print("\nWarning: balance goes below zero")

    # ===== SCENARIOS =====
    def do_scenario(self, arg):
        """Manage scenarios: scenario <list|add NAME|copy NAME|use ID|delete ID>"""
        args = arg.split()
        if not args or args[0] == "list":
            for s in self.plan.scenarios:
                marker = "*" if s.id == self.plan.current_scenario_id else " "
                print(f" {marker} {s.id[:8]}  {s.name}  ({len(s.store)} transactions)")
            return

        try:
            if args[0] in ("add", "copy") and len(args) > 1:
                name = " ".join(args[1:])
                copy_from = self.plan.current_scenario_id if args[0] == "copy" else None
                scenario = self.plan.add_scenario(name, copy_from=copy_from)
                self.plan.set_current(scenario.id)
                print(f"✓ Switched to new scenario '{name}'")
            elif args[0] == "use" and len(args) > 1:
                self.plan.set_current(self._resolve_scenario(args[1]))
                print(f"✓ Using scenario '{self.scenario.name}'")
            elif args[0] == "delete" and len(args) > 1:
                if self.plan.delete_scenario(self._resolve_scenario(args[1])):
                    print("✓ Deleted scenario")
                else:
                    print("Cannot delete the only scenario")
            else:
                print(self.do_scenario.__doc__)
        except ValueError as e:
            print(f"Invalid input: {e}")

    # ===== DATA MANAGEMENT =====
    def do_save(self, arg):
        """Save current plan: save [name=default]"""
        name = arg.strip() or "default"
        if save_data(self.plan, name):
            print(f"✓ Saved as '{name}'")
        else:
            print(f"Could not save '{name}'")

    def do_load(self, arg):
        """Load a saved plan: load [name]"""
        saves = list_save_files()
        if not saves:
            print("No save files available")
            return

        if not arg:
            print("Available saves:")
            for i, name in enumerate(saves, 1):
                print(f"{i}. {name}")
            try:
                choice = int(input("Select save: ")) - 1
                name = saves[choice]
            except (ValueError, IndexError):
                print("Invalid selection")
                return
        else:
            name = arg.strip()

        plan = load_data(name)
        if plan is None:
            print(f"Could not load '{name}'")
            return
        self.plan = plan
        print(f"✓ Loaded '{name}' ({len(plan.scenarios)} scenarios)")

    # ===== UTILITIES =====
    def do_exit(self, arg):
        """Exit the program"""
        print("Goodbye!")
        return True

    # ===== HELPERS =====
    def _resolve_id(self, prefix: str) -> str:
        matches = [t.id for t in self.scenario.store.transactions if t.id.startswith(prefix)]
        if len(matches) != 1:
            raise ValueError(f"No unique transaction matches '{prefix}'")
        return matches[0]

    def _resolve_scenario(self, prefix: str) -> str:
        matches = [s.id for s in self.plan.scenarios if s.id.startswith(prefix) or s.name == prefix]
        if len(matches) != 1:
            raise ValueError(f"No unique scenario matches '{prefix}'")
        return matches[0]

    @staticmethod
    def _parse_tx_args(args, require_core):
        """Parse transaction fields shared by add and edit"""
        result = {}
        i = 0
        if require_core:
            if len(args) < 2:
                raise ValueError("Missing required arguments (amount and type)")
            result['amount'] = float(args[0])
            result['direction'] = Direction(args[1].lower())
            i = 2

        while i < len(args):
            if args[i] == '--label':
                result['label'] = ' '.join(args[i+1:])
                break
            if args[i].startswith('--') and i+1 >= len(args):
                raise ValueError(f"Missing value after {args[i]}")
            if args[i] == '--amount':
                result['amount'] = float(args[i+1])
            elif args[i] == '--type':
                result['direction'] = Direction(args[i+1].lower())
            elif args[i] == '--recur':
                result['recurrence'] = Recurrence(args[i+1].lower())
            elif args[i] == '--month':
                parse_month(args[i+1])
                result['month'] = args[i+1]
            elif args[i] == '--category':
                result['category_id'] = args[i+1]
            elif args[i].startswith('--'):
                raise ValueError(f"Unknown flag: {args[i]}")
            elif require_core and 'month' not in result:
                parse_month(args[i])
                result['month'] = args[i]
                i += 1
                continue
            else:
                raise ValueError(f"Unexpected argument: {args[i]}")
            i += 2

        return result


if __name__ == "__main__":
    CashPlanCLI().cmdloop()
