"""
In-memory transaction collection with bounded undo/redo history.

Every mutation is recorded as a ``HistoryAction`` holding the state needed to
apply it again (``data``) and to revert it (``inverse_data``). Stacks are kept
most-recent-first and capped at ``history_limit`` entries; the oldest entry is
dropped silently. A new recorded mutation invalidates the redo stack.

Mutations that reference an unknown id are no-ops: nothing changes, nothing is
recorded and no listener is called.
"""
from __future__ import annotations
import uuid
from dataclasses import fields, replace
from typing import Callable, Iterable, Mapping, Optional, Union

from cashplan.config import HISTORY_LIMIT
from cashplan.logging_setup import get_logger
from cashplan.models import ActionType, HistoryAction, Transaction


logger = get_logger("cashplan.store")

TransactionPayload = Union[Transaction, Mapping[str, object]]
Listener = Callable[[HistoryAction, bool], None]


def new_id() -> str:
    return uuid.uuid4().hex


def _as_changes(updates: TransactionPayload) -> dict:
    if isinstance(updates, Transaction):
        return {f.name: getattr(updates, f.name) for f in fields(Transaction)}
    return dict(updates)


class TransactionStore:
    def __init__(
            self,
            transactions: Optional[Iterable[Transaction]] = None,
            *,
            history_limit: int = HISTORY_LIMIT,
            id_factory: Optional[Callable[[], str]] = None,
    ):
        self._transactions: list[Transaction] = list(transactions or [])
        self._undo_stack: list[HistoryAction] = []
        self._redo_stack: list[HistoryAction] = []
        self._listeners: list[Listener] = []
        self.history_limit = history_limit
        self._id_factory = id_factory or new_id

    # ===== READ ACCESSORS =====
    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def undo_stack(self) -> list[HistoryAction]:
        return list(self._undo_stack)

    @property
    def redo_stack(self) -> list[HistoryAction]:
        return list(self._redo_stack)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def __len__(self) -> int:
        return len(self._transactions)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._find(transaction_id)[1]

    # ===== MUTATIONS =====
    def add_transaction(
            self,
            payload: TransactionPayload,
            skip_history: bool = False,
            *,
            index: Optional[int] = None,
    ) -> str:
        """Add a transaction and return its id.

        A payload that already carries an id keeps it; this is how undo and
        redo restore a transaction under its original identity. If that id
        is already stored, the stored entry is replaced in place and the
        change is recorded as an update. ``index`` inserts at a position
        instead of appending.
        """
        transaction = payload if isinstance(payload, Transaction) else Transaction(**payload)
        if not transaction.id:
            transaction = replace(transaction, id=self._id_factory())

        existing_index, existing = self._find(transaction.id)
        if existing is not None:
            self._transactions[existing_index] = transaction
            logger.debug("Replaced transaction %s in place", transaction.id)
            self._commit(HistoryAction(ActionType.UPDATE, data=transaction, inverse_data=existing), skip_history)
            return transaction.id

        if index is None:
            self._transactions.append(transaction)
        else:
            self._transactions.insert(index, transaction)

        logger.debug("Added transaction %s (%s)", transaction.id, transaction.label)
        self._commit(HistoryAction(ActionType.ADD, data=transaction, inverse_data=transaction), skip_history)
        return transaction.id

    def update_transaction(
            self,
            transaction_id: str,
            updates: TransactionPayload,
            skip_history: bool = False,
    ) -> None:
        """Merge ``updates`` over the stored transaction. Ids never change."""
        index, old = self._find(transaction_id)
        if old is None:
            logger.debug("Update ignored, no transaction %s", transaction_id)
            return

        changes = _as_changes(updates)
        changes["id"] = old.id
        merged = replace(old, **changes)
        self._transactions[index] = merged

        logger.debug("Updated transaction %s", transaction_id)
        self._commit(HistoryAction(ActionType.UPDATE, data=merged, inverse_data=old), skip_history)

    def delete_transaction(self, transaction_id: str, skip_history: bool = False) -> None:
        index, old = self._find(transaction_id)
        if old is None:
            logger.debug("Delete ignored, no transaction %s", transaction_id)
            return

        del self._transactions[index]

        logger.debug("Deleted transaction %s", transaction_id)
        self._commit(HistoryAction(ActionType.DELETE, data=old, inverse_data=old, index=index), skip_history)

    def reset(self, transactions: Optional[Iterable[Transaction]] = None) -> None:
        """Replace the whole collection and forget all history."""
        self._transactions = list(transactions or [])
        self._undo_stack.clear()
        self._redo_stack.clear()
        logger.debug("Store reset with %d transactions", len(self._transactions))
        self._notify(HistoryAction(ActionType.RESET, data=None, inverse_data=None), False)

    # ===== HISTORY =====
    def undo(self) -> None:
        if not self._undo_stack:
            return

        action = self._undo_stack.pop(0)
        logger.debug("Undo %s of %s", action.type.value, action.inverse_data.id)

        if action.type is ActionType.ADD:
            # redo must replay the latest state, not the snapshot taken at add time
            current = self.get_transaction(action.data.id)
            if current is not None:
                action = replace(action, data=current)
        # before applying, so a failing listener cannot lose the entry
        self._push(self._redo_stack, action)

        if action.type is ActionType.ADD:
            self.delete_transaction(action.inverse_data.id, skip_history=True)
        elif action.type is ActionType.DELETE:
            self.add_transaction(action.inverse_data, skip_history=True, index=action.index)
        elif action.type is ActionType.UPDATE:
            self.update_transaction(action.inverse_data.id, action.inverse_data, skip_history=True)

    def redo(self) -> None:
        if not self._redo_stack:
            return

        action = self._redo_stack.pop(0)
        self._push(self._undo_stack, action)
        logger.debug("Redo %s of %s", action.type.value, action.data.id)

        if action.type is ActionType.ADD:
            self.add_transaction(action.data, skip_history=True)
        elif action.type is ActionType.DELETE:
            self.delete_transaction(action.data.id, skip_history=True)
        elif action.type is ActionType.UPDATE:
            self.update_transaction(action.data.id, action.data, skip_history=True)

    # ===== HOOKS =====
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(action, recorded)`` after every applied mutation.

        ``recorded`` is False for replays and ``skip_history`` calls. Returns
        a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ===== HELPERS =====
    def _find(self, transaction_id: str) -> tuple[Optional[int], Optional[Transaction]]:
        for i, t in enumerate(self._transactions):
            if t.id == transaction_id:
                return i, t
        return None, None

    def _push(self, stack: list[HistoryAction], action: HistoryAction) -> None:
        stack.insert(0, action)
        del stack[self.history_limit:]

    def _commit(self, action: HistoryAction, skip_history: bool) -> None:
        if not skip_history:
            self._push(self._undo_stack, action)
            self._redo_stack.clear()
        self._notify(action, not skip_history)

    def _notify(self, action: HistoryAction, recorded: bool) -> None:
        for listener in list(self._listeners):
            listener(action, recorded)
