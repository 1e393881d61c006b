from datetime import timedelta

from db.warehouse import ledger
from db.warehouse.operation import Operation, utcnow


def _op(run, op_id):
    async def _get(db):
        return await ledger.get_operation(db, op_id)

    return run(_get)


def _record(run, layout, cmd="MOVE_TO_LOADING cell=1 slot=1"):
    return run(
        lambda db: ledger.record(
            db, "MOVE_TO_LOADING_ZONE", cmd, product_id=layout.p1, cell_id=layout.c1, slot_id=layout.s1
        )
    )


class TestRecord:
    def test_record_inserts_pending(self, run, layout):
        op_id = _record(run, layout)
        op = _op(run, op_id)
        assert op.status == "PENDING"
        assert op.cmd == "MOVE_TO_LOADING cell=1 slot=1"
        assert op.created_at is not None
        assert op.completed_at is None


class TestTerminalTransitions:
    def test_mark_done_once(self, run, layout):
        op_id = _record(run, layout)
        assert run(lambda db: ledger.mark_done(db, op_id)) is True
        op = _op(run, op_id)
        assert op.status == "DONE"
        assert op.completed_at is not None
        assert op.error_message is None

    def test_terminal_state_is_not_revisited(self, run, layout):
        op_id = _record(run, layout)
        run(lambda db: ledger.mark_done(db, op_id))
        assert run(lambda db: ledger.mark_error(db, op_id, "late failure")) is False
        assert run(lambda db: ledger.mark_done(db, op_id)) is False
        op = _op(run, op_id)
        assert op.status == "DONE"
        assert op.error_message is None

    def test_mark_error_keeps_detail(self, run, layout):
        op_id = _record(run, layout)
        assert run(lambda db: ledger.mark_error(db, op_id, "HTTP 500 from controller")) is True
        op = _op(run, op_id)
        assert op.status == "ERROR"
        assert op.error_message == "HTTP 500 from controller"
        assert op.completed_at is not None


class TestListOperations:
    def test_most_recent_first_with_names(self, run, layout):
        first = _record(run, layout)
        second = run(lambda db: ledger.record(db, "AUTO_LOADING", "AUTO_LOADING"))
        rows = run(lambda db: ledger.list_operations(db))
        assert [r["id"] for r in rows] == [second, first]
        assert rows[1]["product_name"] == "Water 1.5L"
        assert rows[1]["cell_label"] == "R1C1"
        assert rows[1]["loading_slot_num"] == 1
        assert rows[0]["product_name"] is None

    def test_limit(self, run, layout):
        for _ in range(3):
            _record(run, layout)
        assert len(run(lambda db: ledger.list_operations(db, limit=2))) == 2


class TestFindStalePending:
    def test_only_old_pending_rows(self, run, layout):
        old_at = utcnow() - timedelta(minutes=30)

        async def _seed(db):
            old_pending = Operation(op_type="AUTO_LOADING", cmd="AUTO_LOADING", status="PENDING", created_at=old_at)
            old_done = Operation(op_type="AUTO_LOADING", cmd="AUTO_LOADING", status="DONE", created_at=old_at)
            fresh_pending = Operation(op_type="AUTO_LOADING", cmd="AUTO_LOADING", status="PENDING")
            db.add_all([old_pending, old_done, fresh_pending])
            await db.flush()
            return old_pending.id

        old_id = run(_seed)
        stale = run(lambda db: ledger.find_stale_pending(db, utcnow() - timedelta(minutes=5)))
        assert [op.id for op in stale] == [old_id]
