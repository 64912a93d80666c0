import pytest

from tamweel.collections import ORDERS, USERS
from tamweel.services import document_store
from tamweel.services.batch_service import BatchError, WriteBatch, run_transaction
from tamweel.services.document_store import DocumentNotFoundError, increment


class TestRunTransaction:

    def test_operations_visible_to_later_reads(self, db_session):
        document_store.insert(USERS, {"n": 1}, doc_id="u")

        def _fn(tx):
            ref = document_store.doc(USERS, "u")
            tx.update(ref, {"n": increment(1)})
            return tx.get(ref).get("n")

        assert run_transaction(_fn) == 2

    def test_error_rolls_back_every_write(self, db_session):
        document_store.insert(USERS, {"n": 1}, doc_id="u")

        def _fn(tx):
            tx.update(document_store.doc(USERS, "u"), {"n": 100})
            tx.set(document_store.doc(ORDERS, "o1"), {"userId": "u"})
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            run_transaction(_fn)

        assert document_store.get_one(USERS, "u").get("n") == 1
        assert not document_store.get_one(ORDERS, "o1").exists

    def test_conflicting_write_is_retried(self, db_session):
        document_store.insert(USERS, {"n": 0}, doc_id="u")
        attempts = []

        def _fn(tx):
            ref = document_store.doc(USERS, "u")
            current = tx.get(ref)
            if not attempts:
                # Another writer slips in between our read and our write.
                document_store.update(USERS, "u", {"n": 10})
            attempts.append(current.get("n"))
            tx.update(ref, {"n": current.get("n") + 1})

        run_transaction(_fn)

        assert len(attempts) == 2
        assert document_store.get_one(USERS, "u").get("n") == 1

    def test_returns_function_result(self, db_session):
        assert run_transaction(lambda tx: "done") == "done"


class TestWriteBatch:

    def test_queued_writes_apply_at_commit(self, db_session):
        document_store.insert(USERS, {"n": 1}, doc_id="u")
        batch = WriteBatch()
        batch.update(document_store.doc(USERS, "u"), {"n": increment(2)})
        batch.set(document_store.doc(ORDERS, "o1"), {"userId": "u"})

        assert document_store.get_one(USERS, "u").get("n") == 1
        assert len(batch) == 2

        assert batch.commit() == 2
        assert document_store.get_one(USERS, "u").get("n") == 3
        assert document_store.get_one(ORDERS, "o1").exists

    def test_writes_apply_in_queue_order(self, db_session):
        batch = WriteBatch()
        ref = document_store.doc(USERS, "u")
        batch.set(ref, {"n": 1})
        batch.update(ref, {"n": increment(1)})
        batch.delete(document_store.doc(USERS, "gone"))
        batch.commit()
        assert document_store.get_one(USERS, "u").get("n") == 2

    def test_failure_applies_nothing(self, db_session):
        document_store.insert(USERS, {"n": 1}, doc_id="u")
        batch = WriteBatch()
        batch.update(document_store.doc(USERS, "u"), {"n": 5})
        batch.update(document_store.doc(USERS, "missing"), {"n": increment(1)})

        with pytest.raises(DocumentNotFoundError):
            batch.commit()
        assert document_store.get_one(USERS, "u").get("n") == 1

    def test_committed_batch_cannot_be_reused(self, db_session):
        batch = WriteBatch()
        batch.set(document_store.doc(USERS, "u"), {"n": 1})
        batch.commit()
        with pytest.raises(BatchError):
            batch.set(document_store.doc(USERS, "v"), {"n": 1})
        with pytest.raises(BatchError):
            batch.commit()

    def test_empty_batch(self, db_session):
        assert WriteBatch().commit() == 0
