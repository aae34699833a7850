"""Unit tests for the Database execution facade against a mocked DB-API connection."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from sqlkit import Database, select
from sqlkit.codec import RowCodec
from sqlkit.config import (
    with_codec,
    with_decoder,
    with_dialect,
    with_disabled_savepoints,
    with_encoder,
    with_logger,
)
from sqlkit.dialects import GENERIC, POSTGRES, Dialect, ParameterStyle
from sqlkit.exceptions import (
    CloseError,
    ImproperConfigurationError,
    MissingDependencyError,
    NestedTransactionError,
    NotAQueryError,
    RollbackError,
    StatementInvalidError,
)
from sqlkit.typing import Renderable


class StatementLog:
    def __init__(self) -> None:
        self.statements: list[Renderable] = []

    def __call__(self, statement: Renderable) -> None:
        self.statements.append(statement)

    @property
    def sql(self) -> "list[str]":
        return [statement.render().sql for statement in self.statements]


def make_connection() -> "tuple[MagicMock, MagicMock]":
    connection = MagicMock()
    cursor = MagicMock()
    cursor.description = (("id", None, None, None, None, None, None), ("name", None, None, None, None, None, None))
    cursor.fetchall.return_value = [(1, "alice")]
    cursor.rowcount = 1
    cursor.lastrowid = 7
    connection.cursor.return_value = cursor
    return connection, cursor


def test_defaults() -> None:
    connection, _ = make_connection()
    db = Database(connection)

    assert db.dialect is GENERIC
    assert db.config.savepoints_enabled
    assert isinstance(db.config.encoder, RowCodec)


def test_options_are_applied_in_order() -> None:
    connection, _ = make_connection()
    codec, decoder, encoder = RowCodec(), RowCodec(unsafe=True), RowCodec(unsafe=True)

    db = Database(connection, with_dialect(POSTGRES), with_codec(codec), with_decoder(decoder), with_encoder(encoder))

    assert db.dialect is POSTGRES
    assert db.config.decoder is decoder
    assert db.config.encoder is encoder


def test_query_executes_rendered_statement() -> None:
    connection, cursor = make_connection()
    db = Database(connection, with_dialect(POSTGRES))

    result = db.query(None, db.select("id", "name").from_("users").where("name = ?", "alice"))

    cursor.execute.assert_called_once_with("SELECT id,name FROM users WHERE (name = $1)", ("alice",))
    assert result.columns == ["id", "name"]
    assert result.rows == [(1, "alice")]
    assert result.all() == [{"id": 1, "name": "alice"}]


def test_named_dialect_binds_mapping() -> None:
    connection, cursor = make_connection()
    db = Database(connection, with_dialect(Dialect("oracle", ParameterStyle.NAMED_COLON)))

    db.exec(None, db.update("users").value("name", "bob").where("id = ?", 1))

    cursor.execute.assert_called_once_with("UPDATE users SET name=:arg1 WHERE (id = :arg2)", {"arg1": "bob", "arg2": 1})


def test_module_level_builder_is_bound_to_database_dialect() -> None:
    connection, cursor = make_connection()
    db = Database(connection, with_dialect(Dialect("oracle", ParameterStyle.NAMED_COLON)))

    db.query(None, select("id").from_("t").where("id = ?", 1))

    cursor.execute.assert_called_once_with("SELECT id FROM t WHERE (id = :arg1)", {"arg1": 1})


def test_raw_text_is_rebound_for_database_dialect() -> None:
    connection, cursor = make_connection()
    db = Database(connection, with_dialect(POSTGRES))

    db.exec(None, db.raw("UPDATE t SET note = '?' WHERE id = ? AND owner = ?", 1, "bob"))

    cursor.execute.assert_called_once_with("UPDATE t SET note = '?' WHERE id = $1 AND owner = $2", (1, "bob"))


def test_exec_result() -> None:
    connection, _ = make_connection()
    db = Database(connection)

    result = db.exec(None, "DELETE FROM users")

    assert result.rows_affected == 1
    assert result.last_id == 7
    with pytest.raises(NotAQueryError):
        result.decode(dict)


def test_statements_are_prepared_once_per_scope() -> None:
    connection, cursor = make_connection()
    db = Database(connection)

    db.query(None, "SELECT 1")
    db.query(None, "SELECT 1")

    assert connection.cursor.call_count == 1
    assert cursor.execute.call_count == 2


def test_render_error_is_raised_before_driver_io() -> None:
    connection, _ = make_connection()
    log = StatementLog()
    db = Database(connection, with_logger(log))

    with pytest.raises(StatementInvalidError):
        db.query(None, select("*").from_("users").limit(-1))

    connection.cursor.assert_not_called()
    assert len(log.statements) == 1


def test_statement_is_logged_once_when_driver_fails() -> None:
    connection, cursor = make_connection()
    cursor.execute.side_effect = RuntimeError("relation does not exist")
    log = StatementLog()
    db = Database(connection, with_logger(log))

    with pytest.raises(RuntimeError, match="relation does not exist"):
        db.exec(None, "DELETE FROM missing")

    assert log.sql == ["DELETE FROM missing"]


def test_transaction_statements_are_logged() -> None:
    connection, _ = make_connection()
    log = StatementLog()
    db = Database(connection, with_logger(log))

    tx = db.begin()
    child = db.begin(tx)
    db.exec(child, "INSERT INTO users (id) VALUES (1)")
    child.commit()
    tx.commit()

    assert log.sql[0] == "BEGIN"
    assert log.sql[1].startswith("SAVEPOINT sp_1_")
    assert log.sql[2] == "INSERT INTO users (id) VALUES (1)"
    assert log.sql[3] == f"RELEASE SAVEPOINT {child.savepoint}"
    assert log.sql[4] == "COMMIT"
    connection.commit.assert_called_once_with()


def test_disabled_savepoints() -> None:
    connection, _ = make_connection()
    db = Database(connection, with_disabled_savepoints())
    tx = db.begin()

    with pytest.raises(NestedTransactionError):
        db.begin(tx)


def test_tx_commits_on_success() -> None:
    connection, _ = make_connection()
    db = Database(connection)

    assert db.tx(lambda tx: db.exec(tx, "DELETE FROM users").rows_affected) == 1
    connection.commit.assert_called_once_with()
    connection.rollback.assert_not_called()


def test_tx_rolls_back_and_reraises() -> None:
    connection, _ = make_connection()
    db = Database(connection)

    def fail(_: Any) -> None:
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        db.tx(fail)

    connection.rollback.assert_called_once_with()
    connection.commit.assert_not_called()


def test_tx_rollback_failure_chains_original() -> None:
    connection, _ = make_connection()
    connection.rollback.side_effect = RuntimeError("connection reset")
    db = Database(connection)
    original = ValueError("boom")

    def fail(_: Any) -> None:
        raise original

    with pytest.raises(RollbackError) as exc_info:
        db.tx(fail)

    assert exc_info.value.__cause__ is original
    assert exc_info.value.original is original
    assert isinstance(exc_info.value.rollback_error, RuntimeError)


def test_transaction_context_manager() -> None:
    connection, _ = make_connection()
    db = Database(connection)

    with db.transaction() as tx, db.transaction(tx) as child:
        db.exec(child, "DELETE FROM users")

    assert tx.committed
    assert child.committed


def test_close_is_idempotent() -> None:
    connection, _ = make_connection()
    db = Database(connection)

    db.close()
    db.close()

    assert db.closed
    connection.close.assert_called_once_with()


def test_close_aggregates_errors() -> None:
    connection, cursor = make_connection()
    cursor.close.side_effect = RuntimeError("cursor")
    connection.close.side_effect = RuntimeError("connection")
    db = Database(connection)
    db.query(None, "SELECT 1")

    with pytest.raises(CloseError) as exc_info:
        db.close()

    assert [str(error) for error in exc_info.value.errors] == ["cursor", "connection"]


def test_context_manager_closes() -> None:
    connection, _ = make_connection()

    with Database(connection) as db:
        assert not db.closed

    assert db.closed
    connection.close.assert_called_once_with()


def test_open_missing_driver() -> None:
    with pytest.raises(MissingDependencyError):
        Database.open("sqlkit_missing_driver_module", "dsn")


def test_open_rejects_non_dbapi_module() -> None:
    with pytest.raises(ImproperConfigurationError):
        Database.open("json", "dsn")
