import pytest

import src.ddl_bridge.execute.apply as apply_mod
from src.ddl_bridge.execute.apply import ScriptApplier, split_script, to_scala_command
from src.ddl_bridge.execute.errors import RemoteExecutionError, StatementTimeoutError
from src.enums import Language

# ---------- helpers ----------


class RecordingRunner:
    """Fake CommandRunner: records commands, raises from `failures` by index."""

    def __init__(self, failures=None):
        self.commands = []
        self.failures = failures or {}

    def execute_command(self, command, language=Language.SCALA, timeout=None):
        self.commands.append((command, language, timeout))
        failure = self.failures.get(len(self.commands) - 1)
        if failure is not None:
            raise failure
        return ""


SCRIPT = """CREATE DATABASE IF NOT EXISTS `sales`;

-- DROP TABLE IF EXISTS `sales`.`old`;

ALTER TABLE `sales`.`orders`
    ADD COLUMNS (`note` string);
"""


# ---------- tests ----------


def test_split_script_drops_comments_and_collapses_whitespace():
    assert split_script(SCRIPT) == [
        "CREATE DATABASE IF NOT EXISTS `sales`",
        "ALTER TABLE `sales`.`orders` ADD COLUMNS (`note` string)",
    ]


def test_split_script_of_empty_script():
    assert split_script("") == []
    assert split_script("-- only a comment;\n") == []


def test_to_scala_command_escapes_quotes_and_backslashes():
    command = to_scala_command('COMMENT ON TABLE `t` IS "a\\b"')
    assert command == 'var stmt = sqlContext.sql("COMMENT ON TABLE `t` IS \\"a\\\\b\\"")'


def test_applies_statements_in_order_with_timeout():
    runner = RecordingRunner()

    report = ScriptApplier(runner, timeout_seconds=45).apply(SCRIPT)

    assert report.count == 2
    assert [command for command, _, _ in runner.commands] == [
        'var stmt = sqlContext.sql("CREATE DATABASE IF NOT EXISTS `sales`")',
        'var stmt = sqlContext.sql("ALTER TABLE `sales`.`orders` ADD COLUMNS (`note` string)")',
    ]
    assert all(language == Language.SCALA and timeout == 45 for _, language, timeout in runner.commands)


def test_timeout_on_first_statement_skips_the_rest():
    runner = RecordingRunner(failures={0: StatementTimeoutError("wrapped", 45)})

    with pytest.raises(StatementTimeoutError) as excinfo:
        ScriptApplier(runner, timeout_seconds=45).apply(SCRIPT)

    assert len(runner.commands) == 1
    assert excinfo.value.statement == "CREATE DATABASE IF NOT EXISTS `sales`"
    assert str(excinfo.value).startswith("Timeout exceeded for script\n")


def test_remote_error_aborts_the_run():
    runner = RecordingRunner(failures={0: RemoteExecutionError("ParseException")})

    with pytest.raises(RemoteExecutionError, match="ParseException"):
        ScriptApplier(runner).apply(SCRIPT)
    assert len(runner.commands) == 1


def test_apply_script_owns_and_destroys_context(monkeypatch, connection):
    events = []

    class FakeExecutor:
        def __init__(self, client):
            events.append(("init", client.connection.cluster_id))

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            events.append(("destroy", exc_type))

        def execute_command(self, command, language=Language.SCALA, timeout=None):
            events.append(("execute", timeout))
            return ""

    monkeypatch.setattr(apply_mod, "CommandExecutor", FakeExecutor)

    report = apply_mod.apply_script(connection, "SELECT 1;")

    assert report.statements == ("SELECT 1",)
    assert events == [("init", "0101-abc"), ("execute", 120.0), ("destroy", None)]


def test_timeout_through_executor_never_submits_second_statement(executor, fake_session, response):
    fake_session.queue("POST", "/api/1.2/contexts/create", response({"id": "ctx-1"}))
    fake_session.queue("POST", "/api/1.2/commands/execute", response({"id": "cmd-1"}))
    fake_session.queue(
        "GET",
        "/api/1.2/commands/status",
        *(response({"status": "Running"}) for _ in range(3)),
    )

    with pytest.raises(StatementTimeoutError) as excinfo:
        ScriptApplier(executor, timeout_seconds=2).apply(
            "CREATE DATABASE IF NOT EXISTS `a`;\n\nCREATE DATABASE IF NOT EXISTS `b`;\n"
        )

    assert excinfo.value.statement == "CREATE DATABASE IF NOT EXISTS `a`"
    assert len(fake_session.calls_to("/api/1.2/commands/execute")) == 1
    assert len(fake_session.calls_to("/api/1.2/commands/status")) == 2
