"""Tests for the dynamic executor and its restricted namespace."""

import threading
import time

import pytest

from sheetpoet.execution.executor import Executor
from sheetpoet.hooks import HookPoint
from sheetpoet.schemas.function_definition import FunctionDefinition

from tests.conftest import make_function


class TestInvoke:
    def test_returns_value(self, executor):
        definition = make_function("double_qty", body="return {'qty': record['qty'] * 2}")
        outcome = executor.invoke(definition, {"qty": 4})

        assert outcome.success
        assert outcome.data == {"qty": 8}

    def test_no_record_calls_without_argument(self, executor):
        definition = make_function("ping", body="return 'pong'", params="record=None")
        assert executor.invoke(definition).data == "pong"

    def test_list_params_are_accepted(self, executor):
        definition = make_function("count_rows", body="return len(record)")
        assert executor.invoke(definition, [1, 2, 3]).data == 3

    def test_scalar_record_rejected(self, executor):
        definition = make_function("double_qty")
        outcome = executor.invoke(definition, "row-1")

        assert not outcome.success
        assert outcome.message == "Function double_qty expects an array as parameter"

    def test_user_exception_becomes_failure(self, executor):
        definition = make_function("strict", body="raise ValueError('qty must be positive')")
        outcome = executor.invoke(definition, {"qty": -1})

        assert not outcome.success
        assert outcome.message == "qty must be positive"

    def test_empty_exception_uses_type_name(self, executor):
        definition = make_function("bare", body="raise KeyError")
        assert executor.invoke(definition, {}).message == "KeyError"

    def test_failure_is_logged(self, executor, caplog):
        definition = make_function("strict", body="raise ValueError('nope')")
        with caplog.at_level("ERROR", logger="sheetpoet.execution.executor"):
            executor.invoke(definition, {})
        assert "Error executing function strict: nope" in caplog.text

    def test_caller_record_is_not_mutated(self, executor):
        definition = make_function("stamp", body="record['qty'] = 999; record['rows'].append(0); return record")
        record = {"qty": 1, "rows": [1]}

        outcome = executor.invoke(definition, record)

        assert outcome.data == {"qty": 999, "rows": [1, 0]}
        assert record == {"qty": 1, "rows": [1]}

    @pytest.mark.parametrize("body", ["return {'v': float('nan')}", "return {'v': object()}"])
    def test_non_json_result_becomes_failure(self, executor, body):
        outcome = executor.invoke(make_function("odd_value", body=body), {})

        assert not outcome.success
        assert outcome.message == "Function odd_value returned a non-serializable value"

    def test_result_is_encoded_as_json_data(self, executor):
        definition = make_function(
            "dated", body="import datetime; return {'day': datetime.date(2024, 1, 2), 'tags': ('a',)}"
        )
        assert executor.invoke(definition, {}).data == {"day": "2024-01-02", "tags": ["a"]}

    def test_timeout(self, hooks):
        executor = Executor(hooks, timeout_seconds=0.2)
        definition = make_function("slow", body="import time; time.sleep(2); return 1")

        started = time.monotonic()
        outcome = executor.invoke(definition, {})

        assert not outcome.success
        assert outcome.message == "Function slow timed out after 0.2s"
        assert time.monotonic() - started < 2


class TestHooks:
    def test_veto(self, executor, hooks):
        hooks.register(HookPoint.SHOULD_EXECUTE_FUNCTION, lambda allowed, ctx: False)
        outcome = executor.invoke(make_function("double_qty"), {"qty": 1})

        assert not outcome.success
        assert outcome.message == "Function execution prevented by filter"

    def test_params_and_result_transforms(self, executor, hooks):
        hooks.register(HookPoint.BEFORE_FUNCTION_EXECUTION_PARAMS, lambda record, ctx: {**record, "qty": 10})
        hooks.register(
            HookPoint.AFTER_FUNCTION_EXECUTION_RESULT,
            lambda result, ctx: {**result, "by": ctx["function"].name},
        )
        definition = make_function("echo_qty", body="return {'qty': record['qty']}")

        assert executor.invoke(definition, {"qty": 1}).data == {"qty": 10, "by": "echo_qty"}


class TestMaterialize:
    def test_cached_per_source(self, executor):
        definition = make_function("double_qty")
        assert executor.materialize(definition) is executor.materialize(definition)
        assert executor.is_materialized("double_qty")

    def test_new_source_rematerializes(self, executor):
        first = make_function("versioned", body="return 1")
        second = FunctionDefinition(name="versioned", code=first.code.replace("return 1", "return 2"))

        assert executor.invoke(first, {}).data == 1
        assert executor.invoke(second, {}).data == 2

    def test_forget(self, executor):
        definition = make_function("double_qty")
        executor.materialize(definition)
        executor.forget("double_qty")
        assert not executor.is_materialized("double_qty")

    def test_concurrent_materialize_yields_one_callable(self, executor):
        definition = make_function("double_qty")
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(executor.materialize(definition))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len({id(func) for func in results}) == 1

    def test_missing_entry_point(self, executor):
        definition = FunctionDefinition(name="wanted", code="def other(record):\n    return 1\n")
        outcome = executor.invoke(definition, {})
        assert outcome.message == "Function wanted could not be created"

    def test_compile_error(self, executor):
        definition = FunctionDefinition(name="broken", code="def broken(record):\n    return (\n")
        outcome = executor.invoke(definition, {})
        assert outcome.message.startswith("Function broken could not be created: ")


class TestSandbox:
    def test_unsafe_import_refused(self, executor):
        definition = make_function("sneaky", body="import os; return os.getcwd()")
        outcome = executor.invoke(definition, {})

        assert not outcome.success
        assert outcome.message == "Import of module 'os' is not allowed"

    def test_safe_import_allowed(self, executor):
        definition = make_function("rounded", body="import math; return math.floor(record['v'])")
        assert executor.invoke(definition, {"v": 2.7}).data == 2

    @pytest.mark.parametrize("name", ["open", "eval", "exec", "__import__('os')"])
    def test_dangerous_builtins_missing(self, executor, name):
        definition = make_function("sneaky", body=f"return {name}")
        assert not executor.invoke(definition, {}).success

    def test_class_helpers_available(self, executor):
        code = (
            "def describe(record):\n"
            "    class Row(dict):\n"
            "        @property\n"
            "        def size(self):\n"
            "            return len(super().keys())\n"
            "    return {'kind': type(record).__name__, 'size': Row(record).size}\n"
        )
        outcome = executor.invoke(FunctionDefinition(name="describe", code=code), {"a": 1})
        assert outcome.data == {"kind": "dict", "size": 1}

    def test_print_goes_to_user_logger(self, executor, caplog):
        definition = make_function("chatty", body="print('row', record['id']); return record")
        with caplog.at_level("INFO", logger="sheetpoet.user_functions"):
            executor.invoke(definition, {"id": 7})
        assert "row 7" in caplog.text
