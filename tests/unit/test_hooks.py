"""Tests for the extension point registry."""

from sheetpoet.hooks import HookPoint, HookRegistry


def test_no_hooks_returns_value_unchanged():
    assert HookRegistry().apply(HookPoint.PROCESS_PARAMS, {"a": 1}) == {"a": 1}


def test_transforms_run_in_registration_order():
    hooks = HookRegistry()
    hooks.register(HookPoint.PROCESS_FUNCTION_NAME, lambda v, ctx: v + "_a")
    hooks.register(HookPoint.PROCESS_FUNCTION_NAME, lambda v, ctx: v + "_b")

    assert hooks.apply(HookPoint.PROCESS_FUNCTION_NAME, "fn") == "fn_a_b"


def test_context_is_passed():
    hooks = HookRegistry()
    seen = {}

    def capture(value, ctx):
        seen.update(ctx)
        return value

    hooks.register(HookPoint.LOG_ENTRY, capture)
    hooks.apply(HookPoint.LOG_ENTRY, None, outcome="x")
    assert seen == {"outcome": "x"}


def test_register_by_name_and_unregister():
    hooks = HookRegistry()

    def upper(value, ctx):
        return value.upper()

    hooks.register("process_task_id", upper)
    assert hooks.has(HookPoint.PROCESS_TASK_ID)
    assert hooks.unregister(HookPoint.PROCESS_TASK_ID, upper) is True
    assert hooks.unregister(HookPoint.PROCESS_TASK_ID, upper) is False
    assert hooks.apply(HookPoint.PROCESS_TASK_ID, "t1") == "t1"
