"""Tests for the blocklist/pattern validator."""

import pytest

from sheetpoet.validation.blocklist import BlocklistValidator


def wrap(body: str) -> str:
    return f"def transform(record):\n    {body}\n"


@pytest.fixture
def blocklist():
    return BlocklistValidator()


class TestCleanCode:
    def test_plain_function_passes(self, blocklist):
        result = blocklist.check(wrap('return {"total": record["qty"] * 2}'))
        assert result.valid
        assert result.message == "No dangerous code detected."

    def test_attribute_compile_is_not_the_builtin(self, blocklist):
        code = "import re\n\n" + wrap("return bool(re.compile('a+').match(record['name']))")
        assert blocklist.check(code).valid

    def test_safe_imports_pass(self, blocklist):
        code = "import json\nfrom datetime import datetime\n\n" + wrap("return json.dumps(record)")
        assert blocklist.check(code).valid

    def test_utf8_coding_cookie_is_allowed(self, blocklist):
        assert blocklist.check("# -*- coding: utf-8 -*-\n" + wrap("return record")).valid


class TestDangerousCalls:
    @pytest.mark.parametrize(
        "body,name",
        [
            ("return eval('1 + 1')", "eval"),
            ("return EVAL('1 + 1')", "eval"),
            ("return exec('x = 1')", "exec"),
            ("return os.system('ls')", "system"),
            ("return subprocess.check_output(['ls'])", "check_output"),
            ("return open('/etc/passwd').read()", "open"),
            ("return base64.b64decode(record['blob'])", "b64decode"),
            ("return urllib.request.urlopen('http://example.com')", "urlopen"),
            ("return sqlite3.connect('db.sqlite')", "connect"),
        ],
    )
    def test_rejects_call_and_names_capability(self, blocklist, body, name):
        result = blocklist.check(wrap(body))
        assert not result.valid
        assert result.message == f"Dangerous function '{name}' detected in code."

    def test_token_sweep_catches_line_continuation(self, blocklist):
        result = blocklist.check(wrap("return eval \\\n        ('1 + 1')"))
        assert not result.valid
        assert result.message == "Dangerous function 'eval' detected in code."

    def test_existence_check_with_hasattr_is_rejected(self, blocklist):
        result = blocklist.check(wrap("return hasattr(record, 'eval')"))
        assert not result.valid
        assert result.message == "Attempting to check for dangerous function 'eval' is not allowed."

    def test_existence_check_with_membership_is_rejected(self, blocklist):
        result = blocklist.check(wrap("return 'system' in dir(record)"))
        assert not result.valid
        assert result.message == "Attempting to check for dangerous function 'system' is not allowed."


class TestImports:
    def test_dangerous_module(self, blocklist):
        result = blocklist.check("import os\n\n" + wrap("return os.getcwd"))
        assert not result.valid
        assert result.message == "Import of dangerous module 'os' is not allowed."

    def test_from_import_of_dangerous_module(self, blocklist):
        result = blocklist.check("from subprocess import run\n\n" + wrap("return run"))
        assert result.message == "Import of dangerous module 'subprocess' is not allowed."

    def test_module_outside_allow_list(self, blocklist):
        result = blocklist.check("import numpy\n\n" + wrap("return numpy.sum"))
        assert not result.valid
        assert result.message.startswith("Import of module 'numpy' is not allowed.")


class TestIndirectInvocation:
    def test_namespace_subscript_names_target(self, blocklist):
        result = blocklist.check(wrap("return globals()['eval']('1')"))
        assert not result.valid
        assert result.message == "Dynamic access to 'eval' through globals() is not allowed."

    def test_bare_namespace_lookup(self, blocklist):
        result = blocklist.check(wrap("return vars(record)"))
        assert result.message == "Namespace lookups (vars()) are not allowed for security reasons."

    def test_dunder_escape(self, blocklist):
        result = blocklist.check(wrap("return record.__class__.__mro__"))
        assert not result.valid
        assert "interpreter internals" in result.message

    def test_calling_a_lookup_result(self, blocklist):
        result = blocklist.check(wrap("return handlers[record['kind']](record)"))
        assert result.message == "Dynamic function calls through lookups are not allowed."

    def test_parenthesized_statement_after_subscript_is_not_a_call(self, blocklist):
        result = blocklist.check(wrap("values = record['items']\n    (first, second) = values\n    return first"))
        assert result.valid

    def test_lookup_call_split_over_lines(self, blocklist):
        result = blocklist.check(wrap("return (handlers[record['kind']]\n        (record))"))
        assert result.message == "Dynamic function calls through lookups are not allowed."

    def test_indirect_rule_fires_before_deny_list(self, blocklist):
        result = blocklist.check(wrap("x = eval('1')\n    return globals()['x']"))
        assert result.message == "Dynamic access to 'x' through globals() is not allowed."


class TestOtherRules:
    def test_non_utf8_coding_cookie(self, blocklist):
        result = blocklist.check("# -*- coding: utf-7 -*-\n" + wrap("return record"))
        assert not result.valid
        assert result.message.startswith("Source encoding declaration 'utf-7' is not allowed.")

    def test_host_package_reference(self, blocklist):
        result = blocklist.check(wrap("return record.get('x') or sheetpoet"))
        assert result.message == "Direct access to the host application ('sheetpoet') is not allowed."

    def test_configured_privileged_handle(self):
        result = BlocklistValidator(["db_handle"]).check(wrap("return db_handle"))
        assert result.message == "Direct access to the host application ('db_handle') is not allowed."

    def test_backticks(self, blocklist):
        result = blocklist.check(wrap("return `ls`"))
        assert result.message == "Backtick operators (`) for shell execution are not allowed."

    def test_shell_escape_line(self, blocklist):
        result = blocklist.check(wrap("return record") + "!ls -la\n")
        assert not result.valid
        assert result.message.startswith("Shell escapes")

    def test_deserialization_keyword(self, blocklist):
        result = blocklist.check(wrap("return record['pickle']"))
        assert result.message == "The pickle module is not allowed for security reasons."

    def test_reflection(self, blocklist):
        result = blocklist.check(wrap("return inspect.stack()"))
        assert result.message == "Reflection and frame access are not allowed for security reasons."
