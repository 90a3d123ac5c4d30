"""Security policy tables shared by the static validator and the sandbox.

The validator rejects submissions that mention these capabilities; the
sandbox independently refuses them at run time.
"""

# Process/shell execution, reached through os/subprocess/pty style modules
PROCESS_FUNCTIONS = (
    "system",
    "popen",
    "spawnl",
    "spawnle",
    "spawnlp",
    "spawnv",
    "spawnve",
    "spawnvp",
    "execl",
    "execle",
    "execlp",
    "execv",
    "execve",
    "execvp",
    "fork",
    "forkpty",
    "kill",
    "check_output",
    "check_call",
    "getoutput",
    "getstatusoutput",
)

# Dynamic code evaluation/inclusion
CODE_FUNCTIONS = (
    "eval",
    "exec",
    "compile",
    "__import__",
    "import_module",
    "execfile",
    "run_path",
    "run_module",
    "load_module",
    "breakpoint",
)

# Reflection
REFLECTION_FUNCTIONS = (
    "getattr",
    "setattr",
    "delattr",
    "_getframe",
    "currentframe",
)

# Raw filesystem I/O
FILESYSTEM_FUNCTIONS = (
    "open",
    "unlink",
    "rmdir",
    "removedirs",
    "rmtree",
    "mkdir",
    "makedirs",
    "chmod",
    "chown",
    "chdir",
    "truncate",
    "listdir",
    "scandir",
    "write_text",
    "write_bytes",
    "read_text",
    "read_bytes",
    "copyfile",
    "copytree",
    "symlink",
)

# Raw network access
NETWORK_FUNCTIONS = (
    "urlopen",
    "urlretrieve",
    "create_connection",
    "socket",
    "getaddrinfo",
)

# Direct database driver access
DATABASE_FUNCTIONS = (
    "connect",
    "cursor",
    "executescript",
)

# Deserialization of arbitrary payloads
DESERIALIZATION_FUNCTIONS = (
    "Unpickler",
    "unsafe_load",
    "full_load",
)

# Reversible obfuscation primitives
OBFUSCATION_FUNCTIONS = (
    "b64decode",
    "urlsafe_b64decode",
    "standard_b64decode",
    "b32decode",
    "b16decode",
    "a85decode",
    "b85decode",
    "decodebytes",
    "decompress",
    "unhexlify",
    "fromhex",
)

# Interpreter control
INTERPRETER_FUNCTIONS = (
    "input",
    "exit",
    "quit",
)

DANGEROUS_FUNCTIONS = (
    PROCESS_FUNCTIONS
    + CODE_FUNCTIONS
    + REFLECTION_FUNCTIONS
    + FILESYSTEM_FUNCTIONS
    + NETWORK_FUNCTIONS
    + DATABASE_FUNCTIONS
    + DESERIALIZATION_FUNCTIONS
    + OBFUSCATION_FUNCTIONS
    + INTERPRETER_FUNCTIONS
)

# Names that are only dangerous as bare builtin calls. ``re.compile(...)`` or
# ``record.open(...)`` are attribute calls and are left alone.
BARE_BUILTIN_FUNCTIONS = frozenset(
    {
        "eval",
        "exec",
        "compile",
        "execfile",
        "breakpoint",
        "open",
        "getattr",
        "setattr",
        "delattr",
        "input",
        "exit",
        "quit",
    }
)

DANGEROUS_MODULES = frozenset(
    {
        # Process and interpreter
        "os",
        "sys",
        "subprocess",
        "pty",
        "signal",
        "multiprocessing",
        "threading",
        "_thread",
        "concurrent",
        "asyncio",
        "platform",
        "resource",
        "ctypes",
        "cffi",
        "gc",
        "code",
        "codeop",
        "builtins",
        "importlib",
        "imp",
        "runpy",
        "pkgutil",
        "inspect",
        "traceback",
        # Filesystem
        "io",
        "shutil",
        "pathlib",
        "tempfile",
        "glob",
        "fileinput",
        "mmap",
        "fcntl",
        "posix",
        "nt",
        "pwd",
        "grp",
        # Network
        "socket",
        "socketserver",
        "ssl",
        "select",
        "selectors",
        "http",
        "urllib",
        "ftplib",
        "smtplib",
        "poplib",
        "imaplib",
        "telnetlib",
        "requests",
        "httpx",
        "aiohttp",
        "websocket",
        "websockets",
        # Database drivers
        "sqlite3",
        "dbm",
        "psycopg2",
        "psycopg",
        "pymysql",
        "MySQLdb",
        "sqlalchemy",
        "pymongo",
        "redis",
        # Deserialization
        "pickle",
        "cPickle",
        "_pickle",
        "marshal",
        "shelve",
        "dill",
        "cloudpickle",
        "jsonpickle",
        "yaml",
        # Obfuscation
        "base64",
        "binascii",
        "codecs",
        "zlib",
        "gzip",
        "bz2",
        "lzma",
        "zipfile",
        "tarfile",
    }
)

# Modules user functions may import. Everything else is refused.
SAFE_MODULES = frozenset(
    {
        "json",
        "math",
        "cmath",
        "re",
        "datetime",
        "time",
        "calendar",
        "zoneinfo",
        "decimal",
        "fractions",
        "numbers",
        "statistics",
        "random",
        "string",
        "textwrap",
        "unicodedata",
        "difflib",
        "itertools",
        "functools",
        "operator",
        "collections",
        "heapq",
        "bisect",
        "copy",
        "typing",
        "dataclasses",
        "enum",
        "uuid",
        "hashlib",
        "hmac",
        "html",
        "csv",
    }
)

DESERIALIZATION_MODULES = (
    "pickle",
    "cPickle",
    "_pickle",
    "marshal",
    "shelve",
    "dill",
    "cloudpickle",
    "jsonpickle",
)

# Attribute names that lead from any object back to interpreter internals
INTERNAL_ATTRIBUTES = (
    "__builtins__",
    "__dict__",
    "__globals__",
    "__subclasses__",
    "__mro__",
    "__bases__",
    "__base__",
    "__class__",
    "__code__",
    "__closure__",
    "__getattribute__",
    "__reduce__",
    "__reduce_ex__",
    "__loader__",
    "__spec__",
    "f_globals",
    "f_locals",
    "f_builtins",
    "f_back",
    "gi_frame",
    "cr_frame",
    "ag_frame",
    "tb_frame",
    "co_code",
)

# Name of the host package; user code may never reach into it.
HOST_PACKAGE = "sheetpoet"

# Builtins visible inside the sandbox. ``print`` is rebound to a logger.
SAFE_BUILTIN_NAMES = (
    # Types and constructors
    "bool",
    "bytearray",
    "bytes",
    "complex",
    "dict",
    "float",
    "frozenset",
    "int",
    "list",
    "object",
    "set",
    "slice",
    "str",
    "tuple",
    "type",
    # Class helpers
    "classmethod",
    "property",
    "staticmethod",
    "super",
    # Functions
    "abs",
    "all",
    "any",
    "ascii",
    "bin",
    "callable",
    "chr",
    "divmod",
    "enumerate",
    "filter",
    "format",
    "hash",
    "hex",
    "isinstance",
    "issubclass",
    "iter",
    "len",
    "map",
    "max",
    "min",
    "next",
    "oct",
    "ord",
    "pow",
    "print",
    "range",
    "repr",
    "reversed",
    "round",
    "sorted",
    "sum",
    "zip",
    # Constants
    "NotImplemented",
    # Exceptions user code may raise or catch
    "ArithmeticError",
    "AssertionError",
    "AttributeError",
    "Exception",
    "FloatingPointError",
    "ImportError",
    "IndexError",
    "KeyError",
    "LookupError",
    "NameError",
    "NotImplementedError",
    "OverflowError",
    "RuntimeError",
    "StopIteration",
    "TypeError",
    "UnicodeDecodeError",
    "UnicodeEncodeError",
    "UnicodeError",
    "ValueError",
    "ZeroDivisionError",
)
