from __future__ import annotations

KILN_VERSION = "0.2.0"
KILN_TAB_STOP = 8
KILN_QUIT_TIMES = 2
KILN_QUERY_LEN = 256
KILN_MESSAGE_TIMEOUT = 5

# Syntax highlight types.
HL_NORMAL = 0
HL_COMMENT = 2
HL_MLCOMMENT = 3
HL_KEYWORD1 = 4
HL_KEYWORD2 = 5
HL_STRING = 6
HL_NUMBER = 7
HL_MATCH = 8

HL_HIGHLIGHT_STRINGS = 1 << 0
HL_HIGHLIGHT_NUMBERS = 1 << 1

SEPARATORS = ",.()+-/*=~%<>[];"


def ctrl(ch: str) -> int:
    return ord(ch.upper()) & 0x1F


# Key actions.
CTRL_F = ctrl("f")
CTRL_H = ctrl("h")
CTRL_L = ctrl("l")
CTRL_Q = ctrl("q")
CTRL_S = ctrl("s")
ENTER = 13
ESC = 27
BACKSPACE = 127

ARROW_LEFT = 1000
ARROW_RIGHT = 1001
ARROW_UP = 1002
ARROW_DOWN = 1003
DEL_KEY = 1004
HOME_KEY = 1005
END_KEY = 1006
PAGE_UP = 1007
PAGE_DOWN = 1008

KEY_NAMES = {
    ARROW_LEFT: "LEFT",
    ARROW_RIGHT: "RIGHT",
    ARROW_UP: "UP",
    ARROW_DOWN: "DOWN",
    DEL_KEY: "DEL",
    HOME_KEY: "HOME",
    END_KEY: "END",
    PAGE_UP: "PAGE_UP",
    PAGE_DOWN: "PAGE_DOWN",
    ESC: "ESC",
    ENTER: "ENTER",
    BACKSPACE: "BACKSPACE",
}

# Escape sequences.
CSI_SIMPLE_MAP = {
    ord("A"): ARROW_UP,
    ord("B"): ARROW_DOWN,
    ord("C"): ARROW_RIGHT,
    ord("D"): ARROW_LEFT,
    ord("H"): HOME_KEY,
    ord("F"): END_KEY,
}
CSI_TILDE_MAP = {
    ord("1"): HOME_KEY,
    ord("3"): DEL_KEY,
    ord("4"): END_KEY,
    ord("5"): PAGE_UP,
    ord("6"): PAGE_DOWN,
    ord("7"): HOME_KEY,
    ord("8"): END_KEY,
}
SS3_SIMPLE_MAP = {
    ord("H"): HOME_KEY,
    ord("F"): END_KEY,
}

ANSI_CLEAR_SCREEN = b"\x1b[2J"
ANSI_CURSOR_HOME = b"\x1b[H"
ANSI_HIDE_CURSOR = b"\x1b[?25l"
ANSI_SHOW_CURSOR = b"\x1b[?25h"
ANSI_CLEAR_LINE = b"\x1b[K"
ANSI_INVERT_ON = b"\x1b[7m"
ANSI_INVERT_OFF = b"\x1b[0m"
ANSI_DEFAULT_FG = b"\x1b[39m"
ANSI_PROBE_BOTTOM_RIGHT = b"\x1b[999C\x1b[999B"
ANSI_QUERY_CURSOR = b"\x1b[6n"

C_HL_EXTENSIONS = (".c", ".h", ".cpp", ".hpp", ".cc")
C_HL_KEYWORDS = (
    # C keywords.
    "auto",
    "break",
    "case",
    "continue",
    "default",
    "do",
    "else",
    "enum",
    "extern",
    "for",
    "goto",
    "if",
    "register",
    "return",
    "sizeof",
    "static",
    "struct",
    "switch",
    "typedef",
    "union",
    "volatile",
    "while",
    "NULL",
    # C++ keywords.
    "alignas",
    "alignof",
    "class",
    "constexpr",
    "const_cast",
    "delete",
    "dynamic_cast",
    "explicit",
    "false",
    "friend",
    "inline",
    "mutable",
    "namespace",
    "new",
    "noexcept",
    "nullptr",
    "operator",
    "private",
    "protected",
    "public",
    "reinterpret_cast",
    "static_assert",
    "static_cast",
    "template",
    "this",
    "thread_local",
    "throw",
    "true",
    "try",
    "typeid",
    "typename",
    "virtual",
    # C types (secondary class).
    "int|",
    "long|",
    "double|",
    "float|",
    "char|",
    "unsigned|",
    "signed|",
    "void|",
    "short|",
    "const|",
    "bool|",
)

PY_HL_EXTENSIONS = (".py", ".pyw")
PY_HL_KEYWORDS = (
    "and",
    "as",
    "assert",
    "async",
    "await",
    "break",
    "class",
    "continue",
    "def",
    "del",
    "elif",
    "else",
    "except",
    "finally",
    "for",
    "from",
    "global",
    "if",
    "import",
    "in",
    "is",
    "lambda",
    "nonlocal",
    "not",
    "or",
    "pass",
    "raise",
    "return",
    "try",
    "while",
    "with",
    "yield",
    # Builtin constants and types (secondary class).
    "None|",
    "True|",
    "False|",
    "int|",
    "float|",
    "str|",
    "bytes|",
    "bool|",
    "list|",
    "dict|",
    "tuple|",
    "set|",
    "self|",
)
