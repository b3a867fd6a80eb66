"""Generator constants - compiler flags and file classification.

This module contains ONLY constants. Values that users may tune at runtime
(worker count, extension lists, builtin include path) live in
codebrowser.config_runtime instead.
"""

# =============================================================================
# COMMAND ADJUSTMENT
# =============================================================================

# Flags that must not survive into a syntax-only invocation
OUTPUT_MODE_FLAGS = frozenset({"-c", "-S"})
SAVE_TEMPS_PREFIXES = ("-save-temps", "--save-temps")
COLOR_DIAGNOSTICS_PREFIXES = ("-fcolor-diagnostics", "-fdiagnostics-color")

SYNTAX_ONLY_FLAG = "-fsyntax-only"

# Disable the standard include search; the builtin bundle is not added then
NO_STDINC_FLAGS = frozenset({"-nostdinc", "-nostdinc++"})

# Flags whose next token is a macro definition, never a path
MACRO_FLAGS = frozenset({"-D", "-U"})

# Appended to every command: the unit processor ignores driver-only arguments
TOLERANCE_FLAGS = ("-Qunused-arguments", "-Wno-unknown-warning-option")

# System include flag for the builtin headers bundle; Windows drivers take -I
SYSTEM_INCLUDE_FLAG = "-isystem"
WINDOWS_SYSTEM_INCLUDE_FLAG = "-I"

# =============================================================================
# RECOVERY
# =============================================================================

# Language forced onto documentation sources that borrow a C++ command
DOC_SOURCE_LANGUAGE_FLAG = "-xc++"
DOC_SOURCE_HEADER_SUFFIX = ".h"

# Executable placeholder for commands given inline after "--"
FIXED_DATABASE_EXECUTABLE = "clang-tool"

# =============================================================================
# PLAIN PAGES
# =============================================================================

PLAIN_PAGE_DISCLAIMER = (
    "Warning: This file is not a C or C++ file. It does not have highlighting."
)
FOOTER_DATE_FORMAT = "%Y-%b-%d"
