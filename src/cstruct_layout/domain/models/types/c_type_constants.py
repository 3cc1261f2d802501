#!/usr/bin/env python3

"""C type constants and built-in size tables.

Sizes follow a flat data model where only the pointer/long width varies
between the 4-byte and 8-byte targets.
"""

# Keywords that can make up a built-in arithmetic type name
BUILTIN_TYPE_KEYWORDS = frozenset(
    {
        "void",
        "char",
        "short",
        "int",
        "long",
        "float",
        "double",
        "signed",
        "unsigned",
        "_Bool",
        "bool",
        "_Complex",
        "__int128",
        "wchar_t",
        "char8_t",
        "char16_t",
        "char32_t",
    }
)

# Qualifiers that never change size or alignment
TYPE_QUALIFIERS = frozenset(
    {
        "const",
        "volatile",
        "restrict",
        "__restrict",
        "__restrict__",
        "register",
        "mutable",
        "_Atomic",
    }
)

# Storage classes and specifiers that mark a member statement as not occupying
# storage in the aggregate (or not being a data member at all)
NON_STORAGE_SPECIFIERS = frozenset(
    {
        "static",
        "typedef",
        "friend",
        "using",
        "template",
        "virtual",
        "static_assert",
        "_Static_assert",
        "operator",
    }
)

ACCESS_SPECIFIERS = frozenset({"public", "private", "protected"})

AGGREGATE_KEYWORDS = frozenset({"struct", "union"})

ATTRIBUTE_KEYWORDS = frozenset(
    {"__attribute__", "__attribute", "__declspec", "alignas", "_Alignas"}
)

FUNCTION_POINTER_TYPE = "function pointer"


def default_type_sizes(pointer_width: int = 8) -> dict[str, int]:
    """Built-in type sizes for the given pointer/long width.

    Args:
        pointer_width: Target pointer width in bytes (4 or 8)

    Returns:
        Mapping of canonical type name to size in bytes
    """
    long_size = 8 if pointer_width == 8 else 4
    return {
        # Character types
        "char": 1,
        "signed char": 1,
        "unsigned char": 1,
        "char8_t": 1,
        "char16_t": 2,
        "char32_t": 4,
        "wchar_t": 4,
        # Integer types
        "short": 2,
        "unsigned short": 2,
        "int": 4,
        "unsigned int": 4,
        "long": long_size,
        "unsigned long": long_size,
        "long long": 8,
        "unsigned long long": 8,
        "__int128": 16,
        "unsigned __int128": 16,
        # Fixed-width integer types
        "int8_t": 1,
        "uint8_t": 1,
        "int16_t": 2,
        "uint16_t": 2,
        "int32_t": 4,
        "uint32_t": 4,
        "int64_t": 8,
        "uint64_t": 8,
        # Floating-point types
        "float": 4,
        "double": 8,
        "long double": 16 if pointer_width == 8 else 12,
        # Pointer-width types
        "size_t": pointer_width,
        "ssize_t": pointer_width,
        "ptrdiff_t": pointer_width,
        "intptr_t": pointer_width,
        "uintptr_t": pointer_width,
        "void*": pointer_width,
        # Other types
        "bool": 1,
        "_Bool": 1,
    }


def canonical_builtin_name(words: list[str]) -> str:
    """Canonicalize a built-in keyword sequence such as ``long unsigned int``.

    Args:
        words: Type keywords with qualifiers already removed

    Returns:
        Canonical spelling used as key in default_type_sizes()
    """
    unsigned = "unsigned" in words
    signed = "signed" in words
    core = [w for w in words if w not in ("signed", "unsigned")]

    long_count = core.count("long")
    if long_count:
        if "double" in core:
            base = "long double"
        else:
            base = "long long" if long_count >= 2 else "long"
    elif "short" in core:
        base = "short"
    else:
        base = " ".join(w for w in core if w != "int") or "int"

    if base == "char" and signed:
        return "signed char"
    if unsigned and base in ("char", "short", "int", "long", "long long", "__int128"):
        return f"unsigned {base}"
    return base
