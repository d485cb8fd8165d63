#!/usr/bin/env python3
"""
LazyC - editor-side helpers for C source files

High-level goals:
- Append a missing statement terminator when the cursor leaves a line
- Infer and insert missing standard #include directives
- Synthesize forward declarations for helpers defined below main()
- Flag a handful of common bug patterns when a document is saved
- Offer a static lookup over a catalog of C standard-library functions

Everything here is line-oriented regex matching over raw text. There is no
tokenizer and no AST; false positives and false negatives are accepted.
The editor itself is an external collaborator (see EditorHost), driven
through LazyCController.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, Sequence, Set, Tuple, Union
import argparse
import json
import os
import re
import sys

import yaml


TOOL_NAME = "lazyc"
TOOL_VERSION = "0.1.0"


class LazyCError(Exception):
    """Base class for errors raised by lazyc."""


class ConfigError(LazyCError):
    """Raised when a configuration document is malformed."""


class CatalogError(LazyCError):
    """Raised when the function catalog violates its one-header-per-name invariant."""


# ============================================================
# ============== SOURCE POSITIONS & EDITS ====================
# ============================================================

@dataclass(frozen=True)
class Position:
    line: int
    column: int


@dataclass(frozen=True)
class SourceRange:
    line_start: int
    col_start: int
    line_end: int
    col_end: int


@dataclass(frozen=True)
class EditOperation:
    """
    A single text insertion. The header and prototype engines each produce
    exactly one of these per pass so the host can apply it atomically.
    """
    insert_at: Position
    text: str


Severity = Literal["warning", "information"]


@dataclass
class Diagnostic:
    range: SourceRange
    message: str
    severity: Severity
    check: str  # id of the check that produced it, e.g. "unsafe-function"


@dataclass(frozen=True)
class PrototypeCandidate:
    name: str
    signature: str  # e.g. "int add(int a, int b);"


@dataclass
class HeaderPlan:
    headers: Set[str] = field(default_factory=set)
    insertion_line: int = 0

    @property
    def sorted_headers(self) -> List[str]:
        return sorted(self.headers)

    def to_edit(self) -> Optional[EditOperation]:
        """
        One contiguous block of sorted #include lines followed by a blank
        line, or None when nothing is missing.
        """
        if not self.headers:
            return None
        block = "\n".join(f"#include <{header}>" for header in self.sorted_headers)
        return EditOperation(Position(self.insertion_line, 0), block + "\n\n")


@dataclass
class PrototypePlan:
    candidates: List[PrototypeCandidate] = field(default_factory=list)
    insertion_line: Optional[int] = None  # None: no include or no main(), pass aborted

    def to_edit(self) -> Optional[EditOperation]:
        if not self.candidates or self.insertion_line is None:
            return None
        block = "\n".join(candidate.signature for candidate in self.candidates)
        return EditOperation(Position(self.insertion_line, 0), "\n" + block + "\n\n")


BufferLike = Union[str, Sequence[str]]


def as_lines(buffer: BufferLike) -> List[str]:
    """
    Normalize a buffer to a list of lines. Strings are split on '\\n' only,
    the same way the editor text is split, so a trailing '\\r' stays put.
    """
    if isinstance(buffer, str):
        return buffer.split("\n")
    return list(buffer)


def apply_edits(buffer: BufferLike, edits: Iterable[EditOperation]) -> List[str]:
    """
    Apply insert-only edits to a buffer and return the resulting lines.

    Positions refer to the buffer before any edit is applied. Edits sharing
    a position keep their relative order. A line past the end of the buffer
    appends; a column past the end of its line is clamped.
    """
    lines = as_lines(buffer)
    text = "\n".join(lines)

    line_offsets: List[int] = []
    running = 0
    for line in lines:
        line_offsets.append(running)
        running += len(line) + 1

    resolved: List[Tuple[int, int, str]] = []
    for index, edit in enumerate(edits):
        pos = edit.insert_at
        insert = edit.text
        if pos.line >= len(lines):
            offset = len(text)
            if text and not text.endswith("\n"):
                insert = "\n" + insert
        else:
            line_no = max(pos.line, 0)
            column = min(max(pos.column, 0), len(lines[line_no]))
            offset = line_offsets[line_no] + column
        resolved.append((offset, index, insert))

    # Back to front, so earlier offsets stay valid.
    for offset, _, insert in sorted(resolved, reverse=True):
        text = text[:offset] + insert + text[offset:]

    return text.split("\n")


def strip_line_comment(line: str) -> str:
    """Drop everything from the first '//' on; string literals are not special."""
    comment_index = line.find("//")
    return line if comment_index == -1 else line[:comment_index]


# ============================================================
# ================= FUNCTION / HEADER CATALOG ================
# ============================================================

@dataclass(frozen=True)
class ParameterInfo:
    name: str
    type: str
    description: str


@dataclass(frozen=True)
class ReferenceEntry:
    name: str
    header: str
    prototype: str
    description: str
    parameters: Tuple[ParameterInfo, ...] = ()
    return_value: str = ""
    example: str = ""
    notes: Optional[str] = None
    related_functions: Tuple[str, ...] = ()

    def to_json_obj(self) -> Dict[str, Any]:
        """Wire shape used by the reference panel."""
        obj: Dict[str, Any] = {
            "name": self.name,
            "header": self.header,
            "prototype": self.prototype,
            "description": self.description,
            "parameters": [
                {"name": p.name, "type": p.type, "description": p.description}
                for p in self.parameters
            ],
            "returnValue": self.return_value,
            "example": self.example,
            "relatedFunctions": list(self.related_functions),
        }
        if self.notes is not None:
            obj["notes"] = self.notes
        return obj


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    header: str
    reference: Optional[ReferenceEntry] = None


class FunctionCatalog:
    """
    Canonical table of cataloged library functions keyed by name.

    Functions with a reference description carry their header there;
    functions that only need a header mapping are listed per header.
    The function -> header map is a projection of this table.
    """

    def __init__(
        self,
        references: Iterable[ReferenceEntry],
        header_only: Optional[Dict[str, Iterable[str]]] = None,
    ) -> None:
        self._entries: Dict[str, CatalogEntry] = {}
        for ref in references:
            self._add(CatalogEntry(name=ref.name, header=ref.header, reference=ref))
        for header, names in (header_only or {}).items():
            for name in names:
                self._add(CatalogEntry(name=name, header=header))

    def _add(self, entry: CatalogEntry) -> None:
        existing = self._entries.get(entry.name)
        if existing is None:
            self._entries[entry.name] = entry
            return
        if existing.header != entry.header:
            raise CatalogError(
                f"function '{entry.name}' is mapped to both "
                f"'{existing.header}' and '{entry.header}'"
            )
        if existing.reference is not None and entry.reference is not None:
            raise CatalogError(f"duplicate reference entry for '{entry.name}'")
        if existing.reference is None:
            self._entries[entry.name] = entry

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str) -> Optional[CatalogEntry]:
        return self._entries.get(name)

    def header_for(self, name: str) -> Optional[str]:
        entry = self._entries.get(name)
        return entry.header if entry else None

    def header_map(self) -> Dict[str, str]:
        return {name: entry.header for name, entry in self._entries.items()}

    def references(self) -> List[ReferenceEntry]:
        """Reference entries in declaration order."""
        return [entry.reference for entry in self._entries.values() if entry.reference is not None]


def _params(*triples: Tuple[str, str, str]) -> Tuple[ParameterInfo, ...]:
    return tuple(ParameterInfo(name, ctype, description) for name, ctype, description in triples)


_REFERENCE_ENTRIES: Tuple[ReferenceEntry, ...] = (
    ReferenceEntry(
        name="printf",
        header="stdio.h",
        prototype="int printf(const char *format, ...);",
        description="Prints formatted output to stdout",
        parameters=_params(("format", "const char*", "Format string with conversion specifiers")),
        return_value="Number of characters printed, or negative if error occurs",
        example='printf("Hello, %s!\\n", "World");',
        notes="Use format specifiers like %d (int), %s (string), %f (float), %x (hex)",
        related_functions=("fprintf", "sprintf", "scanf"),
    ),
    ReferenceEntry(
        name="scanf",
        header="stdio.h",
        prototype="int scanf(const char *format, ...);",
        description="Reads formatted input from stdin",
        parameters=_params(("format", "const char*", "Format string specifying input format")),
        return_value="Number of successfully read items",
        example='int x; scanf("%d", &x);',
        notes="UNSAFE! Use fgets() with sscanf() for safer input",
        related_functions=("fscanf", "sscanf", "printf"),
    ),
    ReferenceEntry(
        name="fprintf",
        header="stdio.h",
        prototype="int fprintf(FILE *stream, const char *format, ...);",
        description="Prints formatted output to a file stream",
        parameters=_params(
            ("stream", "FILE*", "Output file stream"),
            ("format", "const char*", "Format string"),
        ),
        return_value="Number of characters printed",
        example='fprintf(fp, "Error: %s\\n", message);',
        notes="Similar to printf but writes to a file",
        related_functions=("printf", "sprintf", "fscanf"),
    ),
    ReferenceEntry(
        name="sprintf",
        header="stdio.h",
        prototype="int sprintf(char *str, const char *format, ...);",
        description="Prints formatted output to a string buffer",
        parameters=_params(
            ("str", "char*", "Destination buffer"),
            ("format", "const char*", "Format string"),
        ),
        return_value="Number of characters printed",
        example='sprintf(buffer, "Value: %d", 42);',
        notes="UNSAFE! Use snprintf() instead to avoid buffer overflow",
        related_functions=("snprintf", "printf", "fprintf"),
    ),
    ReferenceEntry(
        name="fgets",
        header="stdio.h",
        prototype="char* fgets(char *str, int n, FILE *stream);",
        description="Reads a line from a file stream into a buffer",
        parameters=_params(
            ("str", "char*", "Destination buffer"),
            ("n", "int", "Maximum number of characters to read"),
            ("stream", "FILE*", "Input file stream"),
        ),
        return_value="Pointer to str on success, NULL on EOF or error",
        example="fgets(line, 100, stdin);",
        notes="Safer than gets(). Reads up to n-1 characters or until newline",
        related_functions=("gets", "fputs", "scanf"),
    ),
    ReferenceEntry(
        name="fputs",
        header="stdio.h",
        prototype="int fputs(const char *str, FILE *stream);",
        description="Writes a string to a file stream",
        parameters=_params(
            ("str", "const char*", "String to write"),
            ("stream", "FILE*", "Output file stream"),
        ),
        return_value="Non-negative value on success, EOF on error",
        example='fputs("Hello World\\n", fp);',
        notes="Similar to puts but writes to a file stream",
        related_functions=("puts", "fgets", "fprintf"),
    ),
    ReferenceEntry(
        name="fread",
        header="stdio.h",
        prototype="size_t fread(void *ptr, size_t size, size_t nmemb, FILE *stream);",
        description="Reads binary data from a file stream",
        parameters=_params(
            ("ptr", "void*", "Pointer to destination buffer"),
            ("size", "size_t", "Size of each element"),
            ("nmemb", "size_t", "Number of elements to read"),
            ("stream", "FILE*", "Input file stream"),
        ),
        return_value="Number of elements successfully read",
        example="fread(buffer, sizeof(int), 10, fp);",
        notes="Used for binary file I/O",
        related_functions=("fwrite", "fgets", "fopen"),
    ),
    ReferenceEntry(
        name="fwrite",
        header="stdio.h",
        prototype="size_t fwrite(const void *ptr, size_t size, size_t nmemb, FILE *stream);",
        description="Writes binary data to a file stream",
        parameters=_params(
            ("ptr", "const void*", "Pointer to data to write"),
            ("size", "size_t", "Size of each element"),
            ("nmemb", "size_t", "Number of elements to write"),
            ("stream", "FILE*", "Output file stream"),
        ),
        return_value="Number of elements successfully written",
        example="fwrite(data, sizeof(int), 5, fp);",
        notes="Used for binary file I/O",
        related_functions=("fread", "fputs", "fopen"),
    ),
    ReferenceEntry(
        name="malloc",
        header="stdlib.h",
        prototype="void* malloc(size_t size);",
        description="Allocates memory dynamically on the heap",
        parameters=_params(("size", "size_t", "Number of bytes to allocate")),
        return_value="Pointer to allocated memory, or NULL if allocation fails",
        example="int *arr = (int*)malloc(10 * sizeof(int));",
        notes="Always check if malloc returns NULL. Remember to free() allocated memory.",
        related_functions=("calloc", "realloc", "free"),
    ),
    ReferenceEntry(
        name="calloc",
        header="stdlib.h",
        prototype="void* calloc(size_t nmemb, size_t size);",
        description="Allocates memory and initializes it to zero",
        parameters=_params(
            ("nmemb", "size_t", "Number of elements"),
            ("size", "size_t", "Size of each element"),
        ),
        return_value="Pointer to allocated memory, or NULL if allocation fails",
        example="int *arr = (int*)calloc(10, sizeof(int));",
        notes="Like malloc but initializes memory to 0. Slightly slower than malloc.",
        related_functions=("malloc", "realloc", "free"),
    ),
    ReferenceEntry(
        name="realloc",
        header="stdlib.h",
        prototype="void* realloc(void *ptr, size_t size);",
        description="Changes the size of previously allocated memory",
        parameters=_params(
            ("ptr", "void*", "Pointer to previously allocated memory"),
            ("size", "size_t", "New size in bytes"),
        ),
        return_value="Pointer to reallocated memory, or NULL if reallocation fails",
        example="arr = (int*)realloc(arr, 20 * sizeof(int));",
        notes="If realloc fails, original memory is unchanged. Always reassign the result.",
        related_functions=("malloc", "calloc", "free"),
    ),
    ReferenceEntry(
        name="free",
        header="stdlib.h",
        prototype="void free(void *ptr);",
        description="Frees dynamically allocated memory",
        parameters=_params(("ptr", "void*", "Pointer to memory allocated by malloc/calloc/realloc")),
        return_value="void (no return value)",
        example="free(arr); arr = NULL;",
        notes="Always set pointer to NULL after freeing. Double-free causes undefined behavior.",
        related_functions=("malloc", "calloc", "realloc"),
    ),
    ReferenceEntry(
        name="strlen",
        header="string.h",
        prototype="size_t strlen(const char *s);",
        description="Returns the length of a string (excluding null terminator)",
        parameters=_params(("s", "const char*", "Pointer to null-terminated string")),
        return_value="Length of the string as size_t",
        example='int len = strlen("hello");  // returns 5',
        notes="Does not include the null terminator in the count",
        related_functions=("strcpy", "strcat", "strcmp"),
    ),
    ReferenceEntry(
        name="strcmp",
        header="string.h",
        prototype="int strcmp(const char *s1, const char *s2);",
        description="Compares two strings lexicographically",
        parameters=_params(
            ("s1", "const char*", "First string to compare"),
            ("s2", "const char*", "Second string to compare"),
        ),
        return_value="0 if equal, negative if s1 < s2, positive if s1 > s2",
        example="if (strcmp(str1, str2) == 0) { /* strings are equal */ }",
        notes="Case-sensitive comparison. Use strcasecmp for case-insensitive.",
        related_functions=("strcpy", "strlen", "strcat"),
    ),
    ReferenceEntry(
        name="strncmp",
        header="string.h",
        prototype="int strncmp(const char *s1, const char *s2, size_t n);",
        description="Compares first n characters of two strings",
        parameters=_params(
            ("s1", "const char*", "First string"),
            ("s2", "const char*", "Second string"),
            ("n", "size_t", "Number of characters to compare"),
        ),
        return_value="0 if equal, negative if s1 < s2, positive if s1 > s2",
        example="strncmp(str1, str2, 5);",
        notes="Safer than strcmp as it limits comparison length",
        related_functions=("strcmp", "strlen", "strcpy"),
    ),
    ReferenceEntry(
        name="strcpy",
        header="string.h",
        prototype="char* strcpy(char *dest, const char *src);",
        description="Copies a string from source to destination",
        parameters=_params(
            ("dest", "char*", "Destination buffer"),
            ("src", "const char*", "Source string to copy"),
        ),
        return_value="Pointer to dest",
        example="strcpy(destination, source);",
        notes="UNSAFE! Can cause buffer overflow. Use strncpy() instead.",
        related_functions=("strncpy", "strcat", "strcmp"),
    ),
    ReferenceEntry(
        name="strncpy",
        header="string.h",
        prototype="char* strncpy(char *dest, const char *src, size_t n);",
        description="Safely copies up to n characters from source to destination",
        parameters=_params(
            ("dest", "char*", "Destination buffer"),
            ("src", "const char*", "Source string"),
            ("n", "size_t", "Maximum number of characters to copy"),
        ),
        return_value="Pointer to dest",
        example="strncpy(dest, src, 100);",
        notes="Safer than strcpy. Specify buffer size to prevent overflow.",
        related_functions=("strcpy", "strcat", "strlen"),
    ),
    ReferenceEntry(
        name="strcat",
        header="string.h",
        prototype="char* strcat(char *dest, const char *src);",
        description="Concatenates two strings",
        parameters=_params(
            ("dest", "char*", "Destination string buffer"),
            ("src", "const char*", "Source string to append"),
        ),
        return_value="Pointer to dest",
        example="strcat(str1, str2);",
        notes="UNSAFE! Use strncat() instead",
        related_functions=("strncat", "strcpy", "strlen"),
    ),
    ReferenceEntry(
        name="strncat",
        header="string.h",
        prototype="char* strncat(char *dest, const char *src, size_t n);",
        description="Safely concatenates up to n characters",
        parameters=_params(
            ("dest", "char*", "Destination string buffer"),
            ("src", "const char*", "Source string"),
            ("n", "size_t", "Maximum characters to append"),
        ),
        return_value="Pointer to dest",
        example="strncat(dest, src, 50);",
        notes="Safer than strcat. Always specify maximum length.",
        related_functions=("strcat", "strcpy", "strlen"),
    ),
    ReferenceEntry(
        name="strchr",
        header="string.h",
        prototype="char* strchr(const char *s, int c);",
        description="Finds the first occurrence of a character in a string",
        parameters=_params(
            ("s", "const char*", "String to search"),
            ("c", "int", "Character to search for"),
        ),
        return_value="Pointer to first occurrence, or NULL if not found",
        example="char *ptr = strchr(\"hello\", 'l');",
        notes="Returns pointer to the character, not the index",
        related_functions=("strstr", "strrchr", "strlen"),
    ),
    ReferenceEntry(
        name="strstr",
        header="string.h",
        prototype="char* strstr(const char *haystack, const char *needle);",
        description="Finds the first occurrence of a substring in a string",
        parameters=_params(
            ("haystack", "const char*", "String to search in"),
            ("needle", "const char*", "Substring to search for"),
        ),
        return_value="Pointer to first occurrence, or NULL if not found",
        example='char *pos = strstr("Hello World", "World");',
        notes="Case-sensitive search",
        related_functions=("strchr", "strlen", "strcmp"),
    ),
    ReferenceEntry(
        name="atoi",
        header="stdlib.h",
        prototype="int atoi(const char *str);",
        description="Converts a string to an integer",
        parameters=_params(("str", "const char*", "String containing integer")),
        return_value="Converted integer value, or 0 on error",
        example='int num = atoi("123");',
        notes="Returns 0 if conversion fails. No error indication.",
        related_functions=("atof", "strtol", "sprintf"),
    ),
    ReferenceEntry(
        name="atof",
        header="stdlib.h",
        prototype="double atof(const char *str);",
        description="Converts a string to a floating point number",
        parameters=_params(("str", "const char*", "String containing float")),
        return_value="Converted double value",
        example='double d = atof("3.14");',
        notes="Returns 0.0 on error",
        related_functions=("atoi", "strtod", "sprintf"),
    ),
    ReferenceEntry(
        name="fopen",
        header="stdio.h",
        prototype="FILE* fopen(const char *filename, const char *mode);",
        description="Opens a file and returns a FILE pointer",
        parameters=_params(
            ("filename", "const char*", "Name of file to open"),
            ("mode", "const char*", 'Mode: "r" (read), "w" (write), "a" (append), "r+" (read/write)'),
        ),
        return_value="FILE pointer on success, NULL on failure",
        example='FILE *file = fopen("data.txt", "r"); if (file == NULL) { /* handle error */ }',
        notes="Always check if fopen returns NULL before using the file pointer. Remember to fclose().",
        related_functions=("fclose", "fread", "fwrite", "fprintf"),
    ),
    ReferenceEntry(
        name="fclose",
        header="stdio.h",
        prototype="int fclose(FILE *stream);",
        description="Closes a file stream",
        parameters=_params(("stream", "FILE*", "FILE pointer to close")),
        return_value="0 on success, EOF on error",
        example="fclose(file);",
        notes="Always close files when done. Not closing can cause data loss or resource leaks.",
        related_functions=("fopen", "fread", "fwrite"),
    ),
    ReferenceEntry(
        name="abs",
        header="stdlib.h",
        prototype="int abs(int j);",
        description="Returns the absolute value of an integer",
        parameters=_params(("j", "int", "Integer value")),
        return_value="Absolute value",
        example="int x = abs(-5);  // returns 5",
        notes="For floating point, use fabs() from math.h",
        related_functions=("fabs", "labs", "sqrt"),
    ),
    ReferenceEntry(
        name="sqrt",
        header="math.h",
        prototype="double sqrt(double x);",
        description="Calculates the square root",
        parameters=_params(("x", "double", "Non-negative number")),
        return_value="Square root as double",
        example="double root = sqrt(16.0);  // returns 4.0",
        notes="Returns NaN for negative values",
        related_functions=("pow", "fabs", "cbrt"),
    ),
    ReferenceEntry(
        name="pow",
        header="math.h",
        prototype="double pow(double x, double y);",
        description="Calculates x raised to the power of y",
        parameters=_params(
            ("x", "double", "Base value"),
            ("y", "double", "Exponent"),
        ),
        return_value="Result of x^y",
        example="double result = pow(2.0, 3.0);  // returns 8.0",
        notes="Returns 1.0 for 0^0",
        related_functions=("sqrt", "exp", "log"),
    ),
    ReferenceEntry(
        name="ceil",
        header="math.h",
        prototype="double ceil(double x);",
        description="Rounds up to the nearest integer",
        parameters=_params(("x", "double", "Floating point number")),
        return_value="Smallest integer >= x as double",
        example="double y = ceil(3.2);  // returns 4.0",
        notes="Rounds toward positive infinity",
        related_functions=("floor", "round", "trunc"),
    ),
    ReferenceEntry(
        name="floor",
        header="math.h",
        prototype="double floor(double x);",
        description="Rounds down to the nearest integer",
        parameters=_params(("x", "double", "Floating point number")),
        return_value="Largest integer <= x as double",
        example="double y = floor(3.8);  // returns 3.0",
        notes="Rounds toward negative infinity",
        related_functions=("ceil", "round", "trunc"),
    ),
    ReferenceEntry(
        name="round",
        header="math.h",
        prototype="double round(double x);",
        description="Rounds to the nearest integer",
        parameters=_params(("x", "double", "Floating point number")),
        return_value="Rounded value as double",
        example="double y = round(3.5);  // returns 4.0",
        notes="Halfway cases round away from zero",
        related_functions=("ceil", "floor", "trunc"),
    ),
    ReferenceEntry(
        name="isdigit",
        header="ctype.h",
        prototype="int isdigit(int c);",
        description="Checks if a character is a digit (0-9)",
        parameters=_params(("c", "int", "Character to check")),
        return_value="Non-zero if digit, 0 otherwise",
        example="if (isdigit('5')) { /* is digit */ }",
        notes="Pass unsigned char or EOF for safety",
        related_functions=("isalpha", "isalnum", "isspace"),
    ),
    ReferenceEntry(
        name="isalpha",
        header="ctype.h",
        prototype="int isalpha(int c);",
        description="Checks if a character is alphabetic (a-z, A-Z)",
        parameters=_params(("c", "int", "Character to check")),
        return_value="Non-zero if alphabetic, 0 otherwise",
        example="if (isalpha('a')) { /* is letter */ }",
        notes="Locale-dependent",
        related_functions=("isdigit", "isalnum", "isupper"),
    ),
    ReferenceEntry(
        name="isalnum",
        header="ctype.h",
        prototype="int isalnum(int c);",
        description="Checks if a character is alphanumeric",
        parameters=_params(("c", "int", "Character to check")),
        return_value="Non-zero if alphanumeric, 0 otherwise",
        example="if (isalnum('a') || isalnum('5')) { /* alphanumeric */ }",
        notes="True for letters and digits",
        related_functions=("isalpha", "isdigit", "isspace"),
    ),
    ReferenceEntry(
        name="isspace",
        header="ctype.h",
        prototype="int isspace(int c);",
        description="Checks if a character is whitespace",
        parameters=_params(("c", "int", "Character to check")),
        return_value="Non-zero if whitespace, 0 otherwise",
        example="if (isspace(' ')) { /* is space */ }",
        notes="Includes space, tab, newline, carriage return",
        related_functions=("isdigit", "isalpha", "toupper"),
    ),
    ReferenceEntry(
        name="toupper",
        header="ctype.h",
        prototype="int toupper(int c);",
        description="Converts a character to uppercase",
        parameters=_params(("c", "int", "Character to convert")),
        return_value="Uppercase equivalent, or c unchanged",
        example="char up = (char)toupper('a');  // returns 'A'",
        notes="Non-alphabetic characters unchanged",
        related_functions=("tolower", "isalpha", "isupper"),
    ),
    ReferenceEntry(
        name="tolower",
        header="ctype.h",
        prototype="int tolower(int c);",
        description="Converts a character to lowercase",
        parameters=_params(("c", "int", "Character to convert")),
        return_value="Lowercase equivalent, or c unchanged",
        example="char low = (char)tolower('A');  // returns 'a'",
        notes="Non-alphabetic characters unchanged",
        related_functions=("toupper", "isalpha", "islower"),
    ),
    ReferenceEntry(
        name="memcpy",
        header="string.h",
        prototype="void* memcpy(void *dest, const void *src, size_t n);",
        description="Copies n bytes from source to destination",
        parameters=_params(
            ("dest", "void*", "Destination pointer"),
            ("src", "const void*", "Source pointer"),
            ("n", "size_t", "Number of bytes to copy"),
        ),
        return_value="Pointer to dest",
        example="memcpy(dst, src, 100);",
        notes="Does not check for overlap. Use memmove() if overlap possible.",
        related_functions=("memmove", "memset", "strcpy"),
    ),
    ReferenceEntry(
        name="memset",
        header="string.h",
        prototype="void* memset(void *s, int c, size_t n);",
        description="Sets n bytes of memory to a value",
        parameters=_params(
            ("s", "void*", "Pointer to memory"),
            ("c", "int", "Value to set (typically 0)"),
            ("n", "size_t", "Number of bytes to set"),
        ),
        return_value="Pointer to s",
        example="memset(buffer, 0, 100);",
        notes="Commonly used to initialize memory to 0",
        related_functions=("memcpy", "memmove", "calloc"),
    ),
    ReferenceEntry(
        name="time",
        header="time.h",
        prototype="time_t time(time_t *tloc);",
        description="Gets the current calendar time",
        parameters=_params(("tloc", "time_t*", "Pointer to store time, or NULL")),
        return_value="Seconds since epoch (Jan 1, 1970)",
        example="time_t t = time(NULL);",
        notes="Returns -1 on error",
        related_functions=("clock", "difftime", "ctime"),
    ),
    ReferenceEntry(
        name="rand",
        header="stdlib.h",
        prototype="int rand(void);",
        description="Generates a pseudo-random number",
        parameters=(),
        return_value="Random integer between 0 and RAND_MAX",
        example="int r = rand() % 100;",
        notes="Call srand() first to seed. Results are predictable without seeding.",
        related_functions=("srand", "random", "time"),
    ),
    ReferenceEntry(
        name="srand",
        header="stdlib.h",
        prototype="void srand(unsigned int seed);",
        description="Seeds the random number generator",
        parameters=_params(("seed", "unsigned int", "Seed value")),
        return_value="void",
        example="srand(time(NULL));",
        notes="Call once before using rand()",
        related_functions=("rand", "time", "random"),
    ),
    ReferenceEntry(
        name="exit",
        header="stdlib.h",
        prototype="void exit(int status);",
        description="Terminates the program",
        parameters=_params(("status", "int", "Exit status code (0 for success)")),
        return_value="Does not return",
        example="exit(0);",
        notes="Flushes and closes all streams before terminating",
        related_functions=("abort", "return", "main"),
    ),
    ReferenceEntry(
        name="getchar",
        header="stdio.h",
        prototype="int getchar(void);",
        description="Reads a single character from stdin",
        parameters=(),
        return_value="Character as int, or EOF on error",
        example="int c = getchar();",
        notes="Returns EOF at end of input",
        related_functions=("putchar", "scanf", "fgetc"),
    ),
    ReferenceEntry(
        name="putchar",
        header="stdio.h",
        prototype="int putchar(int c);",
        description="Writes a single character to stdout",
        parameters=_params(("c", "int", "Character to output")),
        return_value="Character written, or EOF on error",
        example="putchar('A');",
        notes='Equivalent to printf("%c", c)',
        related_functions=("getchar", "printf", "fputc"),
    ),
    ReferenceEntry(
        name="perror",
        header="stdio.h",
        prototype="void perror(const char *s);",
        description="Prints error message based on errno",
        parameters=_params(("s", "const char*", "Prefix message to print")),
        return_value="void",
        example='if (file == NULL) perror("fopen");',
        notes="Appends system error message to custom prefix",
        related_functions=("strerror", "printf", "fprintf"),
    ),
)

# Functions that only need a header mapping (no reference card yet).
_HEADER_ONLY_FUNCTIONS: Dict[str, Tuple[str, ...]] = {
    "stdio.h": ("fscanf", "sscanf", "puts", "fgetc", "fputc", "fseek", "ftell"),
    "stdlib.h": ("system", "getenv"),
    "string.h": ("memmove", "memcmp", "strdup"),
    "math.h": ("sin", "cos", "tan", "fabs", "exp", "log", "fmod"),
    "time.h": ("clock", "difftime", "strftime"),
    "ctype.h": ("ispunct", "isupper", "islower"),
}

DEFAULT_CATALOG = FunctionCatalog(_REFERENCE_ENTRIES, _HEADER_ONLY_FUNCTIONS)

FUNCTION_TO_HEADER: Dict[str, str] = DEFAULT_CATALOG.header_map()

UNSAFE_FUNCTIONS: Dict[str, str] = {
    "gets": "fgets",
    "strcpy": "strncpy",
    "strcat": "strncat",
    "sprintf": "snprintf",
}


# ============================================================
# ================== SEMICOLON HEURISTIC =====================
# ============================================================

STATEMENT_TERMINATOR = ";"

# A lone "}" is covered by the trailing-"}" case.
_OPENER_OR_LABEL_END_RE = re.compile(r"[{}:\[]$")
_PREPROCESSOR_RE = re.compile(r"^#")
_COMMENT_LINE_RE = re.compile(r"^//|^/\*|\*/$|^\*")
_CONTROL_HEADER_RE = re.compile(r"^\s*(if|else if|else|while|for|do|switch)\s*\(.*\)\s*$")
_FUNCTION_HEADER_RE = re.compile(
    r"^\s*(int|void|char|float|double|long|short|unsigned|signed|static|const|auto|register)"
    r"\s+[\w\s\*]+\([^)]*\)\s*$"
)
_TYPE_DECL_OPENER_RE = re.compile(r"^\s*(struct|union|enum|typedef)\b")
_CASE_LABEL_RE = re.compile(r"^\s*(case\s+.+|default)\s*:\s*$")


def should_terminate(line_text: str) -> bool:
    """
    Decide whether a statement terminator is missing at the end of a line.

    First matching rule wins; anything not explicitly excluded is treated as
    a statement. Multi-line expressions and unterminated literals are not
    special-cased.
    """
    trimmed = line_text.strip()

    if not trimmed or trimmed.endswith(STATEMENT_TERMINATOR):
        return False
    if _OPENER_OR_LABEL_END_RE.search(trimmed):
        return False
    if _PREPROCESSOR_RE.search(trimmed):
        return False
    if _COMMENT_LINE_RE.search(trimmed):
        return False
    if _CONTROL_HEADER_RE.search(trimmed):
        return False
    if _FUNCTION_HEADER_RE.search(trimmed):
        return False
    if _TYPE_DECL_OPENER_RE.search(trimmed):
        return False
    if _CASE_LABEL_RE.search(trimmed):
        return False
    return True


def terminate_line_edit(buffer: BufferLike, line_number: int) -> Optional[EditOperation]:
    """The edit appending a terminator to `line_number`, or None if none is needed."""
    lines = as_lines(buffer)
    if line_number < 0 or line_number >= len(lines):
        return None
    line = lines[line_number].rstrip("\r")
    if not should_terminate(line.rstrip()):
        return None
    return EditOperation(Position(line_number, len(line)), STATEMENT_TERMINATOR)


# ============================================================
# ================ HEADER INFERENCE ENGINE ===================
# ============================================================

_INCLUDE_RE = re.compile(r'#include\s*[<"](.+?)[>"]')
_CALL_RE = re.compile(r"\b([a-zA-Z_]\w*)\s*\(")


def extract_included_headers(buffer: BufferLike) -> Set[str]:
    headers: Set[str] = set()
    for line in as_lines(buffer):
        match = _INCLUDE_RE.search(line)
        if match:
            headers.add(match.group(1))
    return headers


def last_include_line(lines: Sequence[str]) -> int:
    """Index of the last line starting with '#include', or -1."""
    last = -1
    for index, line in enumerate(lines):
        if line.strip().startswith("#include"):
            last = index
    return last


def compute_missing_headers(
    buffer: BufferLike,
    catalog: FunctionCatalog = DEFAULT_CATALOG,
) -> HeaderPlan:
    """
    Collect the headers required by cataloged calls that are not included yet.

    Calls after a '//' on the same line are ignored; block comments and
    string literals are not. The insertion line is just past the last
    #include (line 0 when there is none).
    """
    lines = as_lines(buffer)
    included = extract_included_headers(lines)

    required: Set[str] = set()
    for line in lines:
        for match in _CALL_RE.finditer(strip_line_comment(line)):
            header = catalog.header_for(match.group(1))
            if header and header not in included:
                required.add(header)

    return HeaderPlan(headers=required, insertion_line=last_include_line(lines) + 1)


# ============================================================
# =============== PROTOTYPE SYNTHESIS ENGINE =================
# ============================================================

ANCHOR_FUNCTION = "main"

_ANCHOR_RE = re.compile(r"^\s*(int|void)\s+main\s*\(")
_DEFINITION_RE = re.compile(
    r"^\s*(int|void|char|float|double|long|short|unsigned|signed)\s+([a-zA-Z_]\w*)\s*\(([^)]*)\)\s*\{"
)


def find_anchor_line(lines: Sequence[str], start: int = 0) -> int:
    for index in range(max(start, 0), len(lines)):
        if _ANCHOR_RE.search(lines[index]):
            return index
    return -1


def _has_forward_declaration(name: str, prototype_area: str) -> bool:
    pattern = re.compile(rf"\b{re.escape(name)}\s*\([^)]*\)\s*;")
    return pattern.search(prototype_area) is not None


def compute_missing_prototypes(buffer: BufferLike) -> PrototypePlan:
    """
    Find functions defined after main() that have no forward declaration
    between the last #include and main().

    Only one-line definition headers with the opening brace on the same line
    are recognized. Functions defined before main() are never considered.
    """
    lines = as_lines(buffer)

    include_line = last_include_line(lines)
    if include_line == -1:
        return PrototypePlan()

    anchor_line = find_anchor_line(lines, include_line + 1)
    if anchor_line == -1:
        return PrototypePlan()

    found: List[PrototypeCandidate] = []
    for line in lines[anchor_line + 1:]:
        match = _DEFINITION_RE.search(line)
        if not match:
            continue
        return_type, name, params = match.group(1), match.group(2), match.group(3).strip()
        if name == ANCHOR_FUNCTION:
            continue
        found.append(PrototypeCandidate(name=name, signature=f"{return_type} {name}({params});"))

    prototype_area = "\n".join(lines[include_line + 1:anchor_line])
    missing = [c for c in found if not _has_forward_declaration(c.name, prototype_area)]
    return PrototypePlan(candidates=missing, insertion_line=include_line + 1)


# ============================================================
# =================== DIAGNOSTIC SCANNER =====================
# ============================================================

CHECK_UNSAFE_FUNCTION = "unsafe-function"
CHECK_ASSIGNMENT_IN_CONDITIONAL = "assignment-in-conditional"
CHECK_ALLOCATION_REMINDER = "allocation-reminder"
CHECK_FOPEN_NULL_CHECK = "fopen-null-check"

ALL_CHECKS: Tuple[str, ...] = (
    CHECK_UNSAFE_FUNCTION,
    CHECK_ASSIGNMENT_IN_CONDITIONAL,
    CHECK_ALLOCATION_REMINDER,
    CHECK_FOPEN_NULL_CHECK,
)

UNSAFE_FUNCTION_MESSAGE = "Unsafe function '{unsafe}'. Consider using '{safe}' instead."
ASSIGNMENT_IN_CONDITIONAL_MESSAGE = "Possible assignment instead of comparison in conditional statement."
ALLOCATION_REMINDER_MESSAGE = "Remember to free allocated memory to prevent memory leaks."
FOPEN_NULL_CHECK_MESSAGE = "Consider checking if fopen() returned NULL before using the file pointer."

FOPEN_LOOKAHEAD = 4

_ASSIGNMENT_IN_IF_RE = re.compile(r"if\s*\([^)]*[^=!<>]=(?!=)[^)]*\)")
_ALLOCATION_CALL_RE = re.compile(r"\b(malloc|calloc|realloc)\s*\(")
_NULL_COMPARISON_RE = re.compile(r"[!=]=\s*NULL\b|\bNULL\s*[!=]=")
_IF_OPEN_RE = re.compile(r"\bif\s*\(")


def _line_span(line_number: int, start: int, end: int) -> SourceRange:
    return SourceRange(line_number, start, line_number, end)


def check_unsafe_functions(
    line: str,
    line_number: int,
    unsafe_functions: Optional[Dict[str, str]] = None,
) -> List[Diagnostic]:
    trimmed = line.strip()
    if trimmed.startswith(("//", "/*", "*")):
        return []

    diagnostics: List[Diagnostic] = []
    comment_index = line.find("//")
    for unsafe, safe in (unsafe_functions if unsafe_functions is not None else UNSAFE_FUNCTIONS).items():
        # Plain substring: "fgets(" also reports "gets".
        func_index = line.find(unsafe + "(")
        if func_index == -1:
            continue
        if comment_index != -1 and func_index > comment_index:
            continue
        diagnostics.append(
            Diagnostic(
                range=_line_span(line_number, func_index, func_index + len(unsafe)),
                message=UNSAFE_FUNCTION_MESSAGE.format(unsafe=unsafe, safe=safe),
                severity="warning",
                check=CHECK_UNSAFE_FUNCTION,
            )
        )
    return diagnostics


def check_assignment_in_conditional(line: str, line_number: int) -> List[Diagnostic]:
    check_line = strip_line_comment(line)
    match = _ASSIGNMENT_IN_IF_RE.search(check_line)
    if match is None:
        return []
    return [
        Diagnostic(
            range=_line_span(line_number, match.start(), len(check_line)),
            message=ASSIGNMENT_IN_CONDITIONAL_MESSAGE,
            severity="warning",
            check=CHECK_ASSIGNMENT_IN_CONDITIONAL,
        )
    ]


def check_memory_allocation(line: str, line_number: int) -> List[Diagnostic]:
    """Fires on every allocation call; there is no cross-line leak tracking."""
    check_line = strip_line_comment(line)
    match = _ALLOCATION_CALL_RE.search(check_line)
    if match is None:
        return []
    return [
        Diagnostic(
            range=_line_span(line_number, match.start(), len(check_line)),
            message=ALLOCATION_REMINDER_MESSAGE,
            severity="information",
            check=CHECK_ALLOCATION_REMINDER,
        )
    ]


def check_fopen_without_null_check(
    lines: Sequence[str],
    line_number: int,
    lookahead: int = FOPEN_LOOKAHEAD,
) -> List[Diagnostic]:
    check_line = strip_line_comment(lines[line_number])
    if "fopen(" not in check_line:
        return []

    following = "\n".join(lines[line_number + 1:min(line_number + 1 + lookahead, len(lines))])
    if _NULL_COMPARISON_RE.search(following):
        return []
    if _IF_OPEN_RE.search(following) or "perror" in following:
        return []

    start = check_line.index("fopen")
    return [
        Diagnostic(
            range=_line_span(line_number, start, len(check_line)),
            message=FOPEN_NULL_CHECK_MESSAGE,
            severity="information",
            check=CHECK_FOPEN_NULL_CHECK,
        )
    ]


def scan(
    buffer: BufferLike,
    *,
    unsafe_functions: Optional[Dict[str, str]] = None,
    fopen_lookahead: int = FOPEN_LOOKAHEAD,
    disabled_checks: Iterable[str] = (),
) -> List[Diagnostic]:
    """
    Run every enabled check over every line and return the full diagnostic
    set for the buffer. The result replaces any earlier set for the document.
    """
    lines = as_lines(buffer)
    disabled = set(disabled_checks)
    diagnostics: List[Diagnostic] = []

    for line_number, line in enumerate(lines):
        if CHECK_UNSAFE_FUNCTION not in disabled:
            diagnostics.extend(check_unsafe_functions(line, line_number, unsafe_functions))
        if CHECK_ASSIGNMENT_IN_CONDITIONAL not in disabled:
            diagnostics.extend(check_assignment_in_conditional(line, line_number))
        if CHECK_ALLOCATION_REMINDER not in disabled:
            diagnostics.extend(check_memory_allocation(line, line_number))
        if CHECK_FOPEN_NULL_CHECK not in disabled:
            diagnostics.extend(check_fopen_without_null_check(lines, line_number, fopen_lookahead))

    return diagnostics


# ============================================================
# =================== REFERENCE LOOKUP =======================
# ============================================================

SEARCH_PROMPT = "Search by function name or header file (e.g., stdio.h, ctype.h)"


def search(
    query: str,
    include_description: bool = False,
    catalog: FunctionCatalog = DEFAULT_CATALOG,
) -> List[ReferenceEntry]:
    """
    Case-insensitive lookup over the reference catalog.

    An exact name match returns that entry alone; otherwise every entry whose
    name or header contains the query (the header also tried with '.h'
    appended) is returned in catalog order. The panel variant
    (include_description=True) also matches description text. A blank query
    returns nothing; callers show SEARCH_PROMPT instead.
    """
    term = (query or "").strip().lower()
    if not term:
        return []

    references = catalog.references()
    exact = [entry for entry in references if entry.name.lower() == term]
    if exact:
        return exact

    header_term = term if term.endswith(".h") else term + ".h"
    results: List[ReferenceEntry] = []
    for entry in references:
        header = entry.header.lower()
        if term in entry.name.lower() or header_term in header or term in header:
            results.append(entry)
        elif include_description and term in entry.description.lower():
            results.append(entry)
    return results


def search_by_name(query: str, catalog: FunctionCatalog = DEFAULT_CATALOG) -> List[ReferenceEntry]:
    term = (query or "").strip().lower()
    if not term:
        return []
    return [entry for entry in catalog.references() if term in entry.name.lower()]


def handle_reference_message(
    message: Any,
    include_description: bool = False,
    catalog: FunctionCatalog = DEFAULT_CATALOG,
) -> Optional[Dict[str, Any]]:
    """
    Answer a `{"command": "search", "query": ...}` panel message.
    Returns None for anything that is not a well-formed search request.
    """
    if not isinstance(message, dict):
        return None
    query = message.get("query")
    if message.get("command") != "search" or not isinstance(query, str):
        return None

    if not query.strip():
        return {"command": "searchResults", "results": [], "prompt": SEARCH_PROMPT}

    results = search(query, include_description=include_description, catalog=catalog)
    return {"command": "searchResults", "results": [entry.to_json_obj() for entry in results]}


# ============================================================
# ================ CODE GENERATION COMMANDS ==================
# ============================================================

NEW_FILE_CURSOR = Position(5, 1)

_DOC_TARGET_RE = re.compile(r"(\w+)\s+(\w+)\s*\(([^)]*)\)")


def new_file_template() -> str:
    return (
        "#include <stdio.h>\n"
        "#include <stdlib.h>\n"
        "\n"
        "\n"
        "int main() {\n"
        "\t\n"
        "\treturn 0;\n"
        "}"
    )


def main_template_edit(position: Position) -> EditOperation:
    text = (
        "#include <stdio.h>\n"
        "#include <stdlib.h>\n"
        "\n"
        "\n"
        "int main() {\n"
        "\t// Your code here\n"
        "\treturn 0;\n"
        "}"
    )
    return EditOperation(position, text)


def generate_doc_comment(line_text: str) -> Optional[str]:
    """
    Build a Doxygen block for the function declared on `line_text`, or None
    if the line does not look like `type name(params)`.
    """
    match = _DOC_TARGET_RE.search(line_text)
    if not match:
        return None
    return_type, name, params = match.groups()

    out = ["/**", f" * @brief Brief description of {name}", " *"]
    for param in (p.strip() for p in params.split(",")):
        if not param:
            continue
        param_name = param.split()[-1]
        out.append(f" * @param {param_name} Description of {param_name}")
    if return_type != "void":
        out.append(" * @return Description of return value")
    out.append(" */")
    return "\n".join(out) + "\n"


def build_compile_command(path: str, run: bool = False, windows: Optional[bool] = None) -> str:
    """
    Shell command that compiles `path` with clang, falling back to gcc, into
    `<stem>.exe` beside the source. With `run`, the binary is started on success.
    """
    if windows is None:
        windows = os.name == "nt"
    base = os.path.basename(path)
    stem = base[:-2] if base.endswith(".c") else base
    output = os.path.join(os.path.dirname(path), f"{stem}.exe")
    null_device = "nul" if windows else "/dev/null"

    compile_cmd = f'clang "{path}" -o "{output}" 2>{null_device} || gcc "{path}" -o "{output}"'
    if not run:
        return compile_cmd
    if windows:
        return f'{compile_cmd} && "{output}"'
    return f'({compile_cmd}) && "{output}"'


# ============================================================
# ===================== CONFIGURATION ========================
# ============================================================

FEATURES: Tuple[str, ...] = ("semicolons", "headers", "prototypes", "diagnostics")

DEFAULT_DELAYS: Dict[str, float] = {
    "semicolon": 0.01,
    "header_on_open": 0.1,
    "template_on_create": 0.2,
    "template_on_open": 0.1,
    "prototype_debounce": 1.5,
    "guard_release_semicolon": 0.05,
    "guard_release_prototypes": 0.2,
    "guard_release_template": 0.3,
}

_CONFIG_KEYS = {
    "language_id",
    "features",
    "disabled_checks",
    "fopen_lookahead",
    "delays",
    "unsafe_functions",
}


@dataclass
class LazyCConfig:
    language_id: str = "c"
    features: Dict[str, bool] = field(default_factory=lambda: {name: True for name in FEATURES})
    disabled_checks: Set[str] = field(default_factory=set)
    fopen_lookahead: int = FOPEN_LOOKAHEAD
    delays: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_DELAYS))
    unsafe_functions: Dict[str, str] = field(default_factory=lambda: dict(UNSAFE_FUNCTIONS))

    def enabled(self, feature: str) -> bool:
        return self.features.get(feature, True)

    def delay(self, name: str) -> float:
        return self.delays.get(name, DEFAULT_DELAYS[name])

    def scan(self, buffer: BufferLike) -> List[Diagnostic]:
        return scan(
            buffer,
            unsafe_functions=self.unsafe_functions,
            fopen_lookahead=self.fopen_lookahead,
            disabled_checks=self.disabled_checks,
        )


def _config_from_mapping(doc: Any, origin: str) -> LazyCConfig:
    config = LazyCConfig()
    if doc is None:
        return config
    if not isinstance(doc, dict):
        raise ConfigError(f"{origin}: expected a mapping at the top level")

    unknown = sorted(str(key) for key in doc if key not in _CONFIG_KEYS)
    if unknown:
        sys.stderr.write(f"[lazyc] Ignoring unknown config key(s) in {origin}: {unknown}\n")

    if "language_id" in doc:
        if not isinstance(doc["language_id"], str) or not doc["language_id"]:
            raise ConfigError(f"{origin}: 'language_id' must be a non-empty string")
        config.language_id = doc["language_id"]

    features = doc.get("features") or {}
    if not isinstance(features, dict):
        raise ConfigError(f"{origin}: 'features' must be a mapping")
    for name, value in features.items():
        if name not in FEATURES:
            sys.stderr.write(f"[lazyc] Ignoring unknown feature '{name}' in {origin}.\n")
            continue
        if not isinstance(value, bool):
            raise ConfigError(f"{origin}: feature '{name}' must be true or false")
        config.features[name] = value

    disabled = doc.get("disabled_checks") or []
    if not isinstance(disabled, list):
        raise ConfigError(f"{origin}: 'disabled_checks' must be a list")
    for check in disabled:
        if check not in ALL_CHECKS:
            sys.stderr.write(f"[lazyc] Ignoring unknown check '{check}' in {origin}.\n")
            continue
        config.disabled_checks.add(check)

    if "fopen_lookahead" in doc:
        lookahead = doc["fopen_lookahead"]
        if isinstance(lookahead, bool) or not isinstance(lookahead, int) or lookahead < 0:
            raise ConfigError(f"{origin}: 'fopen_lookahead' must be a non-negative integer")
        config.fopen_lookahead = lookahead

    delays = doc.get("delays") or {}
    if not isinstance(delays, dict):
        raise ConfigError(f"{origin}: 'delays' must be a mapping")
    for name, value in delays.items():
        if name not in DEFAULT_DELAYS:
            sys.stderr.write(f"[lazyc] Ignoring unknown delay '{name}' in {origin}.\n")
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ConfigError(f"{origin}: delay '{name}' must be a non-negative number of seconds")
        config.delays[name] = float(value)

    unsafe = doc.get("unsafe_functions") or {}
    if not isinstance(unsafe, dict):
        raise ConfigError(f"{origin}: 'unsafe_functions' must be a mapping")
    for unsafe_name, safe_name in unsafe.items():
        if not isinstance(unsafe_name, str) or not isinstance(safe_name, str):
            raise ConfigError(f"{origin}: 'unsafe_functions' entries must map names to names")
        config.unsafe_functions[unsafe_name] = safe_name

    return config


def load_config_from_yaml(path: str) -> LazyCConfig:
    """
    Load a LazyCConfig from a YAML file.

    A missing or unreadable file is reported and yields the defaults so the
    editor keeps working; a malformed document raises ConfigError.
    """
    try:
        with open(path, "r", encoding="utf-8") as handle:
            doc = yaml.safe_load(handle)
    except FileNotFoundError:
        sys.stderr.write(f"[lazyc] Config file not found: {path}\n")
        return LazyCConfig()
    except OSError as exc:
        sys.stderr.write(f"[lazyc] Could not read config file {path}: {exc}\n")
        return LazyCConfig()
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML ({exc})") from exc

    return _config_from_mapping(doc, path)


def resolve_config(path: Optional[str] = None) -> LazyCConfig:
    """Explicit path first, then LAZYC_CONFIG, then the defaults."""
    path = path or os.environ.get("LAZYC_CONFIG")
    if not path:
        return LazyCConfig()
    return load_config_from_yaml(path)


# ============================================================
# ===================== EDITOR SESSION =======================
# ============================================================

@dataclass(frozen=True)
class TextChange:
    start_line: int
    text: str  # inserted text


class EditorHost(ABC):
    """
    The editor the controller runs inside. Failing operations raise; the
    controller catches at each call site.
    """

    @abstractmethod
    def get_lines(self, uri: str) -> List[str]:
        ...

    @abstractmethod
    def language_id(self, uri: str) -> str:
        ...

    @abstractmethod
    def is_active(self, uri: str) -> bool:
        """True when `uri` is the document of the focused editor."""

    @abstractmethod
    def apply_edits(self, uri: str, edits: Sequence[EditOperation], *, undo_stop: bool = True) -> bool:
        """Apply all edits as one atomic change; `undo_stop=False` merges it into the previous undo step."""

    @abstractmethod
    def publish_diagnostics(self, uri: str, diagnostics: Sequence[Diagnostic]) -> None:
        ...

    @abstractmethod
    def clear_diagnostics(self, uri: Optional[str] = None) -> None:
        ...

    @abstractmethod
    def show_message(self, level: str, text: str) -> None:
        ...

    def cursor_position(self, uri: str) -> Optional[Position]:
        return None

    def set_cursor(self, uri: str, position: Position) -> None:
        return None

    def file_path(self, uri: str) -> str:
        return uri[len("file://"):] if uri.startswith("file://") else uri

    def is_dirty(self, uri: str) -> bool:
        return True

    def save(self, uri: str) -> None:
        return None

    def run_in_terminal(self, command: str) -> None:
        raise NotImplementedError("this host has no terminal")

    def reveal_reference_panel(self) -> None:
        return None

    def post_panel_message(self, message: Dict[str, Any]) -> None:
        return None


@dataclass
class DocumentSession:
    """
    Per-document state. `processing` is the re-entrancy guard: while it is
    set, change and selection events for the document are dropped.
    """
    uri: str
    processing: bool = False
    prototype_timer: Optional[Any] = None
    last_cursor_line: int = -1

    def cancel_prototype_timer(self) -> None:
        if self.prototype_timer is not None:
            self.prototype_timer.cancel()
            self.prototype_timer = None


_TYPED_CALL_RE = re.compile(r"\w+\s*\(")


class LazyCController:
    """
    Routes editor events to the text engines.

    `scheduler` needs `call_later(delay_seconds, callback)` returning a handle
    with `cancel()`; an asyncio event loop qualifies.
    """

    def __init__(
        self,
        host: EditorHost,
        scheduler: Any,
        config: Optional[LazyCConfig] = None,
        catalog: FunctionCatalog = DEFAULT_CATALOG,
    ) -> None:
        self.host = host
        self.scheduler = scheduler
        self.config = config or LazyCConfig()
        self.catalog = catalog
        self.sessions: Dict[str, DocumentSession] = {}
        self._failures_reported: Set[Tuple[str, str, str]] = set()

    # -------------------- state helpers --------------------

    def session(self, uri: str) -> DocumentSession:
        session = self.sessions.get(uri)
        if session is None:
            session = DocumentSession(uri=uri)
            self.sessions[uri] = session
        return session

    def _report_host_failure(self, operation: str, uri: str, exc: BaseException) -> None:
        key = (operation, uri, f"{type(exc).__name__}: {exc}")
        if key in self._failures_reported:
            return
        sys.stderr.write(f"[lazyc] {operation} failed for {uri}: {exc}\n")
        self._failures_reported.add(key)

    def _is_target(self, uri: str) -> bool:
        try:
            return self.host.language_id(uri) == self.config.language_id
        except Exception as exc:
            self._report_host_failure("language lookup", uri, exc)
            return False

    def _is_active(self, uri: str) -> bool:
        try:
            return self.host.is_active(uri)
        except Exception as exc:
            self._report_host_failure("active editor lookup", uri, exc)
            return False

    def _read_lines(self, uri: str) -> Optional[List[str]]:
        try:
            return list(self.host.get_lines(uri))
        except Exception as exc:
            self._report_host_failure("read", uri, exc)
            return None

    def _release_later(self, session: DocumentSession, delay_name: str) -> None:
        # Let the host's own change notification for our edit pass first.
        def release() -> None:
            session.processing = False

        self.scheduler.call_later(self.config.delay(delay_name), release)

    def _schedule(self, delay_name: str, callback: Callable[[], Any]) -> Any:
        return self.scheduler.call_later(self.config.delay(delay_name), callback)

    # -------------------- event handlers --------------------

    def on_document_created(self, uri: str) -> None:
        if not self.host.file_path(uri).endswith(".c"):
            return
        self._schedule("template_on_create", lambda: self.setup_new_file(uri))

    def on_document_opened(self, uri: str) -> None:
        if not self._is_target(uri):
            return
        lines = self._read_lines(uri)
        if lines is None:
            return
        if not "\n".join(lines).strip():
            self._schedule("template_on_open", lambda: self.setup_new_file(uri))
        elif self.config.enabled("headers"):
            self._schedule("header_on_open", lambda: self.add_required_headers(uri))

    def on_document_changed(self, uri: str, changes: Sequence[TextChange]) -> None:
        if not self._is_target(uri):
            return
        session = self.session(uri)
        if session.processing:
            return

        for change in changes:
            if "\n" in change.text and self.config.enabled("semicolons"):
                line = change.start_line
                self._schedule("semicolon", lambda line=line: self.add_semicolon_if_needed(uri, line))
            if _TYPED_CALL_RE.search(change.text) and self.config.enabled("headers"):
                self.add_required_headers(uri)

        if self.config.enabled("prototypes"):
            session.cancel_prototype_timer()
            session.prototype_timer = self._schedule(
                "prototype_debounce", lambda: self._run_scheduled_prototypes(uri)
            )

    def on_selection_changed(self, uri: str, line: int) -> None:
        if not self._is_target(uri):
            return
        session = self.session(uri)
        if session.processing:
            return
        previous = session.last_cursor_line
        if previous >= 0 and line != previous and self.config.enabled("semicolons"):
            self.add_semicolon_if_needed(uri, previous)
        session.last_cursor_line = line

    def on_document_saved(self, uri: str) -> None:
        if not self._is_target(uri):
            return
        if self.config.enabled("diagnostics"):
            self.run_diagnostics(uri)
        if self.config.enabled("prototypes"):
            self.generate_prototypes(uri)
        if self.config.enabled("headers"):
            self.add_required_headers(uri)

    def on_active_document_changed(self, uri: Optional[str]) -> None:
        if uri is None or not self._is_target(uri):
            return
        try:
            self.host.reveal_reference_panel()
        except Exception as exc:
            self._report_host_failure("reveal reference panel", uri, exc)

    def on_document_closed(self, uri: str) -> None:
        session = self.sessions.pop(uri, None)
        if session is not None:
            session.cancel_prototype_timer()
        try:
            self.host.clear_diagnostics(uri)
        except Exception as exc:
            self._report_host_failure("clear diagnostics", uri, exc)

    def on_panel_message(self, message: Any) -> None:
        response = handle_reference_message(message, include_description=True, catalog=self.catalog)
        if response is None:
            return
        try:
            self.host.post_panel_message(response)
        except Exception as exc:
            self._report_host_failure("post panel message", "<reference panel>", exc)

    def deactivate(self) -> None:
        for session in self.sessions.values():
            session.cancel_prototype_timer()
        self.sessions.clear()
        try:
            self.host.clear_diagnostics()
        except Exception as exc:
            self._report_host_failure("clear diagnostics", "<all>", exc)

    # -------------------- passes --------------------

    def add_semicolon_if_needed(self, uri: str, line_number: int) -> bool:
        session = self.session(uri)
        if session.processing or line_number < 0 or not self._is_active(uri):
            return False
        lines = self._read_lines(uri)
        if lines is None:
            return False
        edit = terminate_line_edit(lines, line_number)
        if edit is None:
            return False

        session.processing = True
        try:
            applied = self.host.apply_edits(uri, [edit], undo_stop=False)
        except Exception as exc:
            self._report_host_failure("semicolon insertion", uri, exc)
            session.processing = False
            return False
        self._release_later(session, "guard_release_semicolon")
        return bool(applied)

    def add_required_headers(self, uri: str) -> bool:
        if not self._is_active(uri):
            return False
        lines = self._read_lines(uri)
        if lines is None:
            return False
        edit = compute_missing_headers(lines, self.catalog).to_edit()
        if edit is None:
            return False

        # Released as soon as the edit lands, not after a delay: the only
        # follow-up the host can echo back is a semicolon check on an
        # #include line, which never terminates.
        session = self.session(uri)
        held_before = session.processing
        session.processing = True
        try:
            return bool(self.host.apply_edits(uri, [edit]))
        except Exception as exc:
            self._report_host_failure("header insertion", uri, exc)
            return False
        finally:
            session.processing = held_before

    def _run_scheduled_prototypes(self, uri: str) -> None:
        session = self.sessions.get(uri)
        if session is None:
            return
        session.prototype_timer = None
        self.generate_prototypes(uri)

    def generate_prototypes(self, uri: str) -> bool:
        session = self.session(uri)
        if session.processing or not self._is_active(uri):
            return False
        lines = self._read_lines(uri)
        if lines is None:
            return False
        edit = compute_missing_prototypes(lines).to_edit()
        if edit is None:
            return False

        session.processing = True
        try:
            applied = self.host.apply_edits(uri, [edit])
        except Exception as exc:
            self._report_host_failure("prototype insertion", uri, exc)
            session.processing = False
            return False
        self._release_later(session, "guard_release_prototypes")
        return bool(applied)

    def run_diagnostics(self, uri: str) -> List[Diagnostic]:
        lines = self._read_lines(uri)
        if lines is None:
            return []
        diagnostics = self.config.scan(lines)
        try:
            self.host.publish_diagnostics(uri, diagnostics)
        except Exception as exc:
            self._report_host_failure("publish diagnostics", uri, exc)
        return diagnostics

    def setup_new_file(self, uri: str) -> bool:
        lines = self._read_lines(uri)
        if lines is None or "\n".join(lines).strip():
            return False

        session = self.session(uri)
        session.processing = True
        try:
            self.host.apply_edits(uri, [EditOperation(Position(0, 0), new_file_template())])
            self.host.set_cursor(uri, NEW_FILE_CURSOR)
        except Exception as exc:
            self._report_host_failure("new file template", uri, exc)
            session.processing = False
            self._show("error", "Failed to setup C file template")
            return False
        self._release_later(session, "guard_release_template")
        return True

    # -------------------- commands --------------------

    def _show(self, level: str, text: str) -> None:
        try:
            self.host.show_message(level, text)
        except Exception as exc:
            self._report_host_failure("show message", "<window>", exc)

    def run_command(self, name: str, uri: Optional[str] = None) -> bool:
        handlers: Dict[str, Callable[[Optional[str]], bool]] = {
            "compile": lambda target: self.compile(target, run=False),
            "compileAndRun": lambda target: self.compile(target, run=True),
            "insertMain": self.insert_main,
            "generateDoc": self.generate_doc,
        }
        handler = handlers.get(name)
        if handler is None:
            self._show("error", f"Unknown command '{name}'")
            return False
        return handler(uri)

    def compile(self, uri: Optional[str], run: bool = False) -> bool:
        if uri is None or not self._is_target(uri):
            self._show("error", "No C file is currently open")
            return False
        try:
            if self.host.is_dirty(uri):
                self.host.save(uri)
            path = self.host.file_path(uri)
            self.host.run_in_terminal(build_compile_command(path, run=run))
        except Exception as exc:
            self._report_host_failure("compile", uri, exc)
            self._show("error", f"Compilation error: {exc}")
            return False
        if not run:
            stem = os.path.splitext(os.path.basename(path))[0]
            self._show("information", f"Compiling {stem}.c -> {stem}.exe")
        return True

    def insert_main(self, uri: Optional[str]) -> bool:
        if uri is None:
            self._show("warning", "No active editor")
            return False
        position = self.host.cursor_position(uri) or Position(0, 0)
        try:
            applied = self.host.apply_edits(uri, [main_template_edit(position)])
        except Exception as exc:
            self._report_host_failure("insert main", uri, exc)
            self._show("error", f"Failed to insert snippet: {exc}")
            return False
        if not applied:
            self._show("warning", "Failed to insert snippet")
        return bool(applied)

    def generate_doc(self, uri: Optional[str]) -> bool:
        if uri is None:
            self._show("warning", "No active editor")
            return False
        position = self.host.cursor_position(uri)
        lines = self._read_lines(uri)
        if position is None or lines is None or not 0 <= position.line < len(lines):
            self._show("error", "Place cursor on a function declaration to generate documentation")
            return False
        doc = generate_doc_comment(lines[position.line])
        if doc is None:
            self._show("error", "Place cursor on a function declaration to generate documentation")
            return False
        try:
            applied = self.host.apply_edits(uri, [EditOperation(Position(position.line, 0), doc)])
        except Exception as exc:
            self._report_host_failure("generate documentation", uri, exc)
            self._show("error", f"Failed to insert documentation: {exc}")
            return False
        if not applied:
            self._show("warning", "Could not insert documentation")
        return bool(applied)

    def search_reference(self, query: str) -> List[ReferenceEntry]:
        results = search_by_name(query, self.catalog)
        if not results:
            self._show("information", f'No functions found matching "{query}"')
            return results
        try:
            self.host.reveal_reference_panel()
            self.host.post_panel_message(
                {"command": "searchResults", "results": [entry.to_json_obj() for entry in results]}
            )
        except Exception as exc:
            self._report_host_failure("reference search", "<reference panel>", exc)
        return results


# ============================================================
# ================== DIAGNOSTIC OUTPUT =======================
# ============================================================

def diagnostic_to_json_obj(diagnostic: Diagnostic, file: str) -> Dict[str, Any]:
    """
    Convert a Diagnostic into a JSON-friendly dict with a stable field order.
    """
    rng = diagnostic.range
    return {
        "file": file,
        "check": diagnostic.check,
        "severity": diagnostic.severity,
        "message": diagnostic.message,
        "location": {
            "line_start": rng.line_start,
            "col_start": rng.col_start,
            "line_end": rng.line_end,
            "col_end": rng.col_end,
        },
        "tool": TOOL_NAME,
        "version": TOOL_VERSION,
    }


def emit_json(obj: Any, out: Optional[str] = None) -> None:
    text = json.dumps(obj, indent=2, sort_keys=False)
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)


def emit_diagnostics_json(
    diagnostics: Sequence[Tuple[str, Diagnostic]],
    out: Optional[str] = None,
) -> None:
    emit_json([diagnostic_to_json_obj(d, path) for path, d in diagnostics], out=out)


def fix_buffer(buffer: BufferLike, config: LazyCConfig, semicolons: bool = False) -> List[str]:
    """
    Apply the passes a save would run (prototypes, then headers) and,
    optionally, the semicolon heuristic to every line.
    """
    lines = as_lines(buffer)
    if semicolons and config.enabled("semicolons"):
        edits = [terminate_line_edit(lines, n) for n in range(len(lines))]
        lines = apply_edits(lines, [edit for edit in edits if edit is not None])
    if config.enabled("prototypes"):
        edit = compute_missing_prototypes(lines).to_edit()
        if edit is not None:
            lines = apply_edits(lines, [edit])
    if config.enabled("headers"):
        edit = compute_missing_headers(lines).to_edit()
        if edit is not None:
            lines = apply_edits(lines, [edit])
    return lines


def _read_source(path: str) -> Optional[str]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return handle.read()
    except FileNotFoundError:
        sys.stderr.write(f"[lazyc] Input file not found: {path}\n")
    except OSError as exc:
        sys.stderr.write(f"[lazyc] Could not read {path}: {exc}\n")
    return None


# ============================================================
# ============================ CLI ===========================
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point for LazyC.
    Intended usage:
      lazyc check src/file1.c src/file2.c
      lazyc fix --in-place src/file1.c
      lazyc search stdio
      lazyc serve < messages.jsonl
    """
    parser = argparse.ArgumentParser(
        prog="lazyc",
        description="LazyC: lightweight editing helpers for C"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    check_p = subparsers.add_parser(
        "check",
        help="Scan C files and emit JSON diagnostics."
    )
    check_p.add_argument("--config", metavar="CONFIG_YAML", help="YAML config file.")
    check_p.add_argument(
        "--out",
        metavar="OUT_JSON",
        help="Write diagnostics to this JSON file instead of stdout.",
    )
    check_p.add_argument("files", nargs="+", help="C source files to scan.")

    fix_p = subparsers.add_parser(
        "fix",
        help="Insert missing headers and prototypes."
    )
    fix_p.add_argument("--config", metavar="CONFIG_YAML", help="YAML config file.")
    fix_p.add_argument("--in-place", action="store_true", help="Rewrite the files instead of printing.")
    fix_p.add_argument("--semicolons", action="store_true", help="Also append missing semicolons.")
    fix_p.add_argument("files", nargs="+", help="C source files to fix.")

    search_p = subparsers.add_parser(
        "search",
        help="Look up C library functions by name or header."
    )
    search_p.add_argument("--descriptions", action="store_true", help="Also match description text.")
    search_p.add_argument("query", help="Function name or header, e.g. 'strlen' or 'stdio'.")

    serve_p = subparsers.add_parser(
        "serve",
        help="Answer reference panel messages, one JSON object per line on stdin."
    )
    serve_p.add_argument("--descriptions", action="store_true", help="Also match description text.")

    args = parser.parse_args(argv)

    if args.command == "check":
        try:
            config = resolve_config(args.config)
        except ConfigError as exc:
            sys.stderr.write(f"[lazyc] {exc}\n")
            return 2
        found: List[Tuple[str, Diagnostic]] = []
        status = 0
        for path in args.files:
            text = _read_source(path)
            if text is None:
                status = 1
                continue
            found.extend((path, d) for d in config.scan(text))
        emit_diagnostics_json(found, out=args.out)
        return status

    if args.command == "fix":
        try:
            config = resolve_config(args.config)
        except ConfigError as exc:
            sys.stderr.write(f"[lazyc] {exc}\n")
            return 2
        status = 0
        for path in args.files:
            text = _read_source(path)
            if text is None:
                status = 1
                continue
            fixed = "\n".join(fix_buffer(text, config, semicolons=args.semicolons))
            if args.in_place:
                with open(path, "w", encoding="utf-8") as handle:
                    handle.write(fixed)
            else:
                sys.stdout.write(fixed)
                if not fixed.endswith("\n"):
                    sys.stdout.write("\n")
        return status

    if args.command == "search":
        results = search(args.query, include_description=args.descriptions)
        emit_json([entry.to_json_obj() for entry in results])
        return 0

    if args.command == "serve":
        for raw in sys.stdin:
            raw = raw.strip()
            if not raw:
                continue
            try:
                message = json.loads(raw)
            except json.JSONDecodeError as exc:
                sys.stderr.write(f"[lazyc] Ignoring malformed message: {exc}\n")
                continue
            response = handle_reference_message(message, include_description=args.descriptions)
            if response is not None:
                sys.stdout.write(json.dumps(response) + "\n")
                sys.stdout.flush()
        return 0

    # unreachable if parser is correct
    return 1


if __name__ == "__main__":
    sys.exit(main())
