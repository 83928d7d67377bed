"""Comprehension MCP Server — exposes the comprehension compiler via MCP protocol."""

from mcp.server.fastmcp import FastMCP

from comprehension.api import check, compile_comprehension, transpile
from comprehension.errors import ComprehensionError
from comprehension_runtime.config import get_config
from comprehension_runtime.exceptions import ComprehensionRuntimeError
from comprehension_runtime.logging_config import get_logger

logger = get_logger("mcp")

mcp = FastMCP("comprehension")


@mcp.tool()
def comprehension_check(source: str) -> str:
    """Check a comprehension without evaluating it.

    Args:
        source: Comprehension source, e.g. "[x * x; x <- 0..10, x % 2 == 0]"
    """
    return check_source(source)


def check_source(source: str) -> str:
    """Core logic for checking a comprehension, testable without MCP."""
    try:
        check(source)
        return "OK"
    except (ComprehensionError, ComprehensionRuntimeError) as e:
        return f"Error: {e}"


@mcp.tool()
def comprehension_run(source: str, take: int = 20) -> str:
    """Evaluate a comprehension and return up to `take` items, one per line.

    Args:
        source: Comprehension source
        take: Maximum number of items to produce (comprehensions may be infinite)
    """
    return run_source(source, take)


def run_source(source: str, take: int | None = None) -> str:
    """Core logic for running a comprehension, testable without MCP."""
    if take is None:
        take = get_config()["cli"]["take"]
    if take < 0:
        return "Error: take must be non-negative"
    try:
        items = compile_comprehension(source).take(take)
    except (ComprehensionError, ComprehensionRuntimeError) as e:
        logger.info("Comprehension run failed: %s", e)
        return f"Error: {e}"
    if not items:
        return "(comprehension produced no items)"
    return "\n".join(repr(item) for item in items)


@mcp.tool()
def comprehension_build(source: str) -> str:
    """Transpile a comprehension to a Python module. Returns the generated code.

    Args:
        source: Comprehension source
    """
    return build_source(source)


def build_source(source: str) -> str:
    """Core logic for building a comprehension, testable without MCP."""
    try:
        return transpile(source)
    except (ComprehensionError, ComprehensionRuntimeError) as e:
        return f"Error: {e}"


COMPREHENSION_GUIDE = """\
# Writing Comprehensions

A comprehension is `[body; qualifier, qualifier, ...]`. The brackets are optional.
Qualifiers run left to right. The leftmost generator varies slowest.

## Qualifiers
```
x <- xs               -- generator: bind each item of xs to x
(a, b) <- pairs       -- generators may destructure tuples; _ ignores a value
let k = x * x         -- local binding, visible to later qualifiers and the body
x % 2 == 0            -- guard: any boolean expression
```

## Ranges
```
0..10      -- 0 up to 9
1..=10     -- 1 up to 10
1..        -- 1, 2, 3, ... (infinite; results are truncated with take)
'a'..='e'  -- characters
```

## Examples
```
[x * y; x <- 1..=3, y <- 1..=3]
[(i, j); i <- 1.., j <- 1..i, math.gcd(i, j) == 1]
[(i, j); i <- 1.., let k = i * i, j <- 1..=k]
[c.upper(); c <- "hello"]
[[(i, j); i <- [1, 2]]; j <- 1..]
```

## Important Rules
1. `<-` is always the generator arrow: write `x < -1` with a space
2. Booleans are lowercase: true, false, none
3. Comments use --
4. Guards must be booleans: `[x; x <- xs, x]` is an error unless x is a bool
5. Builtins: abs, len, min, max, sum, sorted, str, int, ... and the math module
"""


@mcp.prompt()
def comprehension_guide() -> str:
    """Guide to the comprehension language. Use this before writing comprehensions."""
    return COMPREHENSION_GUIDE


if __name__ == "__main__":
    mcp.run(transport="stdio")
