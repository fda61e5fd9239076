"""Error handling patterns with recovery hints.

This example demonstrates how to handle common errors and use
the recovery_hint property to provide actionable guidance.
"""

from pathlib import Path

from ldpm import (
    CyclicDependencyError,
    FetchFailedError,
    InstallOptions,
    Ldpm,
    LdpmError,
    PackageNotFoundError,
    WriteFailedError,
    load_config,
)


ldpm = Ldpm.from_config(load_config())


# Pattern 1: Report which package in the graph is missing
def install_or_explain(identifier: str, dest: Path) -> bool:
    """Install a package, explaining missing packages or versions."""
    try:
        ldpm.install([identifier], dest)
    except PackageNotFoundError as e:
        # e.identifier is the dependency that is missing, not necessarily the root
        print(f"Not published: {e.identifier}")
        print(f"Hint: {e.recovery_hint}")
        return False
    return True


# Pattern 2: Retry transient registry failures
def install_with_retry(identifier: str, dest: Path, attempts: int = 3) -> None:
    """Retry installs that fail on the network; installs are idempotent."""
    for attempt in range(1, attempts + 1):
        try:
            ldpm.install([identifier], dest)
            return
        except FetchFailedError as e:
            print(f"Attempt {attempt} failed ({e.status_code}): {e}")
            if attempt == attempts:
                raise


# Pattern 3: Inspect a cycle
def check_graph(identifier: str) -> None:
    """Resolve without installing and print any dependency cycle."""
    try:
        ldpm.resolve([identifier])
    except CyclicDependencyError as e:
        print("Cycle: " + " -> ".join(e.cycle))
        print(f"Hint: {e.recovery_hint}")


# Pattern 4: Install several roots, keeping the ones that resolve
def install_what_resolves(identifiers: list[str], dest: Path) -> None:
    """Report failing roots separately instead of aborting on the first."""
    resolutions = ldpm.resolve_each(identifiers)
    good = [r.identifier for r in resolutions if r.ok]
    for r in resolutions:
        if not r.ok:
            print(f"Skipping {r.identifier}: {r.error}")
    if good:
        ldpm.install(good, dest)


# Pattern 5: Catch-all for any library error
def install_safe(identifier: str, dest: Path) -> bool:
    """Install with comprehensive error handling."""
    try:
        ldpm.install([identifier], dest, InstallOptions(all_files=True))
    except WriteFailedError as e:
        print(f"Could not write {e.path}")
        print(f"Hint: {e.recovery_hint}")
        return False
    except LdpmError as e:
        print(f"Error: {e}")
        if e.recovery_hint:
            print(f"Hint: {e.recovery_hint}")
        return False
    return True


if __name__ == "__main__":
    install_or_explain("req-test@0.0.0", Path("./data"))
