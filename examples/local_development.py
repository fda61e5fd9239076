"""Local development example using DirectoryRegistry.

This example shows how to develop and test data packages locally
without a registry server. A directory laid out as
``<name>/<version>/package.json`` plus the package files acts as the
registry.
"""

import json
from pathlib import Path

from ldpm import DirectoryRegistry, FileCache, InstallOptions, Ldpm


REGISTRY_ROOT = Path("./test_fixtures/registry")


def setup_local_registry() -> None:
    """Publish two packages into the local registry directory."""
    base = REGISTRY_ROOT / "mydpkg-test" / "0.0.0"
    (base / "scripts").mkdir(parents=True, exist_ok=True)
    (base / "package.json").write_text(
        json.dumps(
            {
                "name": "mydpkg-test",
                "version": "0.0.0",
                "dataset": [{"name": "csv1", "path": "x1.csv", "fields": ["a", "b"]}],
            }
        )
    )
    (base / "x1.csv").write_text("a,b\n1,2\n")
    (base / "scripts" / "test.r").write_text("print('test')\n")

    req = REGISTRY_ROOT / "req-test" / "0.0.0"
    req.mkdir(parents=True, exist_ok=True)
    (req / "package.json").write_text(
        json.dumps(
            {
                "name": "req-test",
                "version": "0.0.0",
                "dataDependencies": {"mydpkg-test": "0.0.0"},
                "dataset": [{"name": "azerty", "url": "mydpkg-test/0.0.0/csv1"}],
            }
        )
    )


if __name__ == "__main__":
    setup_local_registry()

    # Same as: ldpm --registry ./test_fixtures/registry install req-test --all
    ldpm = Ldpm(
        registry=DirectoryRegistry(REGISTRY_ROOT),
        cache=FileCache(Path("./test_fixtures/cache")),
        max_workers=1,
    )
    ldpm.install(["req-test"], Path("./data"), InstallOptions(all_files=True))
    print(json.dumps(ldpm.cat("req-test"), indent=2))
